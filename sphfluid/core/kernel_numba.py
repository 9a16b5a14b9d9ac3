"""Scalar Numba versions of the smoothing kernels used inside JIT loops."""

import math
import numba as nb


@nb.njit(fastmath=True, cache=True)
def poly6_scalar(r: float, h: float) -> float:
    if r < 0.0 or r > h:
        return 0.0
    diff = h * h - r * r
    return 315.0 / (64.0 * math.pi * h**9) * diff * diff * diff


@nb.njit(fastmath=True, cache=True)
def spiky_gradient_scalar(r: float, h: float) -> float:
    if r < 0.0 or r > h:
        return 0.0
    diff = h - r
    return -45.0 / (math.pi * h**6) * diff * diff


@nb.njit(fastmath=True, cache=True)
def viscosity_laplacian_scalar(r: float, h: float) -> float:
    if r < 0.0 or r > h:
        return 0.0
    return 45.0 / (math.pi * h**6) * (h - r)
