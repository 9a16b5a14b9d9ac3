"""
Vectorized smoothing kernels (Müller et al. 2003) for 2-D SPH.

Every kernel is restricted to the support ``r ∈ [0, h]`` and evaluates to
exactly 0 outside it:

    poly6(r, h)               = 315 / (64 π h⁹) · (h² − r²)³
    spiky_gradient(r, h)      = −45 / (π h⁶) · (h − r)²
    viscosity_laplacian(r, h) = 45 / (π h⁶) · (h − r)

``spiky_gradient`` and ``poly6_gradient`` return magnitudes; callers multiply
by the unit direction (spiky) or the separation vector (poly6) themselves.
"""

import numpy as np


def _check_h(h: float):
    if not h > 0:
        raise ValueError(f"Smoothing radius must be positive, got {h}")


def _support(r: np.ndarray, h: float) -> np.ndarray:
    return (r >= 0.0) & (r <= h)


def poly6(r, h: float):
    """Density kernel."""
    _check_h(h)
    r = np.asarray(r, dtype=np.float64)
    diff = h * h - r * r
    w = np.where(_support(r, h), diff * diff * diff, 0.0)
    return (315.0 / (64.0 * np.pi * h**9)) * w


def spiky_gradient(r, h: float):
    """Pressure-gradient kernel magnitude (non-positive)."""
    _check_h(h)
    r = np.asarray(r, dtype=np.float64)
    diff = h - r
    g = np.where(_support(r, h), diff * diff, 0.0)
    return (-45.0 / (np.pi * h**6)) * g


def viscosity_laplacian(r, h: float):
    """Viscosity Laplacian kernel (non-negative)."""
    _check_h(h)
    r = np.asarray(r, dtype=np.float64)
    lap = np.where(_support(r, h), h - r, 0.0)
    return (45.0 / (np.pi * h**6)) * lap


def poly6_gradient(r, h: float):
    """Scalar factor of ∇poly6; multiply by the separation vector (x_i − x_j)."""
    _check_h(h)
    r = np.asarray(r, dtype=np.float64)
    diff = h * h - r * r
    g = np.where(_support(r, h), diff * diff, 0.0)
    return (-945.0 / (32.0 * np.pi * h**9)) * g


def poly6_laplacian(r, h: float):
    """Laplacian of poly6, used for the color-field curvature."""
    _check_h(h)
    r = np.asarray(r, dtype=np.float64)
    h2 = h * h
    r2 = r * r
    lap = np.where(_support(r, h), (h2 - r2) * (3.0 * h2 - 7.0 * r2), 0.0)
    return (-945.0 / (32.0 * np.pi * h**9)) * lap


class SmoothingKernels:
    """Kernel set bound to a fixed smoothing radius.

    Coefficients are computed once; the methods are otherwise identical to
    the module-level functions.
    """

    def __init__(self, h: float):
        """Initialize kernels for smoothing radius ``h``.

        Args:
            h: Smoothing radius (interaction cutoff), must be > 0
        """
        _check_h(h)
        self.h = float(h)
        self.h2 = self.h * self.h
        self.poly6_coeff = 315.0 / (64.0 * np.pi * self.h**9)
        self.spiky_coeff = -45.0 / (np.pi * self.h**6)
        self.visc_coeff = 45.0 / (np.pi * self.h**6)
        self.poly6_grad_coeff = -945.0 / (32.0 * np.pi * self.h**9)

    def poly6(self, r: np.ndarray) -> np.ndarray:
        diff = self.h2 - r * r
        return self.poly6_coeff * np.where(_support(r, self.h), diff * diff * diff, 0.0)

    def poly6_self(self) -> float:
        """poly6 at r = 0 (self-contribution to density)."""
        return self.poly6_coeff * self.h2**3

    def spiky_gradient(self, r: np.ndarray) -> np.ndarray:
        diff = self.h - r
        return self.spiky_coeff * np.where(_support(r, self.h), diff * diff, 0.0)

    def viscosity_laplacian(self, r: np.ndarray) -> np.ndarray:
        return self.visc_coeff * np.where(_support(r, self.h), self.h - r, 0.0)

    def poly6_gradient(self, r: np.ndarray) -> np.ndarray:
        diff = self.h2 - r * r
        return self.poly6_grad_coeff * np.where(_support(r, self.h), diff * diff, 0.0)

    def poly6_laplacian(self, r: np.ndarray) -> np.ndarray:
        r2 = r * r
        lap = (self.h2 - r2) * (3.0 * self.h2 - 7.0 * r2)
        return self.poly6_grad_coeff * np.where(_support(r, self.h), lap, 0.0)

    def validate(self, samples: int = 2000) -> bool:
        """Check 2-D normalization of poly6 numerically.

        The 315/64π coefficient is the 3-D normalization, so the 2-D integral
        is not 1; it only has to be finite, positive and independent of h up
        to the 1/h scaling. Returns True when ∫poly6·2πr dr · h matches the
        analytic value 315/(64·4) = 1.2305.
        """
        r = np.linspace(0.0, self.h, samples)
        dr = r[1] - r[0]
        integral = 2.0 * np.pi * np.sum(r * self.poly6(r)) * dr
        expected = 315.0 / 256.0 / self.h
        return bool(np.isfinite(integral) and abs(integral - expected) / expected < 0.01)
