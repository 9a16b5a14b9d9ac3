"""
Vectorized density and pressure computation for SPH.

Density by direct summation, self-contribution included:

    ρᵢ = mᵢ W(0, h) + Σⱼ mⱼ W(|rᵢ − rⱼ|, h)

Pressure from a linear equation of state, clamped by default so that an
under-dense particle exerts no (attractive) pressure:

    Pᵢ = k · max(ρᵢ − ρ₀, 0)
"""

import numpy as np
from ..core.particles import ParticleArrays
from ..core.kernels import SmoothingKernels
from ..core.spatial_hash import NeighborList


def compute_density_vectorized(particles: ParticleArrays, kernels: SmoothingKernels,
                               neighbors: NeighborList, n_active: int):
    """Direct-summation density for all active particles.

    Args:
        particles: Particle arrays
        kernels: Smoothing kernels bound to h
        neighbors: Neighbor lists within h
        n_active: Number of active particles
    """
    if n_active == 0:
        return

    # Self contribution: W(0, h) * mass
    particles.density[:n_active] = particles.mass[:n_active] * kernels.poly6_self()

    if neighbors.pair_count == 0:
        return

    # All pair contributions at once, then reduce per particle
    contributions = particles.mass[neighbors.ids] * kernels.poly6(neighbors.distances)
    owners = np.repeat(np.arange(n_active), np.diff(neighbors.offsets))
    particles.density[:n_active] += np.bincount(owners, weights=contributions,
                                                minlength=n_active)


def compute_pressure(particles: ParticleArrays, n_active: int,
                     stiffness: float, rest_density: float,
                     clamp: bool = True):
    """Linear equation of state P = k (ρ − ρ₀).

    Args:
        particles: Particle arrays with density computed
        n_active: Number of active particles
        stiffness: Pressure stiffness k
        rest_density: Rest density ρ₀
        clamp: Clamp negative pressures to 0 (recommended for stability)
    """
    excess = particles.density[:n_active] - rest_density
    if clamp:
        excess = np.maximum(excess, 0.0)
    particles.pressure[:n_active] = stiffness * excess


def compute_density_pressure(particles: ParticleArrays, kernels: SmoothingKernels,
                             neighbors: NeighborList, n_active: int,
                             stiffness: float, rest_density: float,
                             clamp: bool = True):
    """Density followed by pressure (CPU backend)."""
    compute_density_vectorized(particles, kernels, neighbors, n_active)
    compute_pressure(particles, n_active, stiffness, rest_density, clamp)
