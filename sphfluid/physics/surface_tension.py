"""
Color-field surface tension (Müller et al. 2003).

The smoothed color field cᵢ = Σⱼ (mⱼ/ρⱼ) W(rᵢⱼ) is ≈1 inside the fluid and
falls to 0 across the free surface. Its gradient nᵢ points into the fluid
and is only significant near the surface; its Laplacian measures
curvature. The force

    Fᵢ = −σ ∇²cᵢ · nᵢ / |nᵢ|        for |nᵢ| > threshold / h

pulls surface particles inward and rounds off droplets.
"""

import numpy as np
from ..core.particles import ParticleArrays
from ..core.kernels import SmoothingKernels
from ..core.spatial_hash import NeighborList
from .forces import ForceBuffer, pair_owners


def compute_color_field(particles: ParticleArrays, kernels: SmoothingKernels,
                        neighbors: NeighborList, n_active: int):
    """Color-field normal and Laplacian for every active particle.

    Returns:
        (normal_x, normal_y, laplacian) arrays of length n_active
    """
    normal_x = np.zeros(n_active, dtype=np.float64)
    normal_y = np.zeros(n_active, dtype=np.float64)
    laplacian = np.zeros(n_active, dtype=np.float64)
    if n_active == 0:
        return normal_x, normal_y, laplacian

    density = particles.density[:n_active]
    mass = particles.mass[:n_active]
    has_density = density > 0.0

    # Self term: ∇W(0) vanishes, ∇²W(0) does not
    volume_self = np.where(has_density, mass / np.where(has_density, density, 1.0), 0.0)
    laplacian += volume_self * kernels.poly6_laplacian(np.zeros(1))[0]

    if neighbors.pair_count == 0:
        return normal_x, normal_y, laplacian

    owners = pair_owners(neighbors)
    j = neighbors.ids
    rho_j = particles.density[j]
    valid = rho_j > 0.0
    owners = owners[valid]
    j = j[valid]
    r = neighbors.distances[valid]

    volume = particles.mass[j] / particles.density[j]
    grad = volume * kernels.poly6_gradient(r)
    normal_x += np.bincount(owners, weights=grad * neighbors.dx[valid], minlength=n_active)
    normal_y += np.bincount(owners, weights=grad * neighbors.dy[valid], minlength=n_active)
    laplacian += np.bincount(owners, weights=volume * kernels.poly6_laplacian(r),
                             minlength=n_active)
    return normal_x, normal_y, laplacian


def add_surface_tension(forces: ForceBuffer, particles: ParticleArrays,
                        kernels: SmoothingKernels, neighbors: NeighborList,
                        n_active: int, tension: float, threshold: float) -> int:
    """Accumulate surface-tension forces into ``forces``.

    Args:
        forces: Buffer to add into
        particles: Particle arrays with density computed
        kernels: Smoothing kernels bound to h
        neighbors: Neighbor lists within h
        n_active: Number of active particles
        tension: Surface tension coefficient σ (no-op when 0)
        threshold: Surface detection threshold, in units of 1/h

    Returns:
        Number of particles classified as surface particles
    """
    if tension <= 0.0 or n_active == 0:
        return 0

    normal_x, normal_y, laplacian = compute_color_field(particles, kernels, neighbors, n_active)
    normal_len = np.sqrt(normal_x * normal_x + normal_y * normal_y)
    surface = normal_len > threshold / kernels.h
    if not np.any(surface):
        return 0

    scale = -tension * laplacian[surface] / normal_len[surface]
    forces.force_x[surface] += scale * normal_x[surface]
    forces.force_y[surface] += scale * normal_y[surface]
    return int(np.count_nonzero(surface))
