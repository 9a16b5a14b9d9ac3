"""
Fully vectorized force computation for SPH.

Includes:
- Gravity (screen coordinates, +y down)
- Pressure forces (symmetric P/ρ² form)
- Viscosity forces (Laplacian form)
- External forces supplied by the caller

Forces are accumulated into a ForceBuffer that the caller owns for one
step: it is sized to the active particle count, handed to the integrator
and then discarded.
"""

import numpy as np
from dataclasses import dataclass
from ..core.particles import ParticleArrays
from ..core.kernels import SmoothingKernels
from ..core.spatial_hash import NeighborList


@dataclass
class ForceBuffer:
    """Per-step force accumulator, parallel to the active particles."""
    force_x: np.ndarray
    force_y: np.ndarray

    @staticmethod
    def zeros(n_active: int) -> 'ForceBuffer':
        return ForceBuffer(np.zeros(n_active, dtype=np.float64),
                           np.zeros(n_active, dtype=np.float64))

    @property
    def n_active(self) -> int:
        return int(self.force_x.shape[0])

    def add(self, fx: np.ndarray, fy: np.ndarray):
        """Add precomputed per-particle forces."""
        if np.shape(fx) != self.force_x.shape or np.shape(fy) != self.force_y.shape:
            raise ValueError(
                f"External forces must have shape {self.force_x.shape}, "
                f"got {np.shape(fx)} and {np.shape(fy)}"
            )
        self.force_x += fx
        self.force_y += fy


def pair_owners(neighbors: NeighborList) -> np.ndarray:
    """Index of the owning particle for every entry of a NeighborList."""
    return np.repeat(np.arange(neighbors.n_particles), np.diff(neighbors.offsets))


def compute_forces_vectorized(particles: ParticleArrays, kernels: SmoothingKernels,
                              neighbors: NeighborList, n_active: int,
                              gravity: float, viscosity: float) -> ForceBuffer:
    """Gravity, pressure and viscosity forces for all active particles.

    Pressure, per neighbor j within (0, h]:
        F = −mᵢ mⱼ (Pᵢ/ρᵢ² + Pⱼ/ρⱼ²) · spiky_gradient(r) · r̂ⱼᵢ
    which is antisymmetric in i, j, so pair forces cancel for any masses.
    Viscosity:
        F = μ mⱼ (vⱼ − vᵢ)/ρⱼ · viscosity_laplacian(r)

    Args:
        particles: Particle arrays with density and pressure computed
        kernels: Smoothing kernels bound to h
        neighbors: Neighbor lists within h
        n_active: Number of active particles
        gravity: Gravity acceleration along +y
        viscosity: Viscosity coefficient μ

    Returns:
        Fresh ForceBuffer
    """
    forces = ForceBuffer.zeros(n_active)
    if n_active == 0:
        return forces

    forces.force_y += particles.mass[:n_active] * gravity

    if neighbors.pair_count == 0:
        return forces

    owners = pair_owners(neighbors)
    j = neighbors.ids
    r = neighbors.distances
    rho_i = particles.density[owners]
    rho_j = particles.density[j]

    # Coincident pairs have no direction; empty densities cannot be divided by
    valid = (r > 0.0) & (r <= kernels.h) & (rho_i > 0.0) & (rho_j > 0.0)
    if not np.any(valid):
        return forces
    owners = owners[valid]
    j = j[valid]
    r = r[valid]
    rho_i = rho_i[valid]
    rho_j = rho_j[valid]
    ux = neighbors.dx[valid] / r
    uy = neighbors.dy[valid] / r
    mass_j = particles.mass[j]

    # Pressure gradient term (symmetric formulation)
    pressure_term = (particles.pressure[owners] / (rho_i * rho_i) +
                     particles.pressure[j] / (rho_j * rho_j))
    pressure_mag = -particles.mass[owners] * mass_j * pressure_term * kernels.spiky_gradient(r)

    # Viscosity pulls towards the weighted neighbor velocity
    visc_factor = viscosity * mass_j / rho_j * kernels.viscosity_laplacian(r)
    dvx = particles.velocity_x[j] - particles.velocity_x[owners]
    dvy = particles.velocity_y[j] - particles.velocity_y[owners]

    fx = pressure_mag * ux + visc_factor * dvx
    fy = pressure_mag * uy + visc_factor * dvy

    forces.force_x += np.bincount(owners, weights=fx, minlength=n_active)
    forces.force_y += np.bincount(owners, weights=fy, minlength=n_active)
    return forces
