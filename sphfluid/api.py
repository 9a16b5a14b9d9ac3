"""
Unified API for the particle stages with backend dispatch.

Each hot stage (neighbor search, density/pressure, forces, collisions) has
a NumPy and a Numba implementation registered here under a common name.
The simulation calls the public functions below and passes its configured
backend explicitly; omitting ``backend`` uses the global selection from
:mod:`sphfluid.core.backend`.
"""

from typing import Optional, Tuple
from .core.backend import backend_function, for_backend, Backend, dispatch
from .core.particles import ParticleArrays
from .core.kernels import SmoothingKernels
from .core.spatial_hash import NeighborList, SpatialIndex, build_spatial_index

# CPU implementations
from .physics.density import compute_density_pressure as _density_pressure_cpu
from .physics.forces import ForceBuffer, compute_forces_vectorized
from .physics.collisions import resolve_collisions as _resolve_collisions_cpu

# Numba implementations
from .core.spatial_hash_numba import query_neighbors_numba
from .physics.density_numba import compute_density_pressure_numba_wrapper
from .physics.forces_numba import compute_forces_numba_wrapper
from .physics.collisions_numba import resolve_collisions_numba_wrapper


@backend_function("find_neighbors")
@for_backend(Backend.CPU)
def _find_neighbors_cpu(index: SpatialIndex, particles: ParticleArrays, radius: float):
    return index.query_neighbors(particles.position_x, particles.position_y, radius)


@backend_function("find_neighbors")
@for_backend(Backend.NUMBA)
def _find_neighbors_numba(index: SpatialIndex, particles: ParticleArrays, radius: float):
    return query_neighbors_numba(index, particles.position_x, particles.position_y, radius)


backend_function("compute_density_pressure")(for_backend(Backend.CPU)(_density_pressure_cpu))
backend_function("compute_density_pressure")(
    for_backend(Backend.NUMBA)(compute_density_pressure_numba_wrapper))
backend_function("compute_forces")(for_backend(Backend.CPU)(compute_forces_vectorized))
backend_function("compute_forces")(for_backend(Backend.NUMBA)(compute_forces_numba_wrapper))
backend_function("resolve_collisions")(for_backend(Backend.CPU)(_resolve_collisions_cpu))
backend_function("resolve_collisions")(
    for_backend(Backend.NUMBA)(resolve_collisions_numba_wrapper))


# Public API functions that dispatch to appropriate backend
def find_neighbors(particles: ParticleArrays, n_active: int, radius: float,
                   domain_size: Tuple[float, float],
                   backend: Optional[str] = None) -> NeighborList:
    """All pairs within ``radius`` as a CSR neighbor list.

    Builds a fresh spatial index with cell size ``radius`` and discards it
    after the query.
    """
    if n_active == 0:
        return NeighborList.empty(0)
    index = build_spatial_index(particles.position_x, particles.position_y,
                                n_active, radius, domain_size)
    return dispatch("find_neighbors", index, particles, radius, backend=backend)


def compute_density_pressure(particles: ParticleArrays, kernels: SmoothingKernels,
                             neighbors: NeighborList, n_active: int,
                             stiffness: float, rest_density: float,
                             clamp: bool = True, backend: Optional[str] = None):
    """Density (self term included) followed by the equation of state."""
    dispatch("compute_density_pressure", particles, kernels, neighbors, n_active,
             stiffness, rest_density, clamp, backend=backend)


def compute_forces(particles: ParticleArrays, kernels: SmoothingKernels,
                   neighbors: NeighborList, n_active: int,
                   gravity: float, viscosity: float,
                   backend: Optional[str] = None) -> ForceBuffer:
    """Gravity, pressure and viscosity into a fresh ForceBuffer."""
    return dispatch("compute_forces", particles, kernels, neighbors, n_active,
                    gravity, viscosity, backend=backend)


def resolve_collisions(particles: ParticleArrays, n_active: int,
                       domain_size: Tuple[float, float], restitution: float,
                       iterations: int, backend: Optional[str] = None) -> int:
    """Iterative pairwise collision pass; returns contacts resolved."""
    return dispatch("resolve_collisions", particles, n_active, domain_size,
                    restitution, iterations, backend=backend)
