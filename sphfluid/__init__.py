"""Interactive 2-D fluid: SPH particles with collisions, plus a stable-fluids grid."""

from . import core
from . import physics
from . import scenarios

# Import API to trigger backend registration
from . import api

from .api import (
    find_neighbors,
    compute_density_pressure,
    compute_forces,
    resolve_collisions
)
from .core.backend import (
    set_backend,
    get_backend,
    list_backends,
    auto_select_backend,
    print_backend_info
)
from .config import SimulationConfig
from .core.particles import ParticleArrays, ParticleSnapshot
from .solver import FluidSolver, SolverKind, create_solver
from .simulation import ParticleFluidSimulation
from .grid.stable_fluids import GridFluidSimulation

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # API functions
    'find_neighbors',
    'compute_density_pressure',
    'compute_forces',
    'resolve_collisions',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',

    # Classes
    'SimulationConfig',
    'ParticleArrays',
    'ParticleSnapshot',
    'FluidSolver',
    'SolverKind',
    'create_solver',
    'ParticleFluidSimulation',
    'GridFluidSimulation'
]
