"""
Common contract for the fluid solvers.

A host (the pygame front end, a test, a headless runner) only ever talks to
a solver through this interface. Optional capabilities default to no-ops so
that hosts never need to check which solver kind they hold before
forwarding pointer input.
"""

import enum
from typing import Optional
from .config import SimulationConfig


class SolverKind(enum.Enum):
    """Available solver variants."""
    PARTICLE = "particle"  # SPH particles with collisions
    GRID = "grid"          # Eulerian stable fluids


class FluidSolver:
    """Base class for everything a host can drive frame by frame."""

    kind: SolverKind

    def reset(self):
        """Return to the initial state."""
        raise NotImplementedError

    def step(self, dt: float):
        """Advance by ``dt`` seconds."""
        raise NotImplementedError

    def on_resize(self, width: float, height: float):
        """The drawable area changed size."""

    def apply_interaction(self, ax: float, ay: float, bx: float, by: float):
        """Pointer dragged from A to B since the last frame."""

    def apply_radial_impulse(self, cx: float, cy: float, radius: float, strength: float):
        """Radial push (positive strength) or pull around a point."""

    @property
    def domain_size(self):
        raise NotImplementedError


def create_solver(kind, config: Optional[SimulationConfig] = None, **kwargs) -> FluidSolver:
    """Build a solver of the given kind.

    Args:
        kind: A :class:`SolverKind` or its string value
        config: Simulation configuration (defaults when None)
        **kwargs: Extra options for the grid solver

    Raises:
        ValueError: If ``kind`` is unknown
    """
    kind = SolverKind(kind) if not isinstance(kind, SolverKind) else kind
    if config is None:
        config = SimulationConfig()

    if kind is SolverKind.PARTICLE:
        from .simulation import ParticleFluidSimulation
        return ParticleFluidSimulation(config)

    from .grid.stable_fluids import GridFluidSimulation
    return GridFluidSimulation.from_config(config, **kwargs)
