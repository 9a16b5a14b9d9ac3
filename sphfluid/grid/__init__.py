"""Eulerian grid solver."""

from .stable_fluids import GridFluidSimulation, advect, diffuse, divergence, project, set_bnd

__all__ = [
    'GridFluidSimulation',
    'advect',
    'diffuse',
    'divergence',
    'project',
    'set_bnd'
]
