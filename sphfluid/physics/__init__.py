"""Physics stages: density, forces, surface tension, collisions, walls and interaction."""

from .density import (
    compute_density_vectorized,
    compute_pressure,
    compute_density_pressure
)
from .forces import (
    ForceBuffer,
    compute_forces_vectorized
)
from .surface_tension import compute_color_field, add_surface_tension
from .collisions import (
    build_collision_index,
    resolve_pair,
    find_overlapping_pairs,
    resolve_collisions,
    max_penetration
)
from .boundaries import apply_boundary_clamp, is_contained
from .interaction import (
    PointerForce,
    apply_drag_interaction,
    apply_radial_impulse,
    add_pointer_force
)

__all__ = [
    'compute_density_vectorized',
    'compute_pressure',
    'compute_density_pressure',
    'ForceBuffer',
    'compute_forces_vectorized',
    'compute_color_field',
    'add_surface_tension',
    'build_collision_index',
    'resolve_pair',
    'find_overlapping_pairs',
    'resolve_collisions',
    'max_penetration',
    'apply_boundary_clamp',
    'is_contained',
    'PointerForce',
    'apply_drag_interaction',
    'apply_radial_impulse',
    'add_pointer_force'
]
