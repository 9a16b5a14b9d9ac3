"""
Pointer interaction: the only input channel into a running simulation.

The input layer captures pointer events and hands over plain numbers; this
module turns them into velocity perturbations or forces on nearby
particles. Everything is single-threaded, so interaction state is a
last-write-wins snapshot consumed by the next step.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional
from ..core.particles import ParticleArrays
from .forces import ForceBuffer


@dataclass(frozen=True)
class PointerForce:
    """Attract (strength > 0) or repel (strength < 0) around a point."""
    x: float
    y: float
    radius: float
    strength: float

    def __post_init__(self):
        if not self.radius > 0:
            raise ValueError(f"Pointer radius must be positive, got {self.radius}")


def _within(particles: ParticleArrays, n_active: int, cx: float, cy: float, radius: float):
    dx = particles.position_x[:n_active] - cx
    dy = particles.position_y[:n_active] - cy
    dist = np.sqrt(dx * dx + dy * dy)
    return dx, dy, dist, dist < radius


def apply_drag_interaction(particles: ParticleArrays, n_active: int,
                           ax: float, ay: float, bx: float, by: float,
                           radius: float, strength: float) -> int:
    """Push particles near B along the drag A → B.

    Velocity change: (B − A) · strength · (1 − d/radius) for particles
    within ``radius`` of B.

    Returns:
        Number of particles affected
    """
    if n_active == 0:
        return 0
    _, _, dist, near = _within(particles, n_active, bx, by, radius)
    if not np.any(near):
        return 0
    falloff = 1.0 - dist[near] / radius
    particles.velocity_x[:n_active][near] += (bx - ax) * strength * falloff
    particles.velocity_y[:n_active][near] += (by - ay) * strength * falloff
    return int(np.count_nonzero(near))


def apply_radial_impulse(particles: ParticleArrays, n_active: int,
                         cx: float, cy: float, radius: float, strength: float) -> int:
    """Radial velocity kick, outward for positive strength, inward otherwise.

    Particles exactly at the center have no direction and are skipped.

    Returns:
        Number of particles affected
    """
    if not radius > 0:
        raise ValueError(f"Impulse radius must be positive, got {radius}")
    if n_active == 0:
        return 0
    dx, dy, dist, near = _within(particles, n_active, cx, cy, radius)
    near &= dist > 0.0
    if not np.any(near):
        return 0
    d = dist[near]
    kick = strength * (1.0 - d / radius) / d
    particles.velocity_x[:n_active][near] += kick * dx[near]
    particles.velocity_y[:n_active][near] += kick * dy[near]
    return int(np.count_nonzero(near))


def add_pointer_force(forces: ForceBuffer, particles: ParticleArrays, n_active: int,
                      pointer: Optional[PointerForce], gravity: float = 0.0) -> int:
    """Accumulate the pointer attraction/repulsion into ``forces``.

    Inside the radius, with t = 1 − d/radius:
        a = t · strength · d̂(to pointer) − t · v
    and gravity is faded out near the pointer so a held blob can be lifted.

    Returns:
        Number of particles affected
    """
    if pointer is None or n_active == 0 or pointer.strength == 0.0:
        return 0
    dx, dy, dist, near = _within(particles, n_active, pointer.x, pointer.y, pointer.radius)
    near &= dist > 0.0
    if not np.any(near):
        return 0

    d = dist[near]
    centre_t = 1.0 - d / pointer.radius
    mass = particles.mass[:n_active][near]

    # Direction to the pointer is minus the offset from it
    dir_x = -dx[near] / d
    dir_y = -dy[near] / d
    gravity_weight = centre_t * np.clip(pointer.strength / 10.0, -1.0, 1.0)

    accel_x = dir_x * centre_t * pointer.strength - particles.velocity_x[:n_active][near] * centre_t
    accel_y = (dir_y * centre_t * pointer.strength - particles.velocity_y[:n_active][near] * centre_t
               - gravity * gravity_weight)

    forces.force_x[near] += mass * accel_x
    forces.force_y[near] += mass * accel_y
    return int(np.count_nonzero(near))
