"""
Vectorized time integration for SPH particles.

Semi-implicit (symplectic) Euler with uniform velocity damping:

    v += (F / m) · dt
    x += v · dt
    v *= damping

Damping is mandatory: the explicit pressure solve is only conditionally
stable and diverges under high stiffness without it.
"""

import numpy as np
from typing import Optional
from .particles import ParticleArrays


def integrate_semi_implicit_euler(particles: ParticleArrays, n_active: int,
                                  force_x: np.ndarray, force_y: np.ndarray,
                                  dt: float, damping: float,
                                  max_speed: Optional[float] = None):
    """Advance velocities and positions by one (sub)step.

    Args:
        particles: Particle arrays
        n_active: Number of active particles
        force_x: Accumulated x forces, shape (n_active,)
        force_y: Accumulated y forces, shape (n_active,)
        dt: Time step
        damping: Velocity damping factor in (0, 1]
        max_speed: Optional speed cap applied after damping
    """
    if n_active == 0:
        return
    inv_mass = 1.0 / particles.mass[:n_active]

    # Update velocities (vectorized)
    particles.velocity_x[:n_active] += force_x[:n_active] * inv_mass * dt
    particles.velocity_y[:n_active] += force_y[:n_active] * inv_mass * dt

    # Update positions (vectorized)
    particles.position_x[:n_active] += particles.velocity_x[:n_active] * dt
    particles.position_y[:n_active] += particles.velocity_y[:n_active] * dt

    particles.velocity_x[:n_active] *= damping
    particles.velocity_y[:n_active] *= damping

    if max_speed is not None:
        clamp_speed(particles, n_active, max_speed)


def clamp_speed(particles: ParticleArrays, n_active: int, max_speed: float) -> int:
    """Scale down velocities whose magnitude exceeds ``max_speed``.

    This is a stability safeguard for stiff parameter sets, not error
    recovery.

    Returns:
        Number of particles that were clamped
    """
    vx = particles.velocity_x[:n_active]
    vy = particles.velocity_y[:n_active]
    speed = np.sqrt(vx * vx + vy * vy)
    too_fast = speed > max_speed
    if not np.any(too_fast):
        return 0
    scale = max_speed / speed[too_fast]
    vx[too_fast] *= scale
    vy[too_fast] *= scale
    return int(np.count_nonzero(too_fast))
