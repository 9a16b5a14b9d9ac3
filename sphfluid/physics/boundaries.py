"""
Rectangular domain boundaries.

Positions are clamped so that every particle lies inside
``[r, width − r] × [r, height − r]``. The velocity component normal to the
wall that was hit is reflected inward and scaled by the boundary
restitution; on the floor (y = height, +y is down) the tangential
component is also scaled by ``floor_friction``.
"""

import numpy as np
from typing import Tuple
from ..core.particles import ParticleArrays


def apply_boundary_clamp(particles: ParticleArrays, n_active: int,
                         domain_size: Tuple[float, float],
                         restitution: float, floor_friction: float = 1.0) -> int:
    """Clamp particles into the domain (vectorized).

    Args:
        particles: Particle arrays
        n_active: Number of active particles
        domain_size: (width, height)
        restitution: Fraction of the normal velocity kept after a wall hit
        floor_friction: Tangential velocity factor on floor contact

    Returns:
        Number of wall contacts
    """
    if n_active == 0:
        return 0
    width, height = domain_size
    r = particles.radius[:n_active]
    x = particles.position_x[:n_active]
    y = particles.position_y[:n_active]
    vx = particles.velocity_x[:n_active]
    vy = particles.velocity_y[:n_active]

    # Domains narrower than a particle pin it to the lower wall
    x_max = np.maximum(width - r, r)
    y_max = np.maximum(height - r, r)

    # Left boundary
    mask_left = x < r
    x[mask_left] = r[mask_left]
    vx[mask_left] = np.abs(vx[mask_left]) * restitution

    # Right boundary
    mask_right = x > x_max
    x[mask_right] = x_max[mask_right]
    vx[mask_right] = -np.abs(vx[mask_right]) * restitution

    # Top boundary
    mask_top = y < r
    y[mask_top] = r[mask_top]
    vy[mask_top] = np.abs(vy[mask_top]) * restitution

    # Floor
    mask_floor = y > y_max
    y[mask_floor] = y_max[mask_floor]
    vy[mask_floor] = -np.abs(vy[mask_floor]) * restitution
    vx[mask_floor] *= floor_friction

    return int(np.count_nonzero(mask_left) + np.count_nonzero(mask_right) +
               np.count_nonzero(mask_top) + np.count_nonzero(mask_floor))


def is_contained(particles: ParticleArrays, n_active: int,
                 domain_size: Tuple[float, float], tolerance: float = 1e-9) -> bool:
    """True if every particle satisfies the containment invariant."""
    width, height = domain_size
    r = particles.radius[:n_active]
    x = particles.position_x[:n_active]
    y = particles.position_y[:n_active]
    return bool(np.all(x >= r - tolerance) and np.all(x <= width - r + tolerance) and
                np.all(y >= r - tolerance) and np.all(y <= height - r + tolerance))
