"""
Numba-optimized collision pass.

Same contact model as :mod:`collisions`, but pairs are tested at the
moment they are visited instead of being pre-filtered, which is cheaper
inside a JIT loop. The pass is inherently sequential.
"""

import math
import numba as nb
from typing import Tuple
from ..core.particles import ParticleArrays
from .collisions import build_collision_index


@nb.njit(fastmath=True, cache=True)
def _collision_pass_numba(position_x, position_y, velocity_x, velocity_y,
                          radius, mass, n_active, sorted_indices, cell_start,
                          cell_x, cell_y, nx, ny, restitution):
    contacts = 0
    for i in range(n_active):
        cx = cell_x[i]
        cy = cell_y[i]
        x0 = max(cx - 1, 0)
        x1 = min(cx + 1, nx - 1)
        for row in range(max(cy - 1, 0), min(cy + 1, ny - 1) + 1):
            start = cell_start[row * nx + x0]
            end = cell_start[row * nx + x1 + 1]
            for k in range(start, end):
                j = sorted_indices[k]
                if j <= i:
                    continue

                dx = position_x[j] - position_x[i]
                dy = position_y[j] - position_y[i]
                dist2 = dx * dx + dy * dy
                min_dist = radius[i] + radius[j]
                if dist2 <= 0.0 or dist2 >= min_dist * min_dist:
                    continue

                dist = math.sqrt(dist2)
                nx_ = dx / dist
                ny_ = dy / dist
                total = mass[i] + mass[j]
                overlap = min_dist - dist
                share_i = overlap * mass[j] / total
                share_j = overlap * mass[i] / total
                position_x[i] -= nx_ * share_i
                position_y[i] -= ny_ * share_i
                position_x[j] += nx_ * share_j
                position_y[j] += ny_ * share_j

                dot = (velocity_x[j] - velocity_x[i]) * nx_ + (velocity_y[j] - velocity_y[i]) * ny_
                if dot < 0.0:
                    impulse = (1.0 + restitution) * dot / (1.0 / mass[i] + 1.0 / mass[j])
                    velocity_x[i] += impulse * nx_ / mass[i]
                    velocity_y[i] += impulse * ny_ / mass[i]
                    velocity_x[j] -= impulse * nx_ / mass[j]
                    velocity_y[j] -= impulse * ny_ / mass[j]
                contacts += 1
    return contacts


def resolve_collisions_numba_wrapper(particles: ParticleArrays, n_active: int,
                                     domain_size: Tuple[float, float],
                                     restitution: float, iterations: int) -> int:
    """Wrapper for the Numba collision pass that matches the CPU interface."""
    if n_active < 2:
        return 0
    contacts = 0
    for _ in range(iterations):
        index = build_collision_index(particles, n_active, domain_size)
        found = _collision_pass_numba(
            particles.position_x, particles.position_y,
            particles.velocity_x, particles.velocity_y,
            particles.radius, particles.mass, n_active,
            index.sorted_indices, index.cell_start, index.cell_x, index.cell_y,
            index.nx, index.ny, float(restitution)
        )
        contacts += found
        if found == 0:
            break
    return contacts
