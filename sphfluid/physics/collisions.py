"""
Penalty-based collision resolution between particles.

SPH pressure is a soft repulsion and does not stop particles from
overlapping geometrically. This pass enforces non-penetration directly:

1. overlapping pairs are pushed apart along the contact normal, each
   particle moving by the share of the overlap given by the *other*
   particle's mass (heavier particles displace less)
2. approaching pairs exchange an impulse

       j = (1 + e) · (v_rel · n) / (1/mᵢ + 1/mⱼ)

   which leaves the relative normal velocity at −e times its value.

Pairs are visited sequentially (Gauss–Seidel), so a correction is visible
to the next pair in the same iteration. The collision grid uses its own
cell size, twice the largest particle radius, and is rebuilt every
iteration.
"""

import math
import numpy as np
from typing import Tuple
from ..core.particles import ParticleArrays
from ..core.spatial_hash import SpatialIndex, build_spatial_index


def build_collision_index(particles: ParticleArrays, n_active: int,
                          domain_size: Tuple[float, float]) -> SpatialIndex:
    """Spatial index keyed by particle diameter."""
    cell_size = 2.0 * float(np.max(particles.radius[:n_active]))
    return build_spatial_index(particles.position_x, particles.position_y,
                               n_active, cell_size, domain_size)


def resolve_pair(particles: ParticleArrays, i: int, j: int, restitution: float) -> bool:
    """Separate one pair and apply the contact impulse.

    Returns:
        True if the pair was in contact
    """
    px, py = particles.position_x, particles.position_y
    vx, vy = particles.velocity_x, particles.velocity_y

    dx = px[j] - px[i]
    dy = py[j] - py[i]
    dist2 = dx * dx + dy * dy
    min_dist = particles.radius[i] + particles.radius[j]
    # Coincident particles have no normal; leave them for a later frame
    if dist2 <= 0.0 or dist2 >= min_dist * min_dist:
        return False

    dist = math.sqrt(dist2)
    nx = dx / dist
    ny = dy / dist
    mass_i = particles.mass[i]
    mass_j = particles.mass[j]
    total = mass_i + mass_j

    # Mass-weighted positional correction
    overlap = min_dist - dist
    share_i = overlap * mass_j / total
    share_j = overlap * mass_i / total
    px[i] -= nx * share_i
    py[i] -= ny * share_i
    px[j] += nx * share_j
    py[j] += ny * share_j

    # Impulse only for approaching pairs
    dot = (vx[j] - vx[i]) * nx + (vy[j] - vy[i]) * ny
    if dot < 0.0:
        impulse = (1.0 + restitution) * dot / (1.0 / mass_i + 1.0 / mass_j)
        vx[i] += impulse * nx / mass_i
        vy[i] += impulse * ny / mass_i
        vx[j] -= impulse * nx / mass_j
        vy[j] -= impulse * ny / mass_j
    return True


def find_overlapping_pairs(particles: ParticleArrays, index: SpatialIndex):
    """Candidate pairs that currently overlap (distance in (0, r_i + r_j))."""
    first, second = index.candidate_pairs()
    if first.size == 0:
        return first, second
    dx = particles.position_x[second] - particles.position_x[first]
    dy = particles.position_y[second] - particles.position_y[first]
    dist2 = dx * dx + dy * dy
    min_dist = particles.radius[first] + particles.radius[second]
    overlapping = (dist2 > 0.0) & (dist2 < min_dist * min_dist)
    return first[overlapping], second[overlapping]


def resolve_collisions(particles: ParticleArrays, n_active: int,
                       domain_size: Tuple[float, float],
                       restitution: float, iterations: int) -> int:
    """Run the iterative collision pass (CPU backend).

    Args:
        particles: Particle arrays
        n_active: Number of active particles
        domain_size: (width, height) used to size the collision grid
        restitution: Restitution coefficient e in [0, 1]
        iterations: Number of passes

    Returns:
        Total number of contacts resolved over all passes
    """
    if n_active < 2:
        return 0

    contacts = 0
    for _ in range(iterations):
        index = build_collision_index(particles, n_active, domain_size)
        first, second = find_overlapping_pairs(particles, index)
        if first.size == 0:
            break
        for i, j in zip(first.tolist(), second.tolist()):
            if resolve_pair(particles, i, j, restitution):
                contacts += 1
    return contacts


def max_penetration(particles: ParticleArrays, n_active: int,
                    domain_size: Tuple[float, float]) -> float:
    """Largest remaining overlap, for diagnostics and tests."""
    if n_active < 2:
        return 0.0
    index = build_collision_index(particles, n_active, domain_size)
    first, second = index.candidate_pairs()
    if first.size == 0:
        return 0.0
    dx = particles.position_x[second] - particles.position_x[first]
    dy = particles.position_y[second] - particles.position_y[first]
    dist = np.sqrt(dx * dx + dy * dy)
    overlap = particles.radius[first] + particles.radius[second] - dist
    return float(max(np.max(overlap), 0.0))
