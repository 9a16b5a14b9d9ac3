"""
Particle spawning.

New particles enter at a bounded rate per step, at random positions inside
a spawn band. Each candidate position is rejection-sampled a bounded
number of times against the existing particles to avoid starting with an
overlap. When every attempt fails the spawner gives up for this step
instead of spinning; the band usually clears as the fluid falls away.
"""

import logging
import numpy as np
from typing import Optional, Tuple
from ..config import SimulationConfig
from ..core.particles import ParticleArrays

logger = logging.getLogger(__name__)


class Spawner:
    """Injects particles into a ParticleArrays store up to its capacity."""

    def __init__(self, config: SimulationConfig, rng: Optional[np.random.Generator] = None):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.failed_attempts = 0
        self._capacity_logged = False

    def spawn_region(self, domain_size: Tuple[float, float]) -> Tuple[float, float, float, float]:
        """(x_min, y_min, x_max, y_max) of the band new particles appear in."""
        if self.config.spawn_region is not None:
            return tuple(float(v) for v in self.config.spawn_region)
        width, _ = domain_size
        r = self.config.particle_radius
        return (0.4 * width, r, 0.6 * width, r + 6.0 * r)

    def sample_radius(self) -> float:
        jitter = self.config.radius_jitter
        base = self.config.particle_radius
        if jitter == 0.0:
            return base
        return float(base * (1.0 + self.rng.uniform(-jitter, jitter)))

    def is_free(self, particles: ParticleArrays, n_active: int,
                x: float, y: float, radius: float) -> bool:
        """True if a particle at (x, y) would not overlap any existing one."""
        if n_active == 0:
            return True
        dx = particles.position_x[:n_active] - x
        dy = particles.position_y[:n_active] - y
        min_dist = particles.radius[:n_active] + radius
        return bool(np.all(dx * dx + dy * dy >= min_dist * min_dist))

    def spawn(self, particles: ParticleArrays, n_active: int,
              domain_size: Tuple[float, float], count: Optional[int] = None) -> int:
        """Create up to ``count`` (default ``spawn_rate``) particles.

        Args:
            particles: Particle store (written in place)
            n_active: Current number of active particles
            domain_size: (width, height) of the domain
            count: Number of particles to try to create

        Returns:
            New number of active particles
        """
        if count is None:
            count = self.config.spawn_rate
        capacity = min(particles.capacity, self.config.max_particles)
        if n_active >= capacity:
            if not self._capacity_logged:
                logger.debug("Spawner reached capacity (%d particles)", capacity)
                self._capacity_logged = True
            return n_active

        x0, y0, x1, y1 = self.spawn_region(domain_size)
        vx, vy = self.config.spawn_velocity

        for _ in range(min(count, capacity - n_active)):
            radius = self.sample_radius()
            placed = False
            for _ in range(self.config.spawn_attempts):
                x = float(self.rng.uniform(x0, x1)) if x1 > x0 else float(x0)
                y = float(self.rng.uniform(y0, y1)) if y1 > y0 else float(y0)
                if self.is_free(particles, n_active, x, y, radius):
                    placed = True
                    break
            if not placed:
                self.failed_attempts += 1
                logger.debug("Spawn band crowded, skipping rest of this step")
                break

            particles.set_particle(n_active, x, y, vx, vy, radius,
                                   self.config.particle_mass(radius))
            n_active += 1

        return n_active

    def reset(self):
        """Forget failures and restart the random stream from the configured seed."""
        self.rng = np.random.default_rng(self.config.seed)
        self._capacity_logged = False
        self.failed_attempts = 0
