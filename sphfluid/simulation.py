"""
Particle fluid simulation: owns the particle store and runs the step loop.

One call to :meth:`ParticleFluidSimulation.step` performs

    spawn → per substep: neighbor search → density/pressure → forces
          → integrate → collisions → boundary clamp

All stages work on the single :class:`ParticleArrays` owned by the
instance. Neighbor lists, spatial indices and force buffers are created per
stage and dropped; only density and pressure persist on the particles as the
latest snapshot for renderers.
"""

import logging
import math
import warnings
import numpy as np
from typing import Optional, Dict, Any

from . import api
from .config import SimulationConfig
from .core.backend import list_backends
from .core.kernels import SmoothingKernels
from .core.particles import ParticleArrays, ParticleSnapshot
from .core.integrator import integrate_semi_implicit_euler
from .physics.boundaries import apply_boundary_clamp
from .physics.interaction import (
    PointerForce, add_pointer_force, apply_drag_interaction,
    apply_radial_impulse as _radial_impulse
)
from .physics.surface_tension import add_surface_tension
from .scenarios.spawner import Spawner
from .solver import FluidSolver, SolverKind


class ParticleFluidSimulation(FluidSolver):
    """Interactive 2-D SPH fluid with a penalty collision pass."""

    kind = SolverKind.PARTICLE

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config if config is not None else SimulationConfig()

        # ---------- logger -------------------------------------------------
        self.logger = logging.getLogger(f"ParticleFluid_{id(self)}")
        self.logger.setLevel(getattr(logging, str(self.config.log_level).upper(), logging.INFO))
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)

        # ---------- state --------------------------------------------------
        self.arrays = ParticleArrays.allocate(self.config.max_particles)
        self.n_active = 0
        self.kernels = SmoothingKernels(self.config.smoothing_radius)
        self.spawner = Spawner(self.config)
        self.time = 0.0
        self.step_count = 0

        # One-step interaction snapshots, last write wins
        self._pointer: Optional[PointerForce] = None
        self._external_x: Optional[np.ndarray] = None
        self._external_y: Optional[np.ndarray] = None

        self._last_contacts = 0
        self._last_wall_contacts = 0
        self._last_surface_particles = 0

        self.logger.debug(
            "Particle fluid: capacity %d, h=%.1f, backend %s",
            self.config.max_particles, self.config.smoothing_radius, self.config.backend
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def particles(self) -> ParticleSnapshot:
        """Read-only view of the active particles for renderers."""
        return self.arrays.snapshot(self.n_active)

    @property
    def domain_size(self):
        return self.config.domain_size

    @property
    def capacity(self) -> int:
        return min(self.arrays.capacity, self.config.max_particles)

    @property
    def stats(self) -> Dict[str, Any]:
        n = self.n_active
        density = self.arrays.density[:n]
        return {
            "time": self.time,
            "steps": self.step_count,
            "particles": n,
            "capacity": self.capacity,
            "contacts": self._last_contacts,
            "wall_contacts": self._last_wall_contacts,
            "surface_particles": self._last_surface_particles,
            "mean_density": float(density.mean()) if n else 0.0,
            "max_density": float(density.max()) if n else 0.0,
            "kinetic_energy": self.arrays.kinetic_energy(n),
            "spawn_failures": self.spawner.failed_attempts,
            "backend": self.config.backend,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self):
        """Remove every particle and restart the clock and the spawner."""
        self.arrays.clear(self.n_active)
        self.n_active = 0
        self.spawner.reset()
        self.time = 0.0
        self.step_count = 0
        self._pointer = None
        self._external_x = None
        self._external_y = None
        self.logger.info("Simulation reset")

    def on_resize(self, width: float, height: float):
        """Adopt a new domain size and clamp every particle into it.

        Raises:
            ValueError: If either extent is not a positive finite number
        """
        for name, value in (("width", width), ("height", height)):
            if not (math.isfinite(value) and value > 0):
                raise ValueError(f"Domain {name} must be positive, got {value}")
        self.config = self.config.replace(domain_width=float(width), domain_height=float(height))
        self.spawner.config = self.config
        apply_boundary_clamp(self.arrays, self.n_active, self.config.domain_size,
                             self.config.boundary_restitution, self.config.floor_friction)
        self.logger.debug("Domain resized to %.0f x %.0f", width, height)

    def set_backend(self, backend: str) -> bool:
        """Switch the compute backend for subsequent steps.

        Unknown or unavailable names keep the current backend.
        """
        available = list_backends()
        if not available.get(backend, False):
            warnings.warn(f"Backend {backend} not available, keeping {self.config.backend}")
            return False
        self.config = self.config.replace(backend=backend)
        self.logger.info("Backend set to: %s", backend)
        return True

    def add_particle(self, x: float, y: float, vx: float = 0.0, vy: float = 0.0,
                     radius: Optional[float] = None) -> Optional[int]:
        """Insert one particle directly.

        Returns:
            Index of the new particle, or None when at capacity
        """
        if self.n_active >= self.capacity:
            return None
        if radius is None:
            radius = self.config.particle_radius
        index = self.n_active
        self.arrays.set_particle(index, x, y, vx, vy, radius, self.config.particle_mass(radius))
        self.n_active += 1
        return index

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def apply_interaction(self, ax: float, ay: float, bx: float, by: float):
        """Drag from A to B pushes the particles around B."""
        apply_drag_interaction(self.arrays, self.n_active, ax, ay, bx, by,
                               self.config.interaction_radius,
                               self.config.interaction_strength)

    def apply_radial_impulse(self, cx: float, cy: float, radius: float, strength: float):
        _radial_impulse(self.arrays, self.n_active, cx, cy, radius, strength)

    def set_pointer_force(self, x: float, y: float, radius: Optional[float] = None,
                          strength: float = 0.0):
        """Attract (positive) or repel (negative) during the next step only."""
        if radius is None:
            radius = self.config.interaction_radius
        self._pointer = PointerForce(float(x), float(y), float(radius), float(strength))

    def set_external_forces(self, force_x: np.ndarray, force_y: np.ndarray):
        """Per-particle forces added during the next step only.

        Raises:
            ValueError: If either array does not match the active particle count
        """
        force_x = np.asarray(force_x, dtype=np.float64)
        force_y = np.asarray(force_y, dtype=np.float64)
        expected = (self.n_active,)
        if force_x.shape != expected or force_y.shape != expected:
            raise ValueError(
                f"External forces must have shape {expected}, "
                f"got {force_x.shape} and {force_y.shape}"
            )
        self._external_x = force_x.copy()
        self._external_y = force_y.copy()

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self, dt: float):
        """Advance the fluid by ``dt`` seconds (clamped to ``max_dt``).

        Raises:
            ValueError: If ``dt`` is negative or not finite
        """
        if not math.isfinite(dt) or dt < 0:
            raise ValueError(f"dt must be a non-negative finite number, got {dt}")
        if dt == 0:
            return
        dt = min(dt, self.config.max_dt)

        self.n_active = self.spawner.spawn(self.arrays, self.n_active, self.config.domain_size)

        external_x, external_y = self._padded_external_forces()
        sub_dt = dt / self.config.substeps
        self._last_contacts = 0
        self._last_wall_contacts = 0
        for _ in range(self.config.substeps):
            self._substep(sub_dt, external_x, external_y)

        self._pointer = None
        self._external_x = None
        self._external_y = None
        self.time += dt
        self.step_count += 1

    def _padded_external_forces(self):
        """External forces extended with zeros for particles spawned this step."""
        if self._external_x is None:
            return None, None
        n = self.n_active
        k = min(self._external_x.shape[0], n)
        fx = np.zeros(n, dtype=np.float64)
        fy = np.zeros(n, dtype=np.float64)
        fx[:k] = self._external_x[:k]
        fy[:k] = self._external_y[:k]
        return fx, fy

    def _substep(self, dt: float, external_x: Optional[np.ndarray],
                 external_y: Optional[np.ndarray]):
        cfg = self.config
        n = self.n_active
        if n == 0:
            return
        particles = self.arrays
        domain = cfg.domain_size
        backend = cfg.backend

        neighbors = api.find_neighbors(particles, n, self.kernels.h, domain, backend=backend)
        api.compute_density_pressure(particles, self.kernels, neighbors, n,
                                     cfg.stiffness, cfg.rest_density, cfg.clamp_pressure,
                                     backend=backend)

        forces = api.compute_forces(particles, self.kernels, neighbors, n,
                                    cfg.gravity, cfg.viscosity, backend=backend)
        self._last_surface_particles = add_surface_tension(
            forces, particles, self.kernels, neighbors, n,
            cfg.surface_tension, cfg.surface_threshold
        )
        add_pointer_force(forces, particles, n, self._pointer, cfg.gravity)
        if external_x is not None:
            forces.add(external_x, external_y)

        integrate_semi_implicit_euler(particles, n, forces.force_x, forces.force_y,
                                      dt, cfg.damping, cfg.max_speed)

        self._last_contacts += api.resolve_collisions(
            particles, n, domain, cfg.restitution, cfg.collision_iterations, backend=backend
        )
        self._last_wall_contacts += apply_boundary_clamp(
            particles, n, domain, cfg.boundary_restitution, cfg.floor_friction
        )
