"""
Simulation configuration.

All tunables are collected in one dataclass that is validated on
construction. A malformed value (``h <= 0``, damping outside ``(0, 1]``,
...) would otherwise surface much later as silent NaN propagation, so it is
rejected here with a descriptive ``ValueError``.
"""

import math
import numbers
from dataclasses import dataclass, fields, replace as dc_replace
from typing import Any, Dict, Mapping, Optional, Tuple


MASS_MODELS = ("area", "square")


@dataclass
class SimulationConfig:
    """Constants for one particle fluid simulation.

    Units are screen units (pixels) and seconds; +y points down, so a
    positive ``gravity`` pulls particles towards the bottom of the domain.
    """
    # SPH
    smoothing_radius: float = 20.0
    rest_density: float = 1000.0
    stiffness: float = 800.0
    viscosity: float = 250.0
    gravity: float = 300.0
    clamp_pressure: bool = True

    # Surface tension (disabled when 0)
    surface_tension: float = 0.0
    surface_threshold: float = 0.1

    # Integration
    damping: float = 0.97
    substeps: int = 1
    max_dt: float = 1.0 / 60.0
    max_speed: Optional[float] = None

    # Collisions and walls
    restitution: float = 0.3
    collision_iterations: int = 3
    boundary_restitution: float = 0.5
    floor_friction: float = 0.98

    # Domain
    domain_width: float = 800.0
    domain_height: float = 600.0

    # Particles and spawning
    max_particles: int = 1500
    particle_radius: float = 4.0
    radius_jitter: float = 0.0
    mass_model: str = "area"
    spawn_rate: int = 4
    spawn_attempts: int = 8
    spawn_region: Optional[Tuple[float, float, float, float]] = None
    spawn_velocity: Tuple[float, float] = (0.0, 0.0)
    seed: Optional[int] = None

    # Pointer interaction
    interaction_radius: float = 60.0
    interaction_strength: float = 1.0

    # Runtime
    backend: str = "cpu"
    log_level: str = "INFO"

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ``ValueError`` describing the first invalid option."""
        _require_positive("smoothing_radius", self.smoothing_radius)
        _require_positive("rest_density", self.rest_density, allow_zero=True)
        _require_positive("stiffness", self.stiffness, allow_zero=True)
        _require_positive("viscosity", self.viscosity, allow_zero=True)
        _require_finite("gravity", self.gravity)
        _require_positive("surface_tension", self.surface_tension, allow_zero=True)
        _require_positive("surface_threshold", self.surface_threshold, allow_zero=True)

        if not 0.0 < self.damping <= 1.0:
            raise ValueError(f"damping must be in (0, 1], got {self.damping}")
        _require_int("substeps", self.substeps, 1, 8)
        _require_positive("max_dt", self.max_dt)
        if self.max_speed is not None:
            _require_positive("max_speed", self.max_speed)

        for name in ("restitution", "boundary_restitution", "floor_friction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        _require_int("collision_iterations", self.collision_iterations, 1, 16)

        _require_positive("domain_width", self.domain_width)
        _require_positive("domain_height", self.domain_height)

        _require_int("max_particles", self.max_particles, 0)
        _require_positive("particle_radius", self.particle_radius)
        if not 0.0 <= self.radius_jitter < 1.0:
            raise ValueError(f"radius_jitter must be in [0, 1), got {self.radius_jitter}")
        if self.mass_model not in MASS_MODELS:
            raise ValueError(f"mass_model must be one of {MASS_MODELS}, got {self.mass_model!r}")
        _require_int("spawn_rate", self.spawn_rate, 0)
        _require_int("spawn_attempts", self.spawn_attempts, 1)
        if self.spawn_region is not None:
            if len(self.spawn_region) != 4:
                raise ValueError("spawn_region must be (x_min, y_min, x_max, y_max)")
            x0, y0, x1, y1 = self.spawn_region
            if x1 < x0 or y1 < y0:
                raise ValueError(f"spawn_region is inverted: {self.spawn_region}")
        if len(self.spawn_velocity) != 2:
            raise ValueError("spawn_velocity must be a (vx, vy) pair")

        _require_positive("interaction_radius", self.interaction_radius)
        _require_finite("interaction_strength", self.interaction_strength)

        if self.backend not in ("cpu", "numba"):
            raise ValueError(f"backend must be 'cpu' or 'numba', got {self.backend!r}")

    @property
    def domain_size(self) -> Tuple[float, float]:
        return (self.domain_width, self.domain_height)

    def particle_mass(self, radius):
        """Mass for a particle of the given radius (scalar or array)."""
        if self.mass_model == "square":
            return radius * radius
        return math.pi * radius * radius

    def replace(self, **changes) -> "SimulationConfig":
        """Return a validated copy with ``changes`` applied."""
        return dc_replace(self, **changes)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SimulationConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration options: {', '.join(unknown)}")
        return cls(**dict(values))

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _require_finite(name: str, value: float):
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")


def _require_int(name: str, value, low: int, high: Optional[int] = None):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < low or (high is not None and value > high):
        bounds = f"between {low} and {high}" if high is not None else f">= {low}"
        raise ValueError(f"{name} must be {bounds}, got {value}")

def _require_positive(name: str, value: float, allow_zero: bool = False):
    _require_finite(name, value)
    if allow_zero:
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")
    elif value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
