"""
Named configurations and initial particle layouts.

Presets only override the options that differ from
:class:`~sphfluid.config.SimulationConfig` defaults.
"""

import numpy as np
from typing import Dict, Any, Tuple
from ..config import SimulationConfig


PRESETS: Dict[str, Dict[str, Any]] = {
    # Plain defaults: soft pressure, collisions keep the fluid apart
    "water": {},
    # Color-field surface tension, two substeps for the stiffer forces
    "enhanced": {
        "surface_tension": 0.5,
        "substeps": 2,
        "collision_iterations": 4,
    },
    # Strong velocity smoothing, slow pour
    "viscous": {
        "viscosity": 2000.0,
        "damping": 0.95,
        "spawn_rate": 2,
        "restitution": 0.0,
    },
    # Bouncy contacts and walls
    "splash": {
        "restitution": 0.8,
        "boundary_restitution": 0.8,
        "floor_friction": 1.0,
        "damping": 0.995,
        "spawn_velocity": (0.0, 200.0),
    },
}


def list_presets():
    return sorted(PRESETS)


def get_preset(name: str, **overrides) -> SimulationConfig:
    """Build a validated config from a preset name plus overrides.

    Raises:
        ValueError: If the preset name is unknown
    """
    if name not in PRESETS:
        raise ValueError(f"Unknown preset {name!r}. Choose from: {', '.join(list_presets())}")
    values = dict(PRESETS[name])
    values.update(overrides)
    return SimulationConfig.from_mapping(values)


def generate_hexagonal_block(x_min: float, y_min: float, x_max: float, y_max: float,
                             spacing: float) -> np.ndarray:
    """Generate hexagonal close-packed positions inside a rectangle.

    Args:
        x_min, y_min, x_max, y_max: Rectangle bounds
        spacing: Particle spacing

    Returns:
        Array of (x, y) positions, shape (N, 2)
    """
    if not spacing > 0:
        raise ValueError(f"spacing must be positive, got {spacing}")
    positions = []

    # Hexagonal lattice parameters
    dy = spacing * np.sqrt(3) / 2

    row = 0
    y = y_min
    while y <= y_max:
        x_offset = 0.0 if row % 2 == 0 else spacing / 2
        x = x_min + x_offset
        while x <= x_max:
            positions.append((x, y))
            x += spacing
        row += 1
        y = y_min + row * dy

    if not positions:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array(positions, dtype=np.float64)


def dam_break_positions(config: SimulationConfig, fill_fraction: Tuple[float, float] = (0.3, 0.6)) -> np.ndarray:
    """Block of fluid against the left wall, resting on the floor."""
    r = config.particle_radius
    width = config.domain_width * fill_fraction[0]
    height = config.domain_height * fill_fraction[1]
    return generate_hexagonal_block(r, config.domain_height - height,
                                    width - r, config.domain_height - r,
                                    spacing=2.0 * r)
