"""Particle spawning, presets and initial layouts."""

from .spawner import Spawner
from .presets import (
    PRESETS,
    get_preset,
    list_presets,
    generate_hexagonal_block,
    dam_break_positions
)

__all__ = [
    'Spawner',
    'PRESETS',
    'get_preset',
    'list_presets',
    'generate_hexagonal_block',
    'dam_break_positions'
]
