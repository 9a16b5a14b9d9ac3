"""Pytest configuration for sphfluid tests."""
import os
from pathlib import Path
from typing import Any

import numpy as np
import pytest

from sphfluid.config import SimulationConfig
from sphfluid.core.backend import list_backends
from sphfluid.core.particles import ParticleArrays


def pytest_configure(config):
    """Configure pytest environment for sphfluid tests."""
    # Set SDL to use dummy video driver for headless operation
    os.environ['SDL_VIDEODRIVER'] = 'dummy'
    os.environ['SDL_AUDIODRIVER'] = 'dummy'


def pytest_ignore_collect(collection_path: Path, config: Any) -> bool:
    """Ignore paths that cannot be stat'ed (broken symlinks on shared checkouts)."""
    try:
        _ = collection_path.is_dir()
    except OSError:
        return True
    return False


@pytest.fixture(params=['cpu', 'numba'])
def backend(request):
    """Parametrize tests over all available backends."""
    if not list_backends().get(request.param, False):
        pytest.skip(f"Backend {request.param} not available")
    return request.param


@pytest.fixture
def quiet_config():
    """Defaults without spawning, gravity or debug output."""
    return SimulationConfig(spawn_rate=0, gravity=0.0, log_level="WARNING")


def _make_particles(positions, radius=4.0, mass=None, velocities=None, capacity=None):
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
    n = positions.shape[0]
    particles = ParticleArrays.allocate(capacity if capacity is not None else max(n, 1))
    for i, (x, y) in enumerate(positions):
        vx, vy = (0.0, 0.0) if velocities is None else velocities[i]
        m = np.pi * radius * radius if mass is None else mass
        particles.set_particle(i, x, y, vx, vy, radius, m)
    return particles, n


@pytest.fixture
def make_particles():
    """Factory: particle store holding the given (x, y) positions."""
    return _make_particles
