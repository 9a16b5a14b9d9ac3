"""
Configuration and preset tests.
"""

import math
import numpy as np
import pytest
from sphfluid.config import SimulationConfig
from sphfluid.scenarios.presets import (
    dam_break_positions, generate_hexagonal_block, get_preset, list_presets
)


class TestSimulationConfig:
    """Validation and helpers."""

    def test_defaults(self):
        config = SimulationConfig()
        assert config.smoothing_radius == 20.0
        assert config.damping == 0.97
        assert config.domain_size == (800.0, 600.0)
        assert config.backend == "cpu"

    @pytest.mark.parametrize("changes", [
        {"smoothing_radius": 0.0},
        {"smoothing_radius": float("nan")},
        {"damping": 0.0},
        {"damping": 1.5},
        {"substeps": 0},
        {"substeps": 9},
        {"collision_iterations": 0},
        {"collision_iterations": 17},
        {"restitution": -0.1},
        {"floor_friction": 1.1},
        {"domain_width": 0.0},
        {"max_particles": -1},
        {"radius_jitter": 1.0},
        {"mass_model": "volume"},
        {"spawn_region": (10.0, 10.0, 5.0, 20.0)},
        {"interaction_radius": 0.0},
        {"backend": "gpu"},
    ])
    def test_invalid(self, changes):
        with pytest.raises(ValueError):
            SimulationConfig(**changes)

    @pytest.mark.parametrize("name", ["substeps", "collision_iterations", "max_particles",
                                      "spawn_rate", "spawn_attempts"])
    @pytest.mark.parametrize("value", [2.5, 2.0, True, "3"])
    def test_counts_must_be_integers(self, name, value):
        with pytest.raises(ValueError, match=name):
            SimulationConfig(**{name: value})

    def test_numpy_integer_counts_accepted(self):
        config = SimulationConfig(substeps=np.int64(2), spawn_rate=np.int32(3))
        assert config.substeps == 2
        assert config.spawn_rate == 3

    def test_replace_validates(self):
        config = SimulationConfig()
        assert config.replace(stiffness=50.0).stiffness == 50.0
        assert config.stiffness == 800.0
        with pytest.raises(ValueError):
            config.replace(max_dt=-1.0)

    def test_from_mapping(self):
        config = SimulationConfig.from_mapping({"gravity": 0.0, "seed": 3})
        assert config.gravity == 0.0
        assert config.seed == 3
        with pytest.raises(ValueError, match="bogus"):
            SimulationConfig.from_mapping({"bogus": 1})

    def test_to_dict_round_trip(self):
        config = SimulationConfig(viscosity=10.0)
        assert SimulationConfig.from_mapping(config.to_dict()) == config

    def test_particle_mass(self):
        assert SimulationConfig().particle_mass(2.0) == pytest.approx(4.0 * math.pi)
        assert SimulationConfig(mass_model="square").particle_mass(2.0) == 4.0
        radii = np.array([1.0, 2.0])
        np.testing.assert_allclose(SimulationConfig().particle_mass(radii), np.pi * radii**2)


class TestPresets:
    """Named configurations."""

    def test_list(self):
        assert list_presets() == ["enhanced", "splash", "viscous", "water"]

    def test_overrides(self):
        config = get_preset("viscous", seed=7)
        assert config.viscosity == 2000.0
        assert config.seed == 7

    def test_water_is_default(self):
        assert get_preset("water") == SimulationConfig()

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_preset("lava")


class TestLayouts:
    """Initial particle arrangements."""

    def test_hexagonal_spacing(self):
        pos = generate_hexagonal_block(0.0, 0.0, 40.0, 40.0, spacing=8.0)
        assert len(pos) > 0
        d = np.hypot(pos[:, None, 0] - pos[None, :, 0], pos[:, None, 1] - pos[None, :, 1])
        np.fill_diagonal(d, np.inf)
        assert d.min() == pytest.approx(8.0)
        assert pos[:, 0].max() <= 40.0
        assert pos[:, 1].max() <= 40.0

    def test_empty_block(self):
        assert generate_hexagonal_block(10.0, 10.0, 0.0, 0.0, 5.0).shape == (0, 2)

    def test_bad_spacing(self):
        with pytest.raises(ValueError):
            generate_hexagonal_block(0.0, 0.0, 1.0, 1.0, 0.0)

    def test_dam_break_inside_domain(self):
        config = SimulationConfig(domain_width=200.0, domain_height=100.0)
        pos = dam_break_positions(config)
        r = config.particle_radius
        assert len(pos) > 0
        assert pos[:, 0].min() >= r
        assert pos[:, 0].max() <= 60.0 - r
        assert pos[:, 1].max() <= 100.0 - r
