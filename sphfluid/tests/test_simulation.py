"""
End-to-end tests of the particle fluid step loop.
"""

import numpy as np
import pytest
from sphfluid.config import SimulationConfig
from sphfluid.physics.boundaries import is_contained
from sphfluid.scenarios.presets import get_preset
from sphfluid.simulation import ParticleFluidSimulation
from sphfluid.solver import SolverKind, create_solver


class TestScenarios:
    """Reference scenarios."""

    def test_falling_particle(self):
        sim = ParticleFluidSimulation(SimulationConfig(spawn_rate=0, log_level="WARNING"))
        sim.add_particle(100.0, 20.0)
        sim.step(0.016)

        p = sim.particles
        assert p.velocity_y[0] == pytest.approx(300.0 * 0.016 * 0.97)
        assert p.velocity_x[0] == 0.0
        assert p.position_x[0] == 100.0
        assert p.position_y[0] == pytest.approx(20.0 + 300.0 * 0.016 * 0.016)
        assert p.pressure[0] == 0.0

    def test_overlapping_pair_separated(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        sim.add_particle(100.0, 100.0)
        sim.add_particle(107.0, 100.0)
        sim.step(0.016)

        p = sim.particles
        gap = p.position_x[1] - p.position_x[0]
        assert gap == pytest.approx(8.0)
        # Symmetric about the initial midpoint
        assert (p.position_x[0] + p.position_x[1]) / 2 == pytest.approx(103.5)
        np.testing.assert_allclose(p.position_y, 100.0)

    def test_deeply_overlapping_pair_one_iteration(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config.replace(collision_iterations=1))
        sim.add_particle(100.0, 100.0, radius=8.0)
        sim.add_particle(101.0, 100.0, radius=8.0)
        sim.step(0.016)

        p = sim.particles
        assert p.position_x[1] - p.position_x[0] == pytest.approx(16.0)
        assert (p.position_x[0] + p.position_x[1]) / 2 == pytest.approx(100.5)
        np.testing.assert_allclose(p.position_y, 100.0)

    def test_pouring_fluid_stays_contained(self):
        config = SimulationConfig(max_particles=120, spawn_rate=6, seed=2, log_level="WARNING",
                                  domain_width=200.0, domain_height=150.0)
        sim = ParticleFluidSimulation(config)
        for _ in range(60):
            sim.step(1.0 / 60.0)
            assert sim.n_active <= 120
            assert is_contained(sim.arrays, sim.n_active, config.domain_size)
        p = sim.particles
        assert np.all(np.isfinite(p.position_x))
        assert np.all(np.isfinite(p.velocity_y))
        assert np.all(p.density > 0)
        assert np.all(p.pressure >= 0)

    @pytest.mark.parametrize("preset", ["water", "enhanced", "viscous", "splash"])
    def test_presets_run(self, preset):
        config = get_preset(preset, max_particles=60, seed=4, log_level="WARNING",
                            domain_width=200.0, domain_height=150.0)
        sim = create_solver(SolverKind.PARTICLE, config)
        for _ in range(30):
            sim.step(1.0 / 60.0)
        assert 0 < sim.n_active <= 60
        assert is_contained(sim.arrays, sim.n_active, config.domain_size)

    def test_numba_backend_runs(self, backend):
        config = SimulationConfig(max_particles=60, seed=4, backend=backend, log_level="WARNING",
                                  domain_width=200.0, domain_height=150.0)
        sim = ParticleFluidSimulation(config)
        for _ in range(20):
            sim.step(1.0 / 60.0)
        assert sim.stats["backend"] == backend
        assert is_contained(sim.arrays, sim.n_active, config.domain_size)


class TestStepContract:
    """Time step handling."""

    def test_negative_dt(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        with pytest.raises(ValueError):
            sim.step(-0.01)

    def test_nan_dt(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        with pytest.raises(ValueError):
            sim.step(float("nan"))

    def test_zero_dt_is_noop(self):
        sim = ParticleFluidSimulation(SimulationConfig(log_level="WARNING"))
        sim.step(0.0)
        assert sim.n_active == 0
        assert sim.time == 0.0

    def test_dt_clamped(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        sim.step(1.0)
        assert sim.time == pytest.approx(quiet_config.max_dt)

    def test_substeps_split_dt(self):
        config = SimulationConfig(spawn_rate=0, substeps=2, damping=1.0, log_level="WARNING")
        sim = ParticleFluidSimulation(config)
        sim.add_particle(100.0, 20.0)
        sim.step(0.016)
        assert sim.particles.velocity_y[0] == pytest.approx(300.0 * 0.016)
        # Two half steps: y += g·(dt/2)² + 2·g·(dt/2)²
        assert sim.particles.position_y[0] == pytest.approx(20.0 + 3 * 300.0 * 0.008**2)

    def test_count_never_exceeds_capacity(self):
        config = SimulationConfig(max_particles=15, spawn_rate=8, seed=9, log_level="WARNING")
        sim = ParticleFluidSimulation(config)
        for _ in range(10):
            sim.step(1.0 / 60.0)
            assert sim.n_active <= 15
        assert sim.n_active == 15
        assert sim.add_particle(10.0, 10.0) is None

    def test_count_only_grows(self):
        config = SimulationConfig(max_particles=50, seed=9, log_level="WARNING")
        sim = ParticleFluidSimulation(config)
        counts = []
        for _ in range(8):
            sim.step(1.0 / 60.0)
            counts.append(sim.n_active)
        assert counts == sorted(counts)


class TestLifecycle:
    """Reset, resize and direct insertion."""

    def test_reset_clears(self):
        sim = ParticleFluidSimulation(SimulationConfig(seed=1, log_level="WARNING"))
        for _ in range(3):
            sim.step(1.0 / 60.0)
        assert sim.n_active > 0
        sim.reset()
        assert sim.n_active == 0
        assert sim.particles.count == 0
        assert sim.time == 0.0

    def test_reset_replays_same_spawns(self):
        sim = ParticleFluidSimulation(SimulationConfig(seed=1, log_level="WARNING"))
        sim.step(1.0 / 60.0)
        first = sim.particles.position_x.copy()
        sim.reset()
        sim.step(1.0 / 60.0)
        np.testing.assert_allclose(sim.particles.position_x, first)

    def test_add_particle_at_capacity(self):
        sim = ParticleFluidSimulation(SimulationConfig(max_particles=2, spawn_rate=0,
                                                       log_level="WARNING"))
        assert sim.add_particle(10.0, 10.0) == 0
        assert sim.add_particle(30.0, 10.0) == 1
        assert sim.add_particle(50.0, 10.0) is None
        assert sim.n_active == 2

    def test_resize_reclamps(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        sim.add_particle(700.0, 500.0)
        sim.on_resize(400, 300)
        assert sim.domain_size == (400.0, 300.0)
        p = sim.particles
        assert p.position_x[0] == 396.0
        assert p.position_y[0] == 296.0

    @pytest.mark.parametrize("size", [(0, 100), (100, -1), (float("inf"), 100)])
    def test_resize_rejects_bad_extent(self, quiet_config, size):
        sim = ParticleFluidSimulation(quiet_config)
        with pytest.raises(ValueError):
            sim.on_resize(*size)

    def test_snapshot_is_read_only(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        sim.add_particle(10.0, 10.0)
        with pytest.raises(ValueError):
            sim.particles.position_x[0] = 5.0

    def test_stats(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        sim.add_particle(100.0, 100.0)
        sim.add_particle(107.0, 100.0)
        sim.step(0.01)
        stats = sim.stats
        assert stats["particles"] == 2
        assert stats["steps"] == 1
        assert stats["contacts"] == 1
        assert stats["mean_density"] > 0

    def test_set_backend_unknown(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        with pytest.warns(UserWarning):
            assert sim.set_backend("gpu") is False
        assert sim.config.backend == "cpu"
