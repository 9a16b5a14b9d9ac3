"""
Pointer interaction tests: drags, radial impulses, pointer forces and
one-step external forces.
"""

import numpy as np
import pytest
from sphfluid.config import SimulationConfig
from sphfluid.physics.forces import ForceBuffer
from sphfluid.physics.interaction import (
    PointerForce, add_pointer_force, apply_drag_interaction, apply_radial_impulse
)
from sphfluid.simulation import ParticleFluidSimulation


class TestDrag:
    """Velocity perturbation along a drag."""

    def test_falloff(self, make_particles):
        particles, n = make_particles([(100.0, 100.0), (130.0, 100.0), (300.0, 100.0)])
        affected = apply_drag_interaction(particles, n, 90.0, 100.0, 100.0, 100.0,
                                          radius=60.0, strength=1.0)
        assert affected == 2
        np.testing.assert_allclose(particles.velocity_x[:n], [10.0, 5.0, 0.0])
        np.testing.assert_allclose(particles.velocity_y[:n], 0.0)

    def test_simulation_uses_config(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config.replace(interaction_strength=2.0))
        sim.add_particle(100.0, 100.0)
        sim.apply_interaction(100.0, 90.0, 100.0, 100.0)
        assert sim.particles.velocity_y[0] == pytest.approx(20.0)


class TestRadialImpulse:
    """Outward and inward kicks."""

    def test_outward(self, make_particles):
        particles, n = make_particles([(110.0, 100.0), (100.0, 80.0)])
        assert apply_radial_impulse(particles, n, 100.0, 100.0, 50.0, 100.0) == 2
        assert particles.velocity_x[0] == pytest.approx(80.0)
        assert particles.velocity_y[0] == pytest.approx(0.0)
        assert particles.velocity_y[1] == pytest.approx(-60.0)

    def test_inward(self, make_particles):
        particles, n = make_particles([(110.0, 100.0)])
        apply_radial_impulse(particles, n, 100.0, 100.0, 50.0, -100.0)
        assert particles.velocity_x[0] == pytest.approx(-80.0)

    def test_centre_particle_skipped(self, make_particles):
        particles, n = make_particles([(100.0, 100.0)])
        assert apply_radial_impulse(particles, n, 100.0, 100.0, 50.0, 100.0) == 0
        assert particles.velocity_x[0] == 0.0

    def test_rejects_bad_radius(self, make_particles):
        particles, n = make_particles([(100.0, 100.0)])
        with pytest.raises(ValueError):
            apply_radial_impulse(particles, n, 0.0, 0.0, 0.0, 1.0)


class TestPointerForce:
    """Attraction and repulsion forces."""

    def test_attracts(self, make_particles):
        particles, n = make_particles([(150.0, 100.0)], mass=1.0)
        forces = ForceBuffer.zeros(n)
        pointer = PointerForce(100.0, 100.0, 60.0, 500.0)
        assert add_pointer_force(forces, particles, n, pointer) == 1
        assert forces.force_x[0] < 0.0

    def test_repels(self, make_particles):
        particles, n = make_particles([(150.0, 100.0)], mass=1.0)
        forces = ForceBuffer.zeros(n)
        add_pointer_force(forces, particles, n, PointerForce(100.0, 100.0, 60.0, -500.0))
        assert forces.force_x[0] > 0.0

    def test_outside_radius(self, make_particles):
        particles, n = make_particles([(300.0, 100.0)], mass=1.0)
        forces = ForceBuffer.zeros(n)
        assert add_pointer_force(forces, particles, n, PointerForce(100.0, 100.0, 60.0, 500.0)) == 0

    def test_none(self, make_particles):
        particles, n = make_particles([(100.0, 100.0)])
        assert add_pointer_force(ForceBuffer.zeros(n), particles, n, None) == 0

    def test_rejects_bad_radius(self):
        with pytest.raises(ValueError):
            PointerForce(0.0, 0.0, -1.0, 1.0)

    def test_consumed_after_one_step(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config.replace(damping=1.0))
        sim.add_particle(150.0, 100.0)
        sim.set_pointer_force(100.0, 100.0, radius=60.0, strength=500.0)
        sim.step(0.01)
        vx = sim.particles.velocity_x[0]
        assert vx < 0.0
        sim.step(0.01)
        assert sim.particles.velocity_x[0] == pytest.approx(vx)


class TestExternalForces:
    """Caller-supplied per-particle forces."""

    def test_applied_for_one_step(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        sim.add_particle(100.0, 100.0)
        mass = sim.arrays.mass[0]
        sim.set_external_forces(np.array([mass * 100.0]), np.array([0.0]))
        sim.step(0.01)
        assert sim.particles.velocity_x[0] == pytest.approx(100.0 * 0.01 * 0.97)
        sim.step(0.01)
        assert sim.particles.velocity_x[0] == pytest.approx(100.0 * 0.01 * 0.97**2)

    def test_shape_mismatch(self, quiet_config):
        sim = ParticleFluidSimulation(quiet_config)
        sim.add_particle(100.0, 100.0)
        with pytest.raises(ValueError):
            sim.set_external_forces(np.zeros(2), np.zeros(2))

    def test_new_particles_get_no_external_force(self):
        config = SimulationConfig(gravity=0.0, seed=5, log_level="WARNING")
        sim = ParticleFluidSimulation(config)
        sim.set_external_forces(np.zeros(0), np.zeros(0))
        sim.step(0.01)
        assert sim.n_active == config.spawn_rate
        np.testing.assert_allclose(sim.particles.velocity_x, 0.0)
