"""
Collision resolver tests: separation, impulse exchange, convergence and
backend agreement.
"""

import numpy as np
import pytest
import sphfluid
from sphfluid.core.particles import ParticleArrays
from sphfluid.physics.collisions import max_penetration, resolve_collisions, resolve_pair
from sphfluid.scenarios.presets import generate_hexagonal_block

DOMAIN = (400.0, 300.0)


class TestResolvePair:
    """Single contact."""

    def test_symmetric_separation(self, make_particles):
        particles, n = make_particles([(100.0, 100.0), (107.0, 100.0)])
        assert resolve_pair(particles, 0, 1, restitution=0.3)
        assert particles.position_x[0] == pytest.approx(99.5)
        assert particles.position_x[1] == pytest.approx(107.5)
        np.testing.assert_allclose(particles.position_y[:n], 100.0)
        # At rest: no impulse
        np.testing.assert_allclose(particles.velocity_x[:n], 0.0)

    def test_heavier_particle_moves_less(self, make_particles):
        particles, n = make_particles([(100.0, 100.0), (107.0, 100.0)])
        particles.mass[0] = 3.0
        particles.mass[1] = 1.0
        resolve_pair(particles, 0, 1, 0.0)
        assert particles.position_x[0] == pytest.approx(99.75)
        assert particles.position_x[1] == pytest.approx(107.75)

    @pytest.mark.parametrize("restitution", [0.0, 0.3, 1.0])
    def test_head_on_exchange(self, make_particles, restitution):
        particles, n = make_particles([(100.0, 100.0), (107.0, 100.0)],
                                      velocities=[(5.0, 0.0), (-3.0, 0.0)])
        p_before = particles.total_momentum(n)
        rel_before = particles.velocity_x[1] - particles.velocity_x[0]

        resolve_pair(particles, 0, 1, restitution)

        rel_after = particles.velocity_x[1] - particles.velocity_x[0]
        assert rel_after == pytest.approx(-restitution * rel_before)
        p_after = particles.total_momentum(n)
        assert p_after[0] == pytest.approx(p_before[0])
        assert p_after[1] == pytest.approx(p_before[1], abs=1e-12)

    def test_separating_pair_keeps_velocity(self, make_particles):
        particles, n = make_particles([(100.0, 100.0), (107.0, 100.0)],
                                      velocities=[(-1.0, 0.0), (1.0, 0.0)])
        resolve_pair(particles, 0, 1, 0.5)
        np.testing.assert_allclose(particles.velocity_x[:n], [-1.0, 1.0])

    def test_coincident_pair_skipped(self, make_particles):
        particles, n = make_particles([(100.0, 100.0), (100.0, 100.0)])
        assert not resolve_pair(particles, 0, 1, 0.5)
        np.testing.assert_allclose(particles.position_x[:n], 100.0)

    def test_touching_pair_not_in_contact(self, make_particles):
        particles, n = make_particles([(100.0, 100.0), (108.0, 100.0)])
        assert not resolve_pair(particles, 0, 1, 0.5)


class TestResolveCollisions:
    """Iterated pass over the whole set."""

    def test_converges_for_compressed_block(self):
        positions = generate_hexagonal_block(100.0, 100.0, 140.0, 140.0, spacing=7.0)
        n = len(positions)
        particles = ParticleArrays.allocate(n)
        for i, (x, y) in enumerate(positions):
            particles.set_particle(i, x, y, 0.0, 0.0, 4.0, np.pi * 16.0)

        penetrations = [max_penetration(particles, n, DOMAIN)]
        for _ in range(5):
            resolve_collisions(particles, n, DOMAIN, restitution=0.3, iterations=8)
            penetrations.append(max_penetration(particles, n, DOMAIN))

        assert penetrations[0] == pytest.approx(1.0)
        assert penetrations[-1] < 0.5 * penetrations[0]

    def test_momentum_conserved(self):
        rng = np.random.default_rng(5)
        n = 80
        particles = ParticleArrays.allocate(n)
        for i in range(n):
            particles.set_particle(i, rng.uniform(100, 160), rng.uniform(100, 160),
                                   rng.normal(scale=5.0), rng.normal(scale=5.0),
                                   4.0, rng.uniform(20.0, 80.0))
        before = particles.total_momentum(n)
        contacts = resolve_collisions(particles, n, DOMAIN, restitution=0.5, iterations=3)
        after = particles.total_momentum(n)
        assert contacts > 0
        assert after[0] == pytest.approx(before[0], abs=1e-8)
        assert after[1] == pytest.approx(before[1], abs=1e-8)

    def test_no_contacts(self, make_particles):
        particles, n = make_particles([(100.0, 100.0), (200.0, 100.0)])
        assert resolve_collisions(particles, n, DOMAIN, 0.3, 3) == 0

    def test_single_particle(self, make_particles):
        particles, n = make_particles([(100.0, 100.0)])
        assert resolve_collisions(particles, n, DOMAIN, 0.3, 3) == 0

    def test_backend_agreement_on_pair(self, make_particles, backend):
        particles, n = make_particles([(100.0, 100.0), (107.0, 100.0)],
                                      velocities=[(5.0, 0.0), (-3.0, 0.0)])
        contacts = sphfluid.resolve_collisions(particles, n, DOMAIN, 0.3, 3, backend=backend)
        assert contacts == 1
        np.testing.assert_allclose(particles.position_x[:n], [99.5, 107.5])
        np.testing.assert_allclose(particles.velocity_x[:n], [-0.2, 2.2])
