"""
Particle storage using the Structure-of-Arrays (SoA) pattern.

Arrays are pre-allocated to the configured capacity and only the first
``n_active`` entries are live. This keeps every stage a slice operation:
- no reallocation while particles are spawned
- contiguous memory for the NumPy and Numba backends
- reset is just ``n_active = 0``
"""

import numpy as np
from dataclasses import dataclass
from typing import NamedTuple


class ParticleSnapshot(NamedTuple):
    """Read-only view of the live particles for renderers."""
    position_x: np.ndarray
    position_y: np.ndarray
    velocity_x: np.ndarray
    velocity_y: np.ndarray
    radius: np.ndarray
    density: np.ndarray
    pressure: np.ndarray

    @property
    def count(self) -> int:  # type: ignore[override]
        return int(self.position_x.shape[0])


@dataclass
class ParticleArrays:
    """Structure of Arrays for all particle state.

    ``radius`` and ``mass`` are fixed at creation. ``density`` and
    ``pressure`` hold the latest computed snapshot and are overwritten by the
    density stage every step.
    """
    # Primary state (capacity entries)
    position_x: np.ndarray      # shape: (N,) float64
    position_y: np.ndarray      # shape: (N,) float64
    velocity_x: np.ndarray      # shape: (N,) float64
    velocity_y: np.ndarray      # shape: (N,) float64

    # Fixed per-particle properties
    radius: np.ndarray          # shape: (N,) float64
    mass: np.ndarray            # shape: (N,) float64

    # Recomputed every step
    density: np.ndarray         # shape: (N,) float64
    pressure: np.ndarray        # shape: (N,) float64

    @staticmethod
    def allocate(max_particles: int) -> 'ParticleArrays':
        """Pre-allocate arrays for ``max_particles`` particles.

        Args:
            max_particles: Capacity of the store

        Returns:
            Zero-filled ParticleArrays instance
        """
        def zeros():
            return np.zeros(max_particles, dtype=np.float64)

        return ParticleArrays(
            position_x=zeros(),
            position_y=zeros(),
            velocity_x=zeros(),
            velocity_y=zeros(),
            radius=zeros(),
            mass=zeros(),
            density=zeros(),
            pressure=zeros(),
        )

    @property
    def capacity(self) -> int:
        return int(self.position_x.shape[0])

    def set_particle(self, index: int, x: float, y: float, vx: float, vy: float,
                     radius: float, mass: float):
        """Write the full state of one particle slot."""
        if mass <= 0:
            raise ValueError(f"Particle mass must be positive, got {mass}")
        self.position_x[index] = x
        self.position_y[index] = y
        self.velocity_x[index] = vx
        self.velocity_y[index] = vy
        self.radius[index] = radius
        self.mass[index] = mass
        self.density[index] = 0.0
        self.pressure[index] = 0.0

    def clear(self, n_active: int):
        """Zero the first ``n_active`` slots."""
        for array in (self.position_x, self.position_y, self.velocity_x,
                      self.velocity_y, self.radius, self.mass,
                      self.density, self.pressure):
            array[:n_active] = 0.0

    def snapshot(self, n_active: int) -> ParticleSnapshot:
        """Read-only views of the live particles."""
        views = []
        for array in (self.position_x, self.position_y, self.velocity_x,
                      self.velocity_y, self.radius, self.density, self.pressure):
            view = array[:n_active].view()
            view.flags.writeable = False
            views.append(view)
        return ParticleSnapshot(*views)

    def total_momentum(self, n_active: int):
        """(px, py) summed over the live particles."""
        m = self.mass[:n_active]
        return (float(np.sum(m * self.velocity_x[:n_active])),
                float(np.sum(m * self.velocity_y[:n_active])))

    def kinetic_energy(self, n_active: int) -> float:
        m = self.mass[:n_active]
        v2 = self.velocity_x[:n_active]**2 + self.velocity_y[:n_active]**2
        return float(0.5 * np.sum(m * v2))
