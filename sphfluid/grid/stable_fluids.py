"""
Grid-based "stable fluids" solver.

An Eulerian alternative to the particle fluid behind the same host
contract. Velocity and a passive dye field live on a cell-centred grid with
one ghost layer on every side (shape ``(nx + 2, ny + 2)``, indexed
``[i, j]`` with ``i`` along x). Each step:

1. velocity: diffuse (Jacobi) → project → self-advect (semi-Lagrangian,
   bilinear) → project
2. dye: diffuse → advect → dissipate

Velocities are stored in screen units per second; ``cell_size`` converts
between screen units and grid cells.
"""

import logging
import math
import numpy as np
from typing import Optional, Tuple

from ..config import SimulationConfig
from ..solver import FluidSolver, SolverKind


def set_bnd(b: int, x: np.ndarray):
    """Apply wall conditions to the ghost layer.

    ``b == 1`` mirrors with sign flip on the x walls (x-velocity),
    ``b == 2`` on the y walls (y-velocity), ``b == 0`` copies (scalars).
    """
    x[0, 1:-1] = -x[1, 1:-1] if b == 1 else x[1, 1:-1]
    x[-1, 1:-1] = -x[-2, 1:-1] if b == 1 else x[-2, 1:-1]
    x[1:-1, 0] = -x[1:-1, 1] if b == 2 else x[1:-1, 1]
    x[1:-1, -1] = -x[1:-1, -2] if b == 2 else x[1:-1, -2]
    x[0, 0] = 0.5 * (x[1, 0] + x[0, 1])
    x[0, -1] = 0.5 * (x[1, -1] + x[0, -2])
    x[-1, 0] = 0.5 * (x[-2, 0] + x[-1, 1])
    x[-1, -1] = 0.5 * (x[-2, -1] + x[-1, -2])


def diffuse(b: int, x: np.ndarray, x0: np.ndarray, a: float, iterations: int):
    """Implicit diffusion by Jacobi iteration; ``a = dt·ν / cell²``."""
    if a == 0.0:
        x[:] = x0
        set_bnd(b, x)
        return
    for _ in range(iterations):
        x[1:-1, 1:-1] = (x0[1:-1, 1:-1] + a * (
            x[2:, 1:-1] + x[:-2, 1:-1] +
            x[1:-1, 2:] + x[1:-1, :-2])) / (1 + 4 * a)
        set_bnd(b, x)


def advect(b: int, d: np.ndarray, d0: np.ndarray, u: np.ndarray, v: np.ndarray,
           dt_cells: float):
    """Semi-Lagrangian advection of ``d0`` into ``d``.

    Args:
        dt_cells: Time step divided by the cell size, so that
            ``dt_cells · u`` is a displacement in cells
    """
    nx = d.shape[0] - 2
    ny = d.shape[1] - 2
    I, J = np.meshgrid(np.arange(1, nx + 1), np.arange(1, ny + 1), indexing='ij')

    x = I - dt_cells * u[1:-1, 1:-1]
    y = J - dt_cells * v[1:-1, 1:-1]

    x = np.clip(x, 0.5, nx + 0.5)
    y = np.clip(y, 0.5, ny + 0.5)

    i0 = np.floor(x).astype(np.int64)
    i1 = i0 + 1
    j0 = np.floor(y).astype(np.int64)
    j1 = j0 + 1

    s1 = x - i0
    s0 = 1 - s1
    t1 = y - j0
    t0 = 1 - t1

    d[1:-1, 1:-1] = (s0 * (t0 * d0[i0, j0] + t1 * d0[i0, j1]) +
                     s1 * (t0 * d0[i1, j0] + t1 * d0[i1, j1]))
    set_bnd(b, d)


def divergence(u: np.ndarray, v: np.ndarray, cell_size: float) -> np.ndarray:
    """Central-difference divergence on the interior cells."""
    return 0.5 * (u[2:, 1:-1] - u[:-2, 1:-1] +
                  v[1:-1, 2:] - v[1:-1, :-2]) / cell_size


def project(u: np.ndarray, v: np.ndarray, p: np.ndarray, div: np.ndarray,
            cell_size: float, iterations: int):
    """Remove the divergent part of (u, v) with a Jacobi pressure solve."""
    div[1:-1, 1:-1] = -0.5 * cell_size * (
        u[2:, 1:-1] - u[:-2, 1:-1] +
        v[1:-1, 2:] - v[1:-1, :-2])
    p.fill(0)
    set_bnd(0, div)
    set_bnd(0, p)

    for _ in range(iterations):
        p[1:-1, 1:-1] = (div[1:-1, 1:-1] +
                         p[2:, 1:-1] + p[:-2, 1:-1] +
                         p[1:-1, 2:] + p[1:-1, :-2]) / 4
        set_bnd(0, p)

    u[1:-1, 1:-1] -= 0.5 * (p[2:, 1:-1] - p[:-2, 1:-1]) / cell_size
    v[1:-1, 1:-1] -= 0.5 * (p[1:-1, 2:] - p[1:-1, :-2]) / cell_size
    set_bnd(1, u)
    set_bnd(2, v)


class GridFluidSimulation(FluidSolver):
    """Incompressible grid fluid carrying a passive dye."""

    kind = SolverKind.GRID

    def __init__(self, width: float = 800.0, height: float = 600.0,
                 cell_size: float = 8.0, viscosity: float = 0.5,
                 diffusion: float = 0.0, iterations: int = 20,
                 dissipation: float = 0.995, max_dt: float = 1.0 / 60.0,
                 interaction_radius: float = 60.0, interaction_strength: float = 1.0,
                 dye_amount: float = 1.0, log_level: str = "INFO"):
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        if viscosity < 0 or diffusion < 0:
            raise ValueError("viscosity and diffusion must be >= 0")
        if int(iterations) < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        if not 0.0 < dissipation <= 1.0:
            raise ValueError(f"dissipation must be in (0, 1], got {dissipation}")
        if not max_dt > 0:
            raise ValueError(f"max_dt must be positive, got {max_dt}")
        if not interaction_radius > 0:
            raise ValueError(f"interaction_radius must be positive, got {interaction_radius}")

        self.logger = logging.getLogger(f"GridFluid_{id(self)}")
        self.logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)

        self.cell_size = float(cell_size)
        self.viscosity = float(viscosity)
        self.diffusion = float(diffusion)
        self.iterations = int(iterations)
        self.dissipation = float(dissipation)
        self.max_dt = float(max_dt)
        self.interaction_radius = float(interaction_radius)
        self.interaction_strength = float(interaction_strength)
        self.dye_amount = float(dye_amount)

        self._check_extent(width, height)
        self.width = float(width)
        self.height = float(height)
        self._allocate()
        self.time = 0.0

    @classmethod
    def from_config(cls, config: SimulationConfig, **kwargs) -> "GridFluidSimulation":
        """Share domain, time step limit and pointer settings with a particle config."""
        options = dict(
            width=config.domain_width,
            height=config.domain_height,
            max_dt=config.max_dt,
            interaction_radius=config.interaction_radius,
            interaction_strength=config.interaction_strength,
            log_level=config.log_level,
        )
        options.update(kwargs)
        return cls(**options)

    # ------------------------------------------------------------------

    @staticmethod
    def _check_extent(width: float, height: float):
        for name, value in (("width", width), ("height", height)):
            if not (math.isfinite(value) and value > 0):
                raise ValueError(f"Domain {name} must be positive, got {value}")

    def _grid_shape(self, width: float, height: float) -> Tuple[int, int]:
        nx = max(1, int(math.ceil(width / self.cell_size)))
        ny = max(1, int(math.ceil(height / self.cell_size)))
        return nx, ny

    def _allocate(self):
        self.nx, self.ny = self._grid_shape(self.width, self.height)
        size = (self.nx + 2, self.ny + 2)
        self.u = np.zeros(size)
        self.v = np.zeros(size)
        self.u_prev = np.zeros(size)
        self.v_prev = np.zeros(size)
        self.dye = np.zeros(size)
        self.dye_prev = np.zeros(size)

    @property
    def domain_size(self):
        return (self.width, self.height)

    @property
    def stats(self):
        speed = np.sqrt(self.u[1:-1, 1:-1]**2 + self.v[1:-1, 1:-1]**2)
        return {
            "time": self.time,
            "grid": (self.nx, self.ny),
            "total_dye": self.total_dye(),
            "max_speed": float(speed.max()),
            "max_divergence": self.max_divergence(),
        }

    def total_dye(self) -> float:
        return float(self.dye[1:-1, 1:-1].sum())

    def max_divergence(self) -> float:
        return float(np.abs(divergence(self.u, self.v, self.cell_size)).max())

    def cell_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """Screen coordinates of the interior cell centres, shape (nx, ny)."""
        xs = (np.arange(self.nx) + 0.5) * self.cell_size
        ys = (np.arange(self.ny) + 0.5) * self.cell_size
        return np.meshgrid(xs, ys, indexing='ij')

    # ------------------------------------------------------------------
    # Host contract
    # ------------------------------------------------------------------

    def reset(self):
        self._allocate()
        self.time = 0.0
        self.logger.info("Grid reset")

    def on_resize(self, width: float, height: float):
        """Reallocate the grid, keeping the overlapping region of every field."""
        self._check_extent(width, height)
        old = {name: getattr(self, name) for name in ("u", "v", "dye")}
        self.width = float(width)
        self.height = float(height)
        self._allocate()
        for name, field in old.items():
            new = getattr(self, name)
            nx = min(field.shape[0], new.shape[0]) - 1
            ny = min(field.shape[1], new.shape[1]) - 1
            new[1:nx, 1:ny] = field[1:nx, 1:ny]
        set_bnd(1, self.u)
        set_bnd(2, self.v)
        set_bnd(0, self.dye)
        self.logger.debug("Grid resized to %d x %d cells", self.nx, self.ny)

    def _falloff(self, cx: float, cy: float, radius: float):
        """Interior-cell weights ``1 − d/radius`` and offsets from (cx, cy)."""
        X, Y = self.cell_centers()
        dx = X - cx
        dy = Y - cy
        dist = np.sqrt(dx * dx + dy * dy)
        weight = np.where(dist < radius, 1.0 - dist / radius, 0.0)
        return weight, dx, dy, dist

    def apply_interaction(self, ax: float, ay: float, bx: float, by: float):
        """Drag A → B adds velocity and dye around B."""
        weight, _, _, _ = self._falloff(bx, by, self.interaction_radius)
        self.u[1:-1, 1:-1] += (bx - ax) * self.interaction_strength * weight
        self.v[1:-1, 1:-1] += (by - ay) * self.interaction_strength * weight
        self.dye[1:-1, 1:-1] += self.dye_amount * weight

    def apply_radial_impulse(self, cx: float, cy: float, radius: float, strength: float):
        if not radius > 0:
            raise ValueError(f"Impulse radius must be positive, got {radius}")
        weight, dx, dy, dist = self._falloff(cx, cy, radius)
        safe = np.where(dist > 0.0, dist, 1.0)
        kick = np.where(dist > 0.0, strength * weight / safe, 0.0)
        self.u[1:-1, 1:-1] += kick * dx
        self.v[1:-1, 1:-1] += kick * dy

    def add_dye(self, x: float, y: float, amount: float, radius: Optional[float] = None):
        if radius is None:
            radius = self.interaction_radius
        weight, _, _, _ = self._falloff(x, y, radius)
        self.dye[1:-1, 1:-1] += amount * weight

    def step(self, dt: float):
        """Advance by ``dt`` seconds (clamped to ``max_dt``).

        Raises:
            ValueError: If ``dt`` is negative or not finite
        """
        if not math.isfinite(dt) or dt < 0:
            raise ValueError(f"dt must be a non-negative finite number, got {dt}")
        if dt == 0:
            return
        dt = min(dt, self.max_dt)
        h = self.cell_size
        a_visc = dt * self.viscosity / (h * h)
        a_diff = dt * self.diffusion / (h * h)

        # Velocity
        self.u_prev, self.u = self.u, self.u_prev
        self.v_prev, self.v = self.v, self.v_prev
        diffuse(1, self.u, self.u_prev, a_visc, self.iterations)
        diffuse(2, self.v, self.v_prev, a_visc, self.iterations)
        project(self.u, self.v, self.u_prev, self.v_prev, h, self.iterations)

        self.u_prev, self.u = self.u, self.u_prev
        self.v_prev, self.v = self.v, self.v_prev
        advect(1, self.u, self.u_prev, self.u_prev, self.v_prev, dt / h)
        advect(2, self.v, self.v_prev, self.u_prev, self.v_prev, dt / h)
        project(self.u, self.v, self.u_prev, self.v_prev, h, self.iterations)

        # Dye
        self.dye_prev, self.dye = self.dye, self.dye_prev
        diffuse(0, self.dye, self.dye_prev, a_diff, self.iterations)
        self.dye_prev, self.dye = self.dye, self.dye_prev
        advect(0, self.dye, self.dye_prev, self.u, self.v, dt / h)
        self.dye *= self.dissipation

        self.time += dt
