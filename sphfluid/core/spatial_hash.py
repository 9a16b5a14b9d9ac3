"""
Uniform-grid spatial index for O(N) neighbor searches.

The index is a short-lived value: it is built from the current positions,
used by one stage, and discarded. Positions change between the SPH and the
collision passes, so an index is never carried from one to the other.

Layout (dense cell lists, counting sort):
- each particle is assigned the cell ``(⌊x/c⌋, ⌊y/c⌋)`` clamped into
  ``[0, nx) × [0, ny)``
- particles are sorted by linear cell id ``cy * nx + cx``
- ``cell_start[k] : cell_start[k + 1]`` slices ``sorted_indices`` for cell k

Cells of one grid row are contiguous, so a 3×3 block query is three slices.
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class NeighborList:
    """Compressed (CSR) neighbor lists.

    Neighbors of particle i are ``ids[offsets[i]:offsets[i + 1]]`` with
    matching ``distances`` and separations ``dx = x_i - x_j``,
    ``dy = y_i - y_j``. A particle never lists itself.
    """
    offsets: np.ndarray      # shape: (N + 1,) int64
    ids: np.ndarray          # shape: (P,) int64
    distances: np.ndarray    # shape: (P,) float64
    dx: np.ndarray           # shape: (P,) float64
    dy: np.ndarray           # shape: (P,) float64

    @property
    def n_particles(self) -> int:
        return int(self.offsets.shape[0] - 1)

    @property
    def pair_count(self) -> int:
        return int(self.ids.shape[0])

    def count(self, i: int) -> int:
        return int(self.offsets[i + 1] - self.offsets[i])

    def neighbors_of(self, i: int) -> slice:
        """Slice into ``ids``/``distances``/``dx``/``dy`` for particle i."""
        return slice(int(self.offsets[i]), int(self.offsets[i + 1]))

    @staticmethod
    def empty(n_particles: int) -> 'NeighborList':
        return NeighborList(
            offsets=np.zeros(n_particles + 1, dtype=np.int64),
            ids=np.zeros(0, dtype=np.int64),
            distances=np.zeros(0, dtype=np.float64),
            dx=np.zeros(0, dtype=np.float64),
            dy=np.zeros(0, dtype=np.float64),
        )


@dataclass(frozen=True)
class SpatialIndex:
    """Cell lists over a bounded domain.

    Built by :func:`build_spatial_index`; treat as immutable.
    """
    cell_size: float
    nx: int
    ny: int
    n_active: int
    sorted_indices: np.ndarray   # particle ids ordered by cell
    cell_start: np.ndarray       # shape: (nx * ny + 1,)
    cell_x: np.ndarray           # per-particle cell column
    cell_y: np.ndarray           # per-particle cell row

    @property
    def n_cells(self) -> int:
        return self.nx * self.ny

    def cell_of(self, i: int) -> Tuple[int, int]:
        return int(self.cell_x[i]), int(self.cell_y[i])

    def cell_for_point(self, x: float, y: float) -> Tuple[int, int]:
        """Clamped cell coordinate of an arbitrary point."""
        if not (math.isfinite(x) and math.isfinite(y)):
            return 0, 0
        cx = min(max(int(math.floor(x / self.cell_size)), 0), self.nx - 1)
        cy = min(max(int(math.floor(y / self.cell_size)), 0), self.ny - 1)
        return cx, cy

    def particles_in_cell(self, cx: int, cy: int) -> np.ndarray:
        """Get particle indices in a specific cell."""
        if 0 <= cx < self.nx and 0 <= cy < self.ny:
            k = cy * self.nx + cx
            return self.sorted_indices[self.cell_start[k]:self.cell_start[k + 1]]
        return np.array([], dtype=np.int64)

    def _block(self, cx: int, cy: int, reach: int = 1) -> np.ndarray:
        x0 = max(cx - reach, 0)
        x1 = min(cx + reach, self.nx - 1)
        parts = []
        for row in range(max(cy - reach, 0), min(cy + reach, self.ny - 1) + 1):
            start = self.cell_start[row * self.nx + x0]
            end = self.cell_start[row * self.nx + x1 + 1]
            if end > start:
                parts.append(self.sorted_indices[start:end])
        if not parts:
            return np.array([], dtype=np.int64)
        return np.concatenate(parts)

    def candidates(self, i: int, reach: int = 1) -> np.ndarray:
        """Particles in the 3×3 cell block around particle i (includes i)."""
        return self._block(int(self.cell_x[i]), int(self.cell_y[i]), reach)

    def candidates_near(self, x: float, y: float, reach: int = 1) -> np.ndarray:
        """Particles in the 3×3 cell block around an arbitrary point."""
        cx, cy = self.cell_for_point(x, y)
        return self._block(cx, cy, reach)

    def candidate_pairs(self) -> Tuple[np.ndarray, np.ndarray]:
        """Every unordered candidate pair (i, j), i < j, exactly once."""
        firsts = []
        seconds = []
        for i in range(self.n_active):
            cand = self.candidates(i)
            cand = cand[cand > i]
            if cand.size:
                firsts.append(np.full(cand.size, i, dtype=np.int64))
                seconds.append(cand)
        if not firsts:
            empty = np.array([], dtype=np.int64)
            return empty, empty
        return np.concatenate(firsts), np.concatenate(seconds).astype(np.int64)

    def query_neighbors(self, position_x: np.ndarray, position_y: np.ndarray,
                        radius: float) -> NeighborList:
        """Find all neighbors within ``radius`` of every particle.

        Args:
            position_x: X positions (at least n_active entries)
            position_y: Y positions
            radius: Search radius (inclusive)

        Returns:
            NeighborList in CSR form
        """
        n = self.n_active
        if n == 0:
            return NeighborList.empty(0)
        reach = max(1, int(math.ceil(radius / self.cell_size)))

        offsets = np.zeros(n + 1, dtype=np.int64)
        ids_parts, dist_parts, dx_parts, dy_parts = [], [], [], []

        for i in range(n):
            cand = self.candidates(i, reach)
            dx = position_x[i] - position_x[cand]
            dy = position_y[i] - position_y[cand]
            dist = np.sqrt(dx * dx + dy * dy)

            mask = (dist <= radius) & (cand != i)
            offsets[i + 1] = offsets[i] + np.count_nonzero(mask)
            ids_parts.append(cand[mask])
            dist_parts.append(dist[mask])
            dx_parts.append(dx[mask])
            dy_parts.append(dy[mask])

        return NeighborList(
            offsets=offsets,
            ids=np.concatenate(ids_parts).astype(np.int64),
            distances=np.concatenate(dist_parts),
            dx=np.concatenate(dx_parts),
            dy=np.concatenate(dy_parts),
        )

    def get_statistics(self) -> dict:
        """Get grid statistics for debugging."""
        counts = np.diff(self.cell_start)
        occupied = counts > 0

        return {
            'total_cells': self.n_cells,
            'occupied_cells': int(np.sum(occupied)),
            'occupancy_rate': float(np.sum(occupied)) / self.n_cells,
            'max_particles_per_cell': int(np.max(counts)) if counts.size else 0,
            'mean_particles_per_occupied_cell': float(np.mean(counts[occupied])) if np.any(occupied) else 0.0,
        }


def build_spatial_index(position_x: np.ndarray, position_y: np.ndarray,
                        n_active: int, cell_size: float,
                        domain_size: Tuple[float, float]) -> SpatialIndex:
    """Bucket the first ``n_active`` particles into a dense grid.

    Args:
        position_x: X positions
        position_y: Y positions
        n_active: Number of active particles
        cell_size: Edge length of one cell (>= interaction cutoff)
        domain_size: (width, height) of the domain; positions outside are
            clamped into the border cells

    Returns:
        A fresh SpatialIndex
    """
    if not cell_size > 0:
        raise ValueError(f"cell_size must be positive, got {cell_size}")
    width, height = domain_size
    nx = max(1, int(math.ceil(width / cell_size)))
    ny = max(1, int(math.ceil(height / cell_size)))

    with np.errstate(invalid='ignore'):
        cell_x = np.floor(position_x[:n_active] / cell_size)
        cell_y = np.floor(position_y[:n_active] / cell_size)
    cell_x = np.clip(np.nan_to_num(cell_x), 0, nx - 1).astype(np.int64)
    cell_y = np.clip(np.nan_to_num(cell_y), 0, ny - 1).astype(np.int64)

    cell_ids = cell_y * nx + cell_x
    sorted_indices = np.argsort(cell_ids, kind='stable').astype(np.int64)

    counts = np.bincount(cell_ids, minlength=nx * ny)
    cell_start = np.zeros(nx * ny + 1, dtype=np.int64)
    np.cumsum(counts, out=cell_start[1:])

    return SpatialIndex(
        cell_size=float(cell_size),
        nx=nx,
        ny=ny,
        n_active=int(n_active),
        sorted_indices=sorted_indices,
        cell_start=cell_start,
        cell_x=cell_x,
        cell_y=cell_y,
    )
