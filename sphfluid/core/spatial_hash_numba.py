"""
Numba-optimized neighbor search over a prebuilt SpatialIndex.

The cell lists themselves are built with NumPy (a sort and a bincount);
the per-particle scan over the surrounding cells is the bottleneck and runs
here in two passes: count, then fill.
"""

import numpy as np
import numba as nb
from .spatial_hash import NeighborList, SpatialIndex


@nb.njit(fastmath=True, cache=True)
def _count_neighbors(position_x, position_y, n_active, sorted_indices, cell_start,
                     cell_x, cell_y, nx, ny, reach, radius2, counts):
    for i in range(n_active):
        cx = cell_x[i]
        cy = cell_y[i]
        x0 = max(cx - reach, 0)
        x1 = min(cx + reach, nx - 1)
        found = 0
        for row in range(max(cy - reach, 0), min(cy + reach, ny - 1) + 1):
            start = cell_start[row * nx + x0]
            end = cell_start[row * nx + x1 + 1]
            for k in range(start, end):
                j = sorted_indices[k]
                if j == i:
                    continue
                dx = position_x[i] - position_x[j]
                dy = position_y[i] - position_y[j]
                if dx * dx + dy * dy <= radius2:
                    found += 1
        counts[i] = found


@nb.njit(fastmath=True, cache=True)
def _fill_neighbors(position_x, position_y, n_active, sorted_indices, cell_start,
                    cell_x, cell_y, nx, ny, reach, radius2, offsets,
                    ids, distances, out_dx, out_dy):
    for i in range(n_active):
        cx = cell_x[i]
        cy = cell_y[i]
        x0 = max(cx - reach, 0)
        x1 = min(cx + reach, nx - 1)
        slot = offsets[i]
        for row in range(max(cy - reach, 0), min(cy + reach, ny - 1) + 1):
            start = cell_start[row * nx + x0]
            end = cell_start[row * nx + x1 + 1]
            for k in range(start, end):
                j = sorted_indices[k]
                if j == i:
                    continue
                dx = position_x[i] - position_x[j]
                dy = position_y[i] - position_y[j]
                d2 = dx * dx + dy * dy
                if d2 <= radius2:
                    ids[slot] = j
                    distances[slot] = np.sqrt(d2)
                    out_dx[slot] = dx
                    out_dy[slot] = dy
                    slot += 1


def query_neighbors_numba(index: SpatialIndex, position_x: np.ndarray,
                          position_y: np.ndarray, radius: float) -> NeighborList:
    """Numba equivalent of :meth:`SpatialIndex.query_neighbors`."""
    n = index.n_active
    if n == 0:
        return NeighborList.empty(0)
    reach = max(1, int(np.ceil(radius / index.cell_size)))
    radius2 = float(radius) * float(radius)

    counts = np.zeros(n, dtype=np.int64)
    _count_neighbors(position_x, position_y, n, index.sorted_indices, index.cell_start,
                     index.cell_x, index.cell_y, index.nx, index.ny, reach, radius2, counts)

    offsets = np.zeros(n + 1, dtype=np.int64)
    np.cumsum(counts, out=offsets[1:])
    total = int(offsets[-1])

    ids = np.empty(total, dtype=np.int64)
    distances = np.empty(total, dtype=np.float64)
    out_dx = np.empty(total, dtype=np.float64)
    out_dy = np.empty(total, dtype=np.float64)
    _fill_neighbors(position_x, position_y, n, index.sorted_indices, index.cell_start,
                    index.cell_x, index.cell_y, index.nx, index.ny, reach, radius2,
                    offsets, ids, distances, out_dx, out_dy)

    return NeighborList(offsets=offsets, ids=ids, distances=distances, dx=out_dx, dy=out_dy)
