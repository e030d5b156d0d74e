"""
Spatial partitioning for efficient nearest-branch queries on the torus.
Uses scipy's periodic KDTree (``boxsize``) for O(log n) lookups instead of
O(n) brute force per attractor.
"""

from typing import Tuple

import numpy as np
from scipy.spatial import cKDTree

from .profiling import profile
from .torus import toroidal_distance


class BranchSpatialIndex:
    """Periodic KD-Tree over branch positions."""

    def __init__(self, width: float, height: float):
        self.width = float(width)
        self.height = float(height)
        self._tree: cKDTree = None
        self._positions: np.ndarray = None

    @profile
    def rebuild(self, positions: np.ndarray):
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        if len(positions) == 0:
            self._tree = None
            self._positions = None
            return
        self._positions = positions.copy()
        self._tree = cKDTree(self._positions, boxsize=(self.width, self.height))

    def __len__(self) -> int:
        return 0 if self._positions is None else len(self._positions)

    @profile
    def nearest(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Nearest branch for every point.

        Returns ``(distances, indices)``; with no branches the distances are
        ``inf`` and the indices ``-1``. Exact distance ties go to the lowest
        branch index.
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        n = len(points)
        if self._tree is None or n == 0:
            return np.full(n, np.inf), np.full(n, -1, dtype=np.int64)

        k = min(2, len(self))
        _, idx = self._tree.query(points, k=k)
        if k == 1:
            nearest = np.asarray(idx, dtype=np.int64).reshape(n)
        else:
            nearest = idx[:, 0].astype(np.int64)

        dist = self._distances(points, nearest)

        if k == 2:
            runner_up = self._distances(points, idx[:, 1].astype(np.int64))
            for row in np.flatnonzero(runner_up <= dist):
                nearest[row], dist[row] = self._resolve_tie(points[row], dist[row])

        return dist, nearest

    def _distances(self, points: np.ndarray, indices: np.ndarray) -> np.ndarray:
        targets = self._positions[indices]
        return toroidal_distance(points[:, 0], points[:, 1], targets[:, 0], targets[:, 1],
                                 self.width, self.height)

    def _resolve_tie(self, point: np.ndarray, radius: float) -> Tuple[int, float]:
        # widen slightly so KD-tree round-off cannot drop a tied branch
        candidates = np.array(self._tree.query_ball_point(point, radius * (1 + 1e-9) + 1e-12),
                              dtype=np.int64)
        targets = self._positions[candidates]
        d = toroidal_distance(point[0], point[1], targets[:, 0], targets[:, 1],
                              self.width, self.height)
        best = d.min()
        return int(candidates[d == best].min()), float(best)

    @property
    def positions(self) -> np.ndarray:
        return self._positions
