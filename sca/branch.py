"""
Branch records and the arena that owns them.

Branches form a forest: each record points at its parent by integer index
(``NO_PARENT`` for roots), so there are no live object links to keep alive.
"""

from typing import Iterator, List, Optional, Tuple

import numpy as np

from .torus import unwrap_segment

NO_PARENT = -1


class Branch:
    """Read-only snapshot of one record in a :class:`BranchForest`."""

    __slots__ = ('index', 'x', 'y', 'parent', 'direction', 'count', 'length')

    def __init__(self, index: int, x: float, y: float, parent: int,
                 direction: Tuple[float, float], count: int, length: float):
        self.index = index
        self.x = x
        self.y = y
        self.parent = parent
        self.direction = direction
        self.count = count
        self.length = length

    @property
    def is_root(self) -> bool:
        return self.parent == NO_PARENT

    def to_tuple(self) -> tuple:
        return (self.x, self.y)

    def __repr__(self) -> str:
        return f"Branch(#{self.index} ({self.x:.2f}, {self.y:.2f}) parent={self.parent})"


class BranchForest:
    """
    Append-only arena of branch records stored column-wise.

    ``directions`` and ``counts`` are scratch state of the current growth step;
    positions, parents and lengths never change once appended.
    """

    def __init__(self, capacity: int = 256):
        capacity = max(1, capacity)
        self._positions = np.zeros((capacity, 2), dtype=np.float64)
        self._parents = np.full(capacity, NO_PARENT, dtype=np.int64)
        self._lengths = np.zeros(capacity, dtype=np.float64)
        self._directions = np.zeros((capacity, 2), dtype=np.float64)
        self._counts = np.zeros(capacity, dtype=np.int64)
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Branch]:
        for i in range(self._size):
            yield self[i]

    def __getitem__(self, index: int) -> Branch:
        if index < 0:
            index += self._size
        if not 0 <= index < self._size:
            raise IndexError(f"branch index {index} out of range")
        x, y = self._positions[index]
        dx, dy = self._directions[index]
        return Branch(index, float(x), float(y), int(self._parents[index]),
                      (float(dx), float(dy)), int(self._counts[index]),
                      float(self._lengths[index]))

    def _reserve(self, extra: int):
        needed = self._size + extra
        capacity = len(self._parents)
        if needed <= capacity:
            return
        new_capacity = max(needed, capacity * 2)

        def grow(arr, fill):
            out = np.full((new_capacity,) + arr.shape[1:], fill, dtype=arr.dtype)
            out[:capacity] = arr
            return out

        self._positions = grow(self._positions, 0.0)
        self._parents = grow(self._parents, NO_PARENT)
        self._lengths = grow(self._lengths, 0.0)
        self._directions = grow(self._directions, 0.0)
        self._counts = grow(self._counts, 0)

    def add_roots(self, positions: np.ndarray, length: float) -> np.ndarray:
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        return self.extend(positions, np.full(len(positions), NO_PARENT), length)

    def extend(self, positions: np.ndarray, parents: np.ndarray, lengths) -> np.ndarray:
        """Append records and return their indices."""
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        n = len(positions)
        self._reserve(n)
        start, stop = self._size, self._size + n
        self._positions[start:stop] = positions
        self._parents[start:stop] = parents
        self._lengths[start:stop] = lengths
        self._directions[start:stop] = 0.0
        self._counts[start:stop] = 0
        self._size = stop
        return np.arange(start, stop)

    def reset_growth(self):
        """Zero the accumulated direction and influence count of every branch."""
        self._directions[:self._size] = 0.0
        self._counts[:self._size] = 0

    def accumulate(self, indices: np.ndarray, unit_vectors: np.ndarray):
        np.add.at(self._directions, indices, unit_vectors)
        np.add.at(self._counts, indices, 1)

    def clear(self):
        self._size = 0

    @property
    def positions(self) -> np.ndarray:
        return self._positions[:self._size]

    @property
    def parents(self) -> np.ndarray:
        return self._parents[:self._size]

    @property
    def lengths(self) -> np.ndarray:
        return self._lengths[:self._size]

    @property
    def directions(self) -> np.ndarray:
        return self._directions[:self._size]

    @property
    def counts(self) -> np.ndarray:
        return self._counts[:self._size]

    @property
    def roots(self) -> np.ndarray:
        return np.flatnonzero(self.parents == NO_PARENT)

    def depths(self) -> np.ndarray:
        """Distance from each branch to its root, in segments."""
        depths = np.zeros(self._size, dtype=np.int64)
        parents = self.parents
        # parents always precede their children in the arena
        for i in range(self._size):
            p = parents[i]
            if p != NO_PARENT:
                depths[i] = depths[p] + 1
        return depths

    def segments(self, width: float, height: float) -> np.ndarray:
        """
        Child-to-parent segments as ``(S, 4)`` rows of ``x1, y1, x2, y2``.

        Roots contribute nothing. The parent endpoint is shifted by a full
        domain dimension when the pair straddles a wrapped edge, so no
        segment spans the whole domain.
        """
        children = np.flatnonzero(self.parents != NO_PARENT)
        if len(children) == 0:
            return np.empty((0, 4), dtype=np.float64)
        start = self.positions[children]
        end = self.positions[self.parents[children]]
        x2, y2 = unwrap_segment(start[:, 0], start[:, 1], end[:, 0], end[:, 1], width, height)
        return np.column_stack([start[:, 0], start[:, 1], x2, y2])

    def average_directions(self, indices: np.ndarray) -> np.ndarray:
        """Divide the accumulated directions of ``indices`` by their counts, in place."""
        self._directions[indices] /= self._counts[indices][:, None]
        return self._directions[indices]

    def children_of(self, index: int) -> np.ndarray:
        return np.flatnonzero(self.parents == index)

    @classmethod
    def from_arrays(cls, positions: np.ndarray, parents: np.ndarray,
                    lengths: Optional[np.ndarray] = None) -> 'BranchForest':
        """Rebuild a forest from exported columns, checking the parent links."""
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        parents = np.asarray(parents, dtype=np.int64)
        if len(parents) != len(positions):
            raise ValueError(f"{len(positions)} positions but {len(parents)} parent links")
        bad = (parents != NO_PARENT) & ((parents < 0) | (parents >= np.arange(len(parents))))
        if bad.any():
            i = int(np.flatnonzero(bad)[0])
            raise ValueError(f"branch {i} has invalid parent {int(parents[i])}")
        forest = cls(capacity=len(positions))
        forest.extend(positions, parents, 0.0 if lengths is None else lengths)
        return forest

    def snapshot(self) -> List[Branch]:
        return list(self)
