"""
Distance-to-height falloff profile.

The profile is a fixed-resolution lookup table over normalized distance
``t = clamp(distance / max_distance, 0, 1)``; the table itself is authored
elsewhere (a curve editor), here it is either passed in directly or sampled
from the y-components of a cubic Bezier curve.
"""

from typing import Sequence, Tuple, Union

import numpy as np

TABLE_SIZE = 512

Point = Tuple[float, float]


def sample_bezier(y0: float, y1: float, y2: float, y3: float, t: np.ndarray) -> np.ndarray:
    u = 1 - t
    return u * u * u * y0 + 3 * u * u * t * y1 + 3 * u * t * t * y2 + t * t * t * y3


class ProfileLookup:
    def __init__(self, table: Sequence[float], max_distance: float):
        table = np.asarray(table, dtype=np.float32).ravel()
        if len(table) < 2:
            raise ValueError(f"profile table needs at least 2 samples, got {len(table)}")
        if not np.all(np.isfinite(table)):
            raise ValueError("profile table contains non-finite samples")
        if not max_distance > 0:
            raise ValueError(f"max_distance must be positive, got {max_distance}")
        self.table = table
        self.max_distance = float(max_distance)

    def height_at(self, distance: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Height in ``[0, 1]`` for one distance or an array of distances."""
        t = np.clip(np.asarray(distance, dtype=np.float64) / self.max_distance, 0.0, 1.0)
        idx = np.floor(t * (len(self.table) - 1)).astype(np.int64)
        heights = self.table[idx]
        if np.ndim(distance) == 0:
            return float(heights)
        return heights

    @classmethod
    def from_bezier(cls, p0: Point, p1: Point, p2: Point, p3: Point,
                    max_distance: float, samples: int = TABLE_SIZE) -> 'ProfileLookup':
        """
        Sample a cubic Bezier falloff. Only the y-components shape the
        table; the curve parameter runs evenly over normalized distance.
        """
        t = np.linspace(0.0, 1.0, samples)
        table = sample_bezier(p0[1], p1[1], p2[1], p3[1], t)
        return cls(np.clip(table, 0.0, 1.0), max_distance)

    @classmethod
    def default(cls, max_distance: float = 15.0) -> 'ProfileLookup':
        """Full height on the branch, easing down to zero at ``max_distance``."""
        return cls.from_bezier(
            (0.0, 1.0),
            (0.0, 0.5),
            (max_distance * 0.6, 0.0),
            (max_distance, 0.0),
            max_distance,
        )

    def __repr__(self) -> str:
        return f"ProfileLookup({len(self.table)} samples, max_distance={self.max_distance})"
