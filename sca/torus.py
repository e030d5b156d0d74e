"""
Toroidal domain helpers for the growth simulation.

The growth domain is a ``width x height`` rectangle whose edges wrap, so
positions, deltas and distances all go through the shortest wrap-around path.
All helpers are pure and accept scalars or numpy arrays.
"""

import numpy as np
from typing import Tuple, Union

ArrayLike = Union[float, np.ndarray]


def wrap(value: ArrayLike, size: float) -> ArrayLike:
    """Wrap a coordinate back into ``[0, size)``."""
    v = np.mod(np.asarray(value, dtype=np.float64), size)
    # np.mod(-1e-17, size) rounds to size; keep the half-open interval
    v = np.where(v >= size, 0.0, v)
    if np.ndim(value) == 0:
        return float(v)
    return v


def wrap_delta(delta: ArrayLike, size: float) -> ArrayLike:
    """Shortest wrap-around representation of an axis delta."""
    d = np.asarray(delta, dtype=np.float64)
    half = size / 2
    d = np.where(d > half, d - size, d)
    d = np.where(d < -half, d + size, d)
    if np.ndim(delta) == 0:
        return float(d)
    return d


def toroidal_distance(ax: ArrayLike, ay: ArrayLike, bx: ArrayLike, by: ArrayLike,
                      width: float, height: float) -> ArrayLike:
    dx = wrap_delta(np.subtract(ax, bx), width)
    dy = wrap_delta(np.subtract(ay, by), height)
    return np.hypot(dx, dy)


def unwrap_segment(x1: ArrayLike, y1: ArrayLike, x2: ArrayLike, y2: ArrayLike,
                   width: float, height: float) -> Tuple[ArrayLike, ArrayLike]:
    """
    Shift the second endpoint by a full domain dimension when the segment
    would otherwise span more than half the domain.

    Returns the adjusted ``(x2, y2)``; the first endpoint stays put.
    """
    x2 = np.asarray(x2, dtype=np.float64)
    y2 = np.asarray(y2, dtype=np.float64)
    dx = np.subtract(x1, x2)
    dy = np.subtract(y1, y2)
    x2 = np.where(dx > width / 2, x2 + width, np.where(dx < -width / 2, x2 - width, x2))
    y2 = np.where(dy > height / 2, y2 + height, np.where(dy < -height / 2, y2 - height, y2))
    if np.ndim(x1) == 0 and x2.ndim == 0:
        return float(x2), float(y2)
    return x2, y2
