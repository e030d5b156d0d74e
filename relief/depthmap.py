"""
Depth map generation from a grown branch forest.

Pipeline: segments -> distance field -> profile lookup -> bilateral blur ->
normalize. Distances are measured on a uniform spatial grid, each pixel only
looking at segments filed under its own cell and the 8 neighbouring cells.
Segments further away are never seen, so when branches are sparse relative
to ``cell_size`` a pixel can report a larger distance than the true one (or
``inf`` when its neighbourhood is empty). Raising ``cell_size`` trades speed
for accuracy.
"""

import logging
from typing import Callable, List, Optional

import numpy as np
from tqdm import tqdm

from sca.branch import BranchForest
from sca.profiling import profile as timed, profile_block

from .errors import Cancelled
from .heightfield import HeightField
from .profile import ProfileLookup

logger = logging.getLogger(__name__)

DEFAULT_CELL_SIZE = 20.0
_SEGMENT_CHUNK = 2048


def build_segments(forest: Optional[BranchForest], width: int, height: int) -> np.ndarray:
    """Child-to-parent segments with wrap-corrected parent endpoints, ``(S, 4)``."""
    if forest is None or len(forest) == 0:
        return np.empty((0, 4), dtype=np.float64)
    return forest.segments(width, height)


def point_segment_distance(px, py, segments: np.ndarray) -> np.ndarray:
    """
    Euclidean distance from points to segments, broadcasting ``px``/``py``
    against the rows of ``segments`` (``x1, y1, x2, y2``).
    """
    segments = np.asarray(segments, dtype=np.float64)
    x1, y1, x2, y2 = segments[..., 0], segments[..., 1], segments[..., 2], segments[..., 3]
    vx, vy = x2 - x1, y2 - y1
    wx, wy = px - x1, py - y1

    c1 = vx * wx + vy * wy
    c2 = vx * vx + vy * vy
    b = c1 / np.where(c2 > 0, c2, 1.0)

    to_start = np.hypot(wx, wy)
    to_end = np.hypot(px - x2, py - y2)
    to_line = np.hypot(px - (x1 + b * vx), py - (y1 + b * vy))

    return np.where(c1 <= 0, to_start, np.where(c2 <= c1, to_end, to_line))


class SegmentGrid:
    """Uniform grid filing each segment under every cell its bounding box overlaps."""

    def __init__(self, segments: np.ndarray, width: int, height: int,
                 cell_size: float = DEFAULT_CELL_SIZE):
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.segments = np.asarray(segments, dtype=np.float64).reshape(-1, 4)
        self.cell_size = float(cell_size)
        self.cols = int(np.ceil(width / cell_size))
        self.rows = int(np.ceil(height / cell_size))
        self.cells: List[List[List[int]]] = [[[] for _ in range(self.cols)] for _ in range(self.rows)]
        self._insert_all()

    def _insert_all(self):
        if len(self.segments) == 0:
            return
        s = self.segments
        c = self.cell_size
        min_gx = np.floor(np.minimum(s[:, 0], s[:, 2]) / c).astype(np.int64)
        max_gx = np.floor(np.maximum(s[:, 0], s[:, 2]) / c).astype(np.int64)
        min_gy = np.floor(np.minimum(s[:, 1], s[:, 3]) / c).astype(np.int64)
        max_gy = np.floor(np.maximum(s[:, 1], s[:, 3]) / c).astype(np.int64)

        # cells outside the domain are dropped
        min_gx = np.maximum(min_gx, 0)
        min_gy = np.maximum(min_gy, 0)
        max_gx = np.minimum(max_gx, self.cols - 1)
        max_gy = np.minimum(max_gy, self.rows - 1)

        for i in range(len(s)):
            for gy in range(min_gy[i], max_gy[i] + 1):
                row = self.cells[gy]
                for gx in range(min_gx[i], max_gx[i] + 1):
                    row[gx].append(i)

    def neighbourhood(self, gx: int, gy: int) -> np.ndarray:
        """Indices of segments in cell ``(gx, gy)`` and its 8 neighbours."""
        found = []
        for cy in range(max(gy - 1, 0), min(gy + 2, self.rows)):
            for cx in range(max(gx - 1, 0), min(gx + 2, self.cols)):
                found.extend(self.cells[cy][cx])
        if not found:
            return np.empty(0, dtype=np.int64)
        return np.unique(np.array(found, dtype=np.int64))


@timed
def distance_field(segments: np.ndarray, width: int, height: int,
                   cell_size: float = DEFAULT_CELL_SIZE, progress: bool = False) -> np.ndarray:
    """Per-pixel distance to the nearest segment in the 3x3 cell neighbourhood."""
    grid = SegmentGrid(segments, width, height, cell_size)
    field = np.full((height, width), np.inf, dtype=np.float64)

    col_cells = np.floor(np.arange(width) / grid.cell_size).astype(np.int64)
    row_cells = np.floor(np.arange(height) / grid.cell_size).astype(np.int64)
    col_groups = [np.flatnonzero(col_cells == gx) for gx in range(grid.cols)]
    row_groups = [np.flatnonzero(row_cells == gy) for gy in range(grid.rows)]

    rows = tqdm(range(grid.rows), desc='Distance field', leave=False) if progress else range(grid.rows)
    for gy in rows:
        ys = row_groups[gy]
        if len(ys) == 0:
            continue
        for gx in range(grid.cols):
            xs = col_groups[gx]
            candidates = grid.neighbourhood(gx, gy)
            if len(xs) == 0 or len(candidates) == 0:
                continue

            px, py = np.meshgrid(xs.astype(np.float64), ys.astype(np.float64))
            px, py = px.reshape(-1, 1), py.reshape(-1, 1)
            best = np.full(px.shape[0], np.inf)
            for start in range(0, len(candidates), _SEGMENT_CHUNK):
                chunk = grid.segments[candidates[start:start + _SEGMENT_CHUNK]]
                d = point_segment_distance(px, py, chunk[None, :, :])
                best = np.minimum(best, d.min(axis=1))

            field[ys[0]:ys[-1] + 1, xs[0]:xs[-1] + 1] = best.reshape(len(ys), len(xs))

    return field


@timed
def bilateral_blur(field: np.ndarray, radius: int, sigma_spatial: float = 2.0,
                   sigma_range: float = 0.1) -> np.ndarray:
    """
    Edge-preserving blur. Each neighbour within ``radius`` is weighted by a
    spatial Gaussian over its offset times a range Gaussian over its value
    difference from the centre pixel; borders replicate the edge values.
    """
    field = np.asarray(field, dtype=np.float64)
    radius = int(radius)
    if radius < 1:
        return field.astype(np.float32)

    h, w = field.shape
    padded = np.pad(field, radius, mode='edge')
    offsets = np.arange(-radius, radius + 1)
    spatial = np.exp(-(offsets ** 2) / (2 * sigma_spatial * sigma_spatial))
    two_sigma_range2 = 2 * sigma_range * sigma_range

    total = np.zeros_like(field)
    weight_sum = np.zeros_like(field)
    for dy in offsets:
        for dx in offsets:
            shifted = padded[radius + dy:radius + dy + h, radius + dx:radius + dx + w]
            diff = shifted - field
            weight = spatial[dy + radius] * spatial[dx + radius] * np.exp(-(diff * diff) / two_sigma_range2)
            total += shifted * weight
            weight_sum += weight

    out = np.where(weight_sum > 0, total / np.where(weight_sum > 0, weight_sum, 1.0), field)
    return out.astype(np.float32)


def normalize(field: np.ndarray, eps: float = 1e-6) -> np.ndarray:
    """
    Affine map so the minimum becomes 0 and the maximum 1. A range below
    ``eps`` is treated as 1, so a flat field maps to all zeros.
    """
    field = np.asarray(field, dtype=np.float64)
    if field.size == 0:
        return field.astype(np.float32)
    lo, hi = field.min(), field.max()
    logger.debug("Height field range before normalization: %.4f to %.4f", lo, hi)
    span = hi - lo
    if span < eps:
        span = 1.0
    return ((field - lo) / span).astype(np.float32)


def placeholder_field(width: int, height: int, rng: np.random.Generator) -> np.ndarray:
    return (rng.random((height, width)) * 0.5 + 0.3).astype(np.float32)


def _checkpoint(should_cancel: Optional[Callable[[], bool]], phase: str):
    if should_cancel is not None and should_cancel():
        logger.info("Depth map generation cancelled before %s", phase)
        raise Cancelled(f"depth map generation cancelled before {phase}")


def generate_depth_map(
    forest: Optional[BranchForest],
    width: int,
    height: int,
    profile: Optional[ProfileLookup] = None,
    blur_radius: int = 2,
    cell_size: float = DEFAULT_CELL_SIZE,
    sigma_spatial: float = 2.0,
    sigma_range: float = 0.1,
    rng: Optional[np.random.Generator] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    progress: bool = False
) -> HeightField:
    """
    Convert a branch forest into a normalized height field.

    Args:
        forest: Grown branches (read only)
        width, height: Growth domain size, also the output resolution
        profile: Distance-to-height lookup, defaults to ``ProfileLookup.default()``
        blur_radius: Bilateral blur radius, 0 disables the blur
        cell_size: Spatial grid cell size for the distance search
        rng: Random source for the placeholder field
        should_cancel: Polled between phases; returning True raises ``Cancelled``
        progress: Show a progress bar for the distance pass

    With no segments to measure against (no branches, or roots only) the
    result is a noise placeholder with ``placeholder=True``.
    """
    if width < 1 or height < 1:
        raise ValueError(f"depth map size must be positive, got {width}x{height}")
    profile = profile or ProfileLookup.default()

    _checkpoint(should_cancel, 'segment build')
    segments = build_segments(forest, width, height)

    if len(segments) == 0:
        logger.warning("No branch segments provided, creating placeholder height field")
        rng = rng if rng is not None else np.random.default_rng()
        return HeightField(normalize(placeholder_field(width, height, rng)), placeholder=True)

    logger.info("Generating %dx%d depth map from %d segments", width, height, len(segments))

    _checkpoint(should_cancel, 'distance pass')
    distances = distance_field(segments, width, height, cell_size, progress=progress)

    with profile_block('generate_depth_map.profile_lookup'):
        heights = profile.height_at(distances)

    _checkpoint(should_cancel, 'blur')
    if blur_radius > 0:
        logger.info("Applying bilateral blur with radius %d", blur_radius)
        heights = bilateral_blur(heights, blur_radius, sigma_spatial, sigma_range)

    _checkpoint(should_cancel, 'normalize')
    return HeightField(normalize(heights))
