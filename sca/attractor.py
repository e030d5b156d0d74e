"""
Attractors - growth hormone sources that pull branches toward them.

Generation modes place the initial attractor cloud on the toroidal domain.
"""

import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .config import SCAConfig
from .torus import wrap

logger = logging.getLogger(__name__)


class Attractor:
    __slots__ = ('x', 'y', 'cell', 'row_offset')

    def __init__(self, x: float, y: float, cell: Optional[Tuple[int, int]] = None,
                 row_offset: Optional[int] = None):
        self.x = float(x)
        self.y = float(y)
        self.cell = cell
        self.row_offset = row_offset

    def to_tuple(self) -> tuple:
        return (self.x, self.y)

    def __repr__(self) -> str:
        if self.cell is not None:
            return f"Attractor({self.x:.2f}, {self.y:.2f}, cell={self.cell})"
        return f"Attractor({self.x:.2f}, {self.y:.2f})"


def uniform_attractors(config: SCAConfig, rng: np.random.Generator) -> List[Attractor]:
    xs = rng.random(config.num_attractors) * config.width
    ys = rng.random(config.num_attractors) * config.height
    return [Attractor(x, y) for x, y in zip(xs, ys)]


def mesh_attractors(config: SCAConfig, rng: np.random.Generator, hexagonal: bool = False) -> List[Attractor]:
    """
    One attractor per grid cell centre, thinned by ``grid_probability`` and
    displaced by up to ``grid_jitter`` of half a cell. Hexagonal meshes shift
    odd rows by half a cell, giving a honeycomb.
    """
    w, h = config.width, config.height
    period_x = w / config.grid_cells_x
    period_y = h / config.grid_cells_y
    jitter_x = config.grid_jitter * period_x * 0.5
    jitter_y = config.grid_jitter * period_y * 0.5

    attractors = []
    for iy in range(config.grid_cells_y):
        for ix in range(config.grid_cells_x):
            if rng.random() > config.grid_probability:
                continue

            offset = period_x * 0.5 if (hexagonal and iy % 2 == 1) else 0.0
            cx = ix * period_x + offset + period_x * 0.5
            cy = iy * period_y + period_y * 0.5

            # half-up rounding onto integer pixel coordinates
            x = np.floor(cx + (rng.random() - 0.5) * 2 * jitter_x + 0.5)
            y = np.floor(cy + (rng.random() - 0.5) * 2 * jitter_y + 0.5)

            attractors.append(Attractor(
                wrap(x, w), wrap(y, h),
                cell=(ix, iy),
                row_offset=iy % 2 if hexagonal else None,
            ))

    kind = 'Hexagonal' if hexagonal else 'Rectangular'
    logger.info("%s mesh: %dx%d cells, %d attractors",
                kind, config.grid_cells_x, config.grid_cells_y, len(attractors))
    return attractors


def external_attractors(config: SCAConfig, points: Iterable[Tuple[float, float]]) -> List[Attractor]:
    return [Attractor(wrap(x, config.width), wrap(y, config.height)) for x, y in points]


def generate_attractors(
    config: SCAConfig,
    rng: np.random.Generator,
    external: Optional[Iterable[Tuple[float, float]]] = None
) -> List[Attractor]:
    """
    Generate the attractor cloud for ``config.attractor_mode``.

    Unknown modes and an empty external point list fall back to uniform
    sampling; both are logged rather than raised.
    """
    mode = config.attractor_mode
    logger.info("Generating attractors: mode=%s, count=%d, canvas=%dx%d",
                mode, config.num_attractors, config.width, config.height)

    if mode == 'uniform':
        attractors = uniform_attractors(config, rng)
    elif mode == 'rect_mesh':
        attractors = mesh_attractors(config, rng, hexagonal=False)
    elif mode == 'hex_mesh':
        attractors = mesh_attractors(config, rng, hexagonal=True)
    elif mode == 'external':
        attractors = external_attractors(config, external or [])
        if not attractors:
            logger.warning("No external attractors supplied, using uniform as fallback")
            attractors = uniform_attractors(config, rng)
    else:
        logger.error("Unknown attractor mode: %r, using uniform as fallback", mode)
        attractors = uniform_attractors(config, rng)

    logger.info("Generated %d attractors", len(attractors))
    return attractors


def attractor_array(attractors: List[Attractor]) -> np.ndarray:
    if not attractors:
        return np.empty((0, 2), dtype=np.float64)
    return np.array([a.to_tuple() for a in attractors], dtype=np.float64)
