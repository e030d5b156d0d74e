"""
GrowthEngine - space colonization on a toroidal domain.

Every attractor claims the nearest branch within the influence radius (or
is consumed when a branch comes within the kill distance). Each claimed
branch spawns one child one segment length along the average direction of
its attractors. Growth finishes on the first step that spawns nothing.

The engine is a small state machine (idle -> growing -> finished | stopped)
advanced one atomic step per :meth:`GrowthEngine.tick`, so a caller's
scheduler decides when the next step runs and can cancel between steps.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np

from .attractor import Attractor, attractor_array, generate_attractors
from .branch import Branch, BranchForest
from .config import ROOT_MODES, SCAConfig
from .profiling import profile
from .spatial import BranchSpatialIndex
from .torus import wrap, wrap_delta

logger = logging.getLogger(__name__)

StepCallback = Callable[['GrowthEngine', int], None]


class GrowthState(Enum):
    IDLE = 'idle'
    GROWING = 'growing'
    FINISHED = 'finished'
    STOPPED = 'stopped'


def generate_roots(config: SCAConfig, attractors: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Root positions for ``config.root_mode`` as an ``(R, 2)`` array."""
    n, w, h = config.num_roots, config.width, config.height
    mode = config.root_mode
    logger.info("Generating roots: mode=%s, count=%d", mode, n)

    if mode not in ROOT_MODES:
        logger.error("Unknown root mode: %r, using from_attractors as fallback", mode)
        mode = 'from_attractors'

    if mode == 'from_attractors':
        if len(attractors) == 0:
            logger.warning("No attractors available for root placement")
            return np.empty((0, 2), dtype=np.float64)
        # sampled with replacement, a root may repeat
        picks = rng.integers(0, len(attractors), size=n)
        roots = attractors[picks].copy()
    elif mode == 'random_edge':
        xs = rng.random(n) * w
        roots = np.column_stack([xs, np.full(n, h - 1.0)])
    elif mode == 'line':
        xs = (np.arange(n) + 0.5) * (w / n) if n else np.empty(0)
        roots = np.column_stack([xs, np.full(n, h - 20.0)])
    else:
        radius = min(w, h) * 0.3
        angles = np.arange(n) / n * 2 * np.pi if n else np.empty(0)
        roots = np.column_stack([w / 2 + radius * np.cos(angles),
                                 h / 2 + radius * np.sin(angles)])

    roots = roots.reshape(-1, 2)
    roots[:, 0] = wrap(roots[:, 0], w)
    roots[:, 1] = wrap(roots[:, 1], h)
    logger.info("Generated %d root branches", len(roots))
    return roots


class GrowthEngine:
    def __init__(self, config: SCAConfig, rng: Optional[np.random.Generator] = None):
        self.config = config
        self.rng = rng if rng is not None else config.rng()
        self.forest = BranchForest()
        self.spatial_index = BranchSpatialIndex(config.width, config.height)
        self.state = GrowthState.IDLE
        self.iteration = 0
        self.initial_attractors: List[Attractor] = []
        self._attractors = np.empty((0, 2), dtype=np.float64)
        self._callbacks: List[StepCallback] = []
        self._stop_requested = False
        self._in_step = False
        self._ready = False

    # ------------------------------------------------------------------
    # setup

    def setup(self, external_attractors: Optional[Iterable[Tuple[float, float]]] = None):
        """Generate attractors and roots from the configuration."""
        self.reset()
        self.initial_attractors = generate_attractors(self.config, self.rng, external_attractors)
        self._attractors = attractor_array(self.initial_attractors)
        roots = generate_roots(self.config, self._attractors, self.rng)
        self.forest.add_roots(roots, self.config.segment_length)
        self._ready = True

    def reset(self):
        self.forest.clear()
        self.spatial_index.rebuild(np.empty((0, 2)))
        self._attractors = np.empty((0, 2), dtype=np.float64)
        self.initial_attractors = []
        self.iteration = 0
        self.state = GrowthState.IDLE
        self._stop_requested = False
        self._ready = False

    def add_callback(self, callback: StepCallback):
        """Register a side effect (drawing, recording) to run after every step."""
        self._callbacks.append(callback)

    # ------------------------------------------------------------------
    # stepping

    @profile
    def step(self) -> bool:
        """
        Perform one growth iteration.
        Returns True if any branch grew, False if growth is complete.
        """
        forest = self.forest
        forest.reset_growth()
        if len(forest) == 0 or len(self._attractors) == 0:
            return False

        w, h = self.config.width, self.config.height
        self.spatial_index.rebuild(forest.positions)
        distances, nearest = self.spatial_index.nearest(self._attractors)

        killed = distances < self.config.kill_distance
        influenced = ~killed & (distances < self.config.influence_distance)

        if influenced.any():
            owners = nearest[influenced]
            pull = self._attractors[influenced]
            origins = forest.positions[owners]
            dx = wrap_delta(pull[:, 0] - origins[:, 0], w)
            dy = wrap_delta(pull[:, 1] - origins[:, 1], h)
            mag = np.hypot(dx, dy)
            # an attractor sitting exactly on its branch pulls nowhere
            mag[mag == 0] = np.inf
            forest.accumulate(owners, np.column_stack([dx / mag, dy / mag]))

        if killed.any():
            self._attractors = self._attractors[~killed]

        growing = np.flatnonzero(forest.counts > 0)
        logger.debug("Step %d: %d attractors killed, %d influenced, %d branches grow",
                     self.iteration + 1, int(killed.sum()), int(influenced.sum()), len(growing))
        if len(growing) == 0:
            return False

        directions = forest.average_directions(growing)
        lengths = forest.lengths[growing]
        children = forest.positions[growing] + directions * lengths[:, None]
        children[:, 0] = wrap(children[:, 0], w)
        children[:, 1] = wrap(children[:, 1], h)
        forest.extend(children, growing, lengths)
        return True

    def start(self, external_attractors: Optional[Iterable[Tuple[float, float]]] = None):
        if not self._ready:
            self.setup(external_attractors)
        self.state = GrowthState.GROWING
        logger.info("Starting growth with %d attractors and %d roots",
                    len(self._attractors), len(self.forest))

    def stop(self):
        """Request cancellation; honoured before the next step, including the first."""
        self._stop_requested = True

    def tick(self) -> bool:
        """
        Advance the simulation by one scheduling tick.

        Returns True while more ticks are wanted.
        """
        if self.state is GrowthState.IDLE:
            self.start()
        if self.state is not GrowthState.GROWING:
            return False

        if self._stop_requested:
            self.state = GrowthState.STOPPED
            logger.info("Growth stopped after %d iterations", self.iteration)
            return False

        if self._in_step:
            raise RuntimeError("GrowthEngine.tick() re-entered while a step is running")
        self._in_step = True
        try:
            grew = self.step()
            if grew:
                self.iteration += 1
            for callback in self._callbacks:
                callback(self, self.iteration)
        finally:
            self._in_step = False

        if not grew:
            self.state = GrowthState.FINISHED
            logger.info("Growth finished after %d iterations", self.iteration)
            return False

        limit = self.config.max_iterations
        if limit is not None and self.iteration >= limit:
            self.state = GrowthState.STOPPED
            logger.info("Growth stopped at the iteration limit (%d)", limit)
            return False

        return True

    def grow(self, callback: Optional[StepCallback] = None) -> int:
        """
        Run the full growth loop until completion.
        Optional callback is called after each iteration with (engine, iteration).
        Returns the total number of iterations.
        """
        if callback is not None:
            self.add_callback(callback)
        try:
            while self.tick():
                if self.iteration % 50 == 0:
                    logger.info("  Iteration %d: %d branches, %d attractors remaining",
                                self.iteration, len(self.forest), len(self._attractors))
        finally:
            if callback is not None:
                self._callbacks.remove(callback)

        logger.info("Growth complete after %d iterations: %d branches, %d attractors remaining",
                    self.iteration, len(self.forest), len(self._attractors))
        return self.iteration

    # ------------------------------------------------------------------
    # read-only views

    @property
    def attractors(self) -> np.ndarray:
        return self._attractors.copy()

    @property
    def branches(self) -> List[Branch]:
        return self.forest.snapshot()

    @property
    def is_running(self) -> bool:
        return self.state is GrowthState.GROWING

    def segments(self) -> np.ndarray:
        return self.forest.segments(self.config.width, self.config.height)
