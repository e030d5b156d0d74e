"""
Visualization utilities for the growth simulation.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection

from .branch import BranchForest
from .engine import GrowthEngine

logger = logging.getLogger(__name__)


def _finish(fig, save_path: Optional[str], show: bool, **save_kwargs):
    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches='tight', **save_kwargs)
        logger.info("Saved figure to %s", save_path)
    if show:
        plt.show()


def visualize_growth(
    engine: GrowthEngine,
    show_attractors: bool = True,
    branch_color: str = 'white',
    background_color: str = 'black',
    attractor_color: str = 'lime',
    branch_width: float = 1.0,
    attractor_size: float = 1.0,
    figsize: Tuple[int, int] = (12, 8),
    save_path: Optional[str] = None,
    show: bool = False
):
    """Draw the current branch forest and the live attractors."""
    w, h = engine.config.width, engine.config.height
    fig, ax = plt.subplots(figsize=figsize)
    ax.set_facecolor(background_color)

    segments = engine.segments()
    if len(segments):
        lines = segments.reshape(-1, 2, 2)
        ax.add_collection(LineCollection(lines, colors=branch_color, linewidths=branch_width))

    attractors = engine.attractors
    if show_attractors and len(attractors):
        ax.scatter(attractors[:, 0], attractors[:, 1], c=attractor_color, s=attractor_size)

    ax.set_xlim(0, w)
    ax.set_ylim(h, 0)
    ax.set_aspect('equal')
    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_title(f"Iteration {engine.iteration}: {len(engine.forest)} branches")

    fig.tight_layout()
    _finish(fig, save_path, show, facecolor=background_color)
    return fig, ax


class GrowthRecorder:
    """Step callback collecting per-iteration counts for plotting."""

    def __init__(self):
        self.iterations: List[int] = []
        self.branch_counts: List[int] = []
        self.attractor_counts: List[int] = []

    def __call__(self, engine: GrowthEngine, iteration: int):
        self.iterations.append(iteration)
        self.branch_counts.append(len(engine.forest))
        self.attractor_counts.append(len(engine.attractors))


def plot_growth_statistics(
    forest: BranchForest,
    recorder: Optional[GrowthRecorder] = None,
    save_path: Optional[str] = None,
    show: bool = False
):
    """Plot statistics about the grown forest."""
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    depths = forest.depths()
    max_depth = int(depths.max()) if len(depths) else 0
    depth_counts = np.bincount(depths, minlength=max_depth + 1)
    axes[0].bar(range(max_depth + 1), depth_counts, color='forestgreen', edgecolor='black')
    axes[0].set_xlabel('Depth')
    axes[0].set_ylabel('Branch Count')
    axes[0].set_title('Branches per Depth Level')

    if recorder is not None and recorder.iterations:
        axes[1].plot(recorder.iterations, recorder.branch_counts, label='branches')
        axes[1].plot(recorder.iterations, recorder.attractor_counts, label='attractors')
        axes[1].legend()
    axes[1].set_xlabel('Iteration')
    axes[1].set_title('Growth Progress')

    fig.tight_layout()
    _finish(fig, save_path, show)
    return fig, axes
