"""
Configuration for the growth simulation.
"""

from dataclasses import dataclass
from typing import Literal, Optional
import numpy as np

AttractorMode = Literal['uniform', 'rect_mesh', 'hex_mesh', 'external']
RootMode = Literal['from_attractors', 'random_edge', 'line', 'circle']

ATTRACTOR_MODES = ('uniform', 'rect_mesh', 'hex_mesh', 'external')
ROOT_MODES = ('from_attractors', 'random_edge', 'line', 'circle')


@dataclass
class SCAConfig:
    num_attractors: int = 5000
    kill_distance: float = 5.0        # attractors closer than this are consumed
    influence_distance: float = 10.0  # attractors pull branches within this radius
    segment_length: float = 3.0

    width: int = 300
    height: int = 200

    attractor_mode: AttractorMode = 'uniform'
    num_roots: int = 5
    root_mode: RootMode = 'from_attractors'

    # Mesh attractor modes
    grid_cells_x: int = 35
    grid_cells_y: int = 35
    grid_probability: float = 1.0  # chance that a cell receives an attractor
    grid_jitter: float = 0.2       # displacement as a fraction of half a cell

    max_iterations: Optional[int] = None  # None = grow until nothing spawns
    random_seed: Optional[int] = None

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.random_seed)

    @classmethod
    def from_pipeline(cls, pipeline_config) -> 'SCAConfig':
        """Create SCA Config from PipelineConfig."""
        return cls(
            num_attractors=pipeline_config.num_attractors,
            kill_distance=pipeline_config.kill_distance,
            influence_distance=pipeline_config.influence_distance,
            segment_length=pipeline_config.segment_length,
            width=pipeline_config.width,
            height=pipeline_config.height,
            attractor_mode=pipeline_config.attractor_mode,
            num_roots=pipeline_config.num_roots,
            root_mode=pipeline_config.root_mode,
            grid_cells_x=pipeline_config.grid_cells_x,
            grid_cells_y=pipeline_config.grid_cells_y,
            grid_probability=pipeline_config.grid_probability,
            grid_jitter=pipeline_config.grid_jitter,
            max_iterations=pipeline_config.max_iterations,
            random_seed=pipeline_config.random_seed,
        )
