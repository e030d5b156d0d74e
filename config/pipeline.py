"""
Unified configuration for the growth-to-relief pipeline.

Growth, depth map and mesh settings live in one flat dataclass; each stage
pulls its own view with ``<StageConfig>.from_pipeline``. All output paths are
derived from ``output_base`` and ``name``.
"""

from dataclasses import dataclass, fields, asdict
from typing import Optional
from pathlib import Path
import json
import logging

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """
    Unified configuration for the growth-to-relief pipeline.
    All output paths are derived from output_base and name.
    """

    # ==================== OUTPUT SETTINGS ====================
    name: str = 'growth_relief'
    output_base: str = 'outputs'

    # ==================== GROWTH SETTINGS ====================
    num_attractors: int = 5000
    kill_distance: float = 5.0
    influence_distance: float = 10.0
    segment_length: float = 3.0
    width: int = 300
    height: int = 200

    attractor_mode: str = 'uniform'  # uniform, rect_mesh, hex_mesh, external
    num_roots: int = 5
    root_mode: str = 'from_attractors'  # from_attractors, random_edge, line, circle

    grid_cells_x: int = 35
    grid_cells_y: int = 35
    grid_probability: float = 1.0
    grid_jitter: float = 0.2

    max_iterations: Optional[int] = None

    # External attractors sampled from an image (attractor_mode='external')
    attractor_image: Optional[str] = None
    attractor_image_method: str = 'dark'  # dark, alpha, edge
    attractor_image_threshold: float = 0.5

    # ==================== DEPTH MAP SETTINGS ====================
    blur_radius: int = 2
    max_distance: float = 15.0
    cell_size: float = 20.0
    sigma_spatial: float = 2.0
    sigma_range: float = 0.1

    # ==================== MESH SETTINGS ====================
    panel_thickness: float = 50.0
    relief_height: float = 20.0
    invert: bool = False

    # ==================== MISC ====================
    random_seed: Optional[int] = None

    # ==================== DERIVED PATHS ====================
    @property
    def output_dir(self) -> Path:
        return Path(self.output_base)

    @property
    def stl_path(self) -> Path:
        return self.output_dir / f'{self.name}.stl'

    @property
    def png_path(self) -> Path:
        return self.output_dir / f'{self.name}_depth.png'

    @property
    def branches_path(self) -> Path:
        return self.output_dir / f'{self.name}_branches.json'

    @property
    def growth_plot_path(self) -> Path:
        return self.output_dir / f'{self.name}_growth.png'

    @property
    def growth_stats_path(self) -> Path:
        return self.output_dir / f'{self.name}_stats.png'

    # ==================== DIRECTORY CREATION ====================
    def create_output_dirs(self):
        """Create the output directory."""
        self.output_dir.mkdir(parents=True, exist_ok=True)


def load_config(path: str = 'config/pipeline.json') -> PipelineConfig:
    """Load config from JSON file, with defaults for missing fields."""
    config_path = Path(path)
    if not config_path.exists():
        logger.info("Config file %s not found, using defaults", config_path)
        return PipelineConfig()

    with open(config_path, 'r') as f:
        data = json.load(f)

    known = {f.name for f in fields(PipelineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", config_path, ', '.join(unknown))

    return PipelineConfig(**{k: v for k, v in data.items() if k in known})


def save_config(config: PipelineConfig, path: str = 'config/pipeline.json'):
    """Save config to JSON file."""
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(asdict(config), f, indent=2)

    logger.info("Saved config to %s", config_path)
