"""
Configuration for depth map and mesh generation.
"""

from dataclasses import dataclass


@dataclass
class DepthMapConfig:
    blur_radius: int = 2        # bilateral blur radius in pixels, 0 disables
    max_distance: float = 15.0  # distance at which the profile reaches its end
    cell_size: float = 20.0     # spatial grid cell; larger = more accurate, slower
    sigma_spatial: float = 2.0
    sigma_range: float = 0.1

    @classmethod
    def from_pipeline(cls, pipeline_config) -> 'DepthMapConfig':
        return cls(
            blur_radius=pipeline_config.blur_radius,
            max_distance=pipeline_config.max_distance,
            cell_size=pipeline_config.cell_size,
            sigma_spatial=pipeline_config.sigma_spatial,
            sigma_range=pipeline_config.sigma_range,
        )


@dataclass
class MeshConfig:
    panel_thickness: float = 50.0
    relief_height: float = 20.0
    invert: bool = False

    @classmethod
    def from_pipeline(cls, pipeline_config) -> 'MeshConfig':
        return cls(
            panel_thickness=pipeline_config.panel_thickness,
            relief_height=pipeline_config.relief_height,
            invert=pipeline_config.invert,
        )
