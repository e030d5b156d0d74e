"""
Command line entry point: grow a branch pattern and turn it into a relief.

Steps:
    1. Grow branches (or load them from a previous run with --branches)
    2. Export branches JSON (and optionally growth plots)
    3. Build the depth map and save it as PNG
    4. Build the closed panel mesh and save it as binary STL

Configuration is loaded from a JSON file (--config); command line flags
override individual settings.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np

from config import PipelineConfig, load_config, save_config, setup_logging
from sca import GrowthEngine, SCAConfig, attractors_from_image
from sca.profiling import profiler
from sca.visualization import GrowthRecorder, plot_growth_statistics, visualize_growth

from .config import DepthMapConfig, MeshConfig
from .depthmap import generate_depth_map
from .exporters import export_branches, export_depth_png, load_branches
from .mesh import build_relief_mesh
from .profile import ProfileLookup
from .stl import write_binary_stl

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='growth-relief',
        description="Grow a space-colonization pattern and export it as a printable relief (STL)."
    )
    parser.add_argument('--config', type=str, default='config/pipeline.json',
                        help='Pipeline config JSON (default: config/pipeline.json, defaults if missing)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible output')
    parser.add_argument('--output', type=str, default=None, help='Output directory')
    parser.add_argument('--name', type=str, default=None, help='Base name of the output files')
    parser.add_argument('--attractor-image', type=str, default=None,
                        help='Sample attractors from this image (switches to external attractors)')
    parser.add_argument('--branches', type=str, default=None,
                        help='Skip growth and build the relief from an exported branches JSON')
    parser.add_argument('--plot', action='store_true', help='Save growth plots next to the outputs')
    parser.add_argument('--profile', action='store_true', help='Log per-phase timings at the end')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--save-config', type=str, default=None,
                        help='Write the effective configuration to this path')
    return parser


def apply_overrides(pipeline: PipelineConfig, args: argparse.Namespace) -> PipelineConfig:
    if args.seed is not None:
        pipeline.random_seed = args.seed
    if args.output is not None:
        pipeline.output_base = args.output
    if args.name is not None:
        pipeline.name = args.name
    if args.attractor_image is not None:
        pipeline.attractor_image = args.attractor_image
        pipeline.attractor_mode = 'external'
    return pipeline


def grow_forest(pipeline: PipelineConfig, plot: bool = False):
    """Run the growth simulation; returns ``(forest, width, height, iterations)``."""
    sca_config = SCAConfig.from_pipeline(pipeline)
    rng = sca_config.rng()

    external = None
    if sca_config.attractor_mode == 'external' and pipeline.attractor_image:
        external = attractors_from_image(
            pipeline.attractor_image,
            sca_config.num_attractors,
            rng,
            method=pipeline.attractor_image_method,
            threshold=pipeline.attractor_image_threshold,
            size=(sca_config.width, sca_config.height),
        )

    engine = GrowthEngine(sca_config, rng)
    engine.setup(external)
    recorder = GrowthRecorder() if plot else None
    iterations = engine.grow(recorder)

    if plot:
        fig, _ = visualize_growth(engine, save_path=str(pipeline.growth_plot_path))
        plt.close(fig)
        fig, _ = plot_growth_statistics(engine.forest, recorder, save_path=str(pipeline.growth_stats_path))
        plt.close(fig)

    return engine.forest, sca_config.width, sca_config.height, iterations


def run(pipeline: PipelineConfig, branches_path: Optional[str] = None, plot: bool = False) -> dict:
    """Run the full pipeline and return a summary of what was written."""
    pipeline.create_output_dirs()

    if branches_path:
        forest, width, height = load_branches(branches_path)
        iterations = None
    else:
        forest, width, height, iterations = grow_forest(pipeline, plot)
        export_branches(forest, width, height, pipeline.branches_path)

    depth_config = DepthMapConfig.from_pipeline(pipeline)
    field = generate_depth_map(
        forest,
        width,
        height,
        profile=ProfileLookup.default(depth_config.max_distance),
        blur_radius=depth_config.blur_radius,
        cell_size=depth_config.cell_size,
        sigma_spatial=depth_config.sigma_spatial,
        sigma_range=depth_config.sigma_range,
        rng=np.random.default_rng(pipeline.random_seed),
        progress=True,
    )
    export_depth_png(field, pipeline.png_path)

    mesh_config = MeshConfig.from_pipeline(pipeline)
    mesh = build_relief_mesh(field, mesh_config.panel_thickness, mesh_config.relief_height, mesh_config.invert)
    stl_bytes = write_binary_stl(pipeline.stl_path, mesh, name=pipeline.name)

    return {
        'iterations': iterations,
        'branches': len(forest),
        'width': width,
        'height': height,
        'placeholder': field.placeholder,
        'vertices': mesh.vertex_count,
        'triangles': mesh.triangle_count,
        'stl_bytes': stl_bytes,
        'stl_path': pipeline.stl_path,
        'png_path': pipeline.png_path,
    }


def print_summary(summary: dict):
    print()
    print("=" * 60)
    print("Growth relief complete")
    print("=" * 60)
    if summary['iterations'] is not None:
        print(f"  Iterations: {summary['iterations']}")
    print(f"  Branches:   {summary['branches']}")
    print(f"  Canvas:     {summary['width']}x{summary['height']}")
    if summary['placeholder']:
        print("  Depth map:  placeholder noise (no branch segments)")
    print(f"  Mesh:       {summary['vertices']} vertices, {summary['triangles']} triangles")
    print(f"  STL:        {summary['stl_path']} ({summary['stl_bytes'] / 1024:.1f} KB)")
    print(f"  Depth PNG:  {summary['png_path']}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    pipeline = apply_overrides(load_config(args.config), args)
    if args.save_config:
        save_config(pipeline, args.save_config)

    profiler.enabled = args.profile
    try:
        summary = run(pipeline, branches_path=args.branches, plot=args.plot)
    except (ValueError, OSError) as e:
        logger.error("%s", e)
        return 1
    finally:
        if args.profile:
            profiler.log_stats()
            profiler.enabled = False

    print_summary(summary)
    return 0


if __name__ == '__main__':
    sys.exit(main())
