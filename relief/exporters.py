"""
File exporters for the intermediate and final products of the pipeline.
Branch data round-trips through JSON so growth and relief building can run separately.
"""

import json
import logging
from pathlib import Path
from typing import Tuple, Union

import numpy as np

from sca.branch import BranchForest

from .heightfield import HeightField

logger = logging.getLogger(__name__)


def export_depth_png(field: Union[HeightField, np.ndarray], output_path) -> Path:
    """Save a height field as an 8-bit grayscale PNG with an opaque alpha channel."""
    if not isinstance(field, HeightField):
        field = HeightField(field)
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    field.to_image().save(path)
    logger.info("Saved depth map (%dx%d) to %s", field.width, field.height, path)
    return path


def export_branches(forest: BranchForest, width: int, height: int, output_path) -> dict:
    """
    Export a branch forest to JSON.

    Format:
    {
        "source_width": int,
        "source_height": int,
        "branches": [
            {
                "position": [x, y],
                "parent": int,   # -1 for roots
                "depth": int,    # distance from root
                "length": float
            }
        ]
    }
    """
    depths = forest.depths()
    branches_data = []
    for branch, depth in zip(forest, depths):
        branches_data.append({
            "position": [float(branch.x), float(branch.y)],
            "parent": int(branch.parent),
            "depth": int(depth),
            "length": float(branch.length),
        })

    data = {
        "source_width": int(width),
        "source_height": int(height),
        "branches": branches_data,
    }

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)

    logger.info("Exported %d branches to %s", len(branches_data), path)
    return data


def load_branches(input_path) -> Tuple[BranchForest, int, int]:
    """Load a forest written by ``export_branches``; returns ``(forest, width, height)``."""
    with open(input_path, 'r') as f:
        data = json.load(f)

    try:
        width = int(data["source_width"])
        height = int(data["source_height"])
        branches = data["branches"]
    except KeyError as e:
        raise ValueError(f"branch file {input_path} is missing key {e}") from e

    positions = np.array([b["position"] for b in branches], dtype=np.float64).reshape(-1, 2)
    parents = np.array([b["parent"] for b in branches], dtype=np.int64)
    lengths = np.array([b.get("length", 0.0) for b in branches], dtype=np.float64)

    forest = BranchForest.from_arrays(positions, parents, lengths)
    logger.info("Loaded %d branches (%dx%d) from %s", len(forest), width, height, input_path)
    return forest, width, height
