"""
Closed solid mesh from a height field.

The solid is a relief top surface, a flat bottom at ``z = 0`` and four walls
joining their boundaries. All triangles are wound so their normals point out
of the solid: every directed edge appears once and its reverse once.
"""

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np

from sca.profiling import profile

from .heightfield import HeightField

logger = logging.getLogger(__name__)


@dataclass
class Mesh:
    vertices: np.ndarray  # flat xyz triples, float32
    indices: np.ndarray   # flat triangle triples, int64

    @property
    def vertex_count(self) -> int:
        return len(self.vertices) // 3

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def vertex_array(self) -> np.ndarray:
        return self.vertices.reshape(-1, 3)

    def triangles(self) -> np.ndarray:
        return self.indices.reshape(-1, 3)


def _pair(first, second) -> np.ndarray:
    """Interleave two triangle lists so each quad's triangles stay adjacent."""
    return np.stack([np.column_stack(first), np.column_stack(second)], axis=1).reshape(-1, 3)


def _wall(top_a, top_b, bottom_a, bottom_b) -> np.ndarray:
    # quad split along top_b -> bottom_a
    return _pair((top_a, bottom_a, top_b), (top_b, bottom_a, bottom_b)).reshape(-1, 2, 3)


@profile
def build_relief_mesh(
    field: Union[HeightField, np.ndarray],
    panel_thickness: float,
    relief_height: float,
    invert: bool = False
) -> Mesh:
    """
    Build a watertight panel from a normalized height field.

    Args:
        field: ``(height, width)`` heights in ``[0, 1]``
        panel_thickness: Height of the flat base under the relief
        relief_height: Scale of the relief above the base
        invert: Use ``1 - h`` so branches become grooves instead of ridges

    Vertices are centred on the domain with x mirrored; the top surface comes
    first (``W*H`` vertices) followed by the bottom surface.
    """
    values = field.values if isinstance(field, HeightField) else np.asarray(field, dtype=np.float64)
    if values.ndim != 2:
        raise ValueError(f"height field must be 2D, got shape {values.shape}")
    height, width = values.shape
    if width < 2 or height < 2:
        raise ValueError(f"height field must be at least 2x2, got {width}x{height}")
    if not np.all(np.isfinite(values)):
        raise ValueError("height field contains non-finite values")
    if panel_thickness < 0:
        raise ValueError(f"panel_thickness must not be negative, got {panel_thickness}")

    h = 1.0 - values if invert else values
    gx, gy = np.meshgrid(-np.arange(width) + width / 2, np.arange(height) - height / 2)
    z_top = panel_thickness + h.astype(np.float64) * relief_height

    top = np.column_stack([gx.ravel(), gy.ravel(), z_top.ravel()])
    bottom = np.column_stack([gx.ravel(), gy.ravel(), np.zeros(width * height)])
    vertices = np.vstack([top, bottom]).astype(np.float32).ravel()

    grid = np.arange(width * height, dtype=np.int64).reshape(height, width)
    base = width * height

    i0 = grid[:-1, :-1].ravel()
    i1 = grid[:-1, 1:].ravel()
    i2 = grid[1:, :-1].ravel()
    i3 = grid[1:, 1:].ravel()
    top_faces = _pair((i0, i2, i1), (i1, i2, i3))
    bottom_faces = _pair((i0, i1, i2), (i1, i3, i2)) + base

    left, right = grid[:, 0], grid[:, -1]
    first, last = grid[0, :], grid[-1, :]

    # the right column and the first row run the other way round the solid
    side_faces = np.stack([
        _wall(left[:-1], left[1:], left[:-1] + base, left[1:] + base),
        _wall(right[1:], right[:-1], right[1:] + base, right[:-1] + base),
    ], axis=1).reshape(-1, 3)
    end_faces = np.stack([
        _wall(first[1:], first[:-1], first[1:] + base, first[:-1] + base),
        _wall(last[:-1], last[1:], last[:-1] + base, last[1:] + base),
    ], axis=1).reshape(-1, 3)

    indices = np.concatenate([top_faces, bottom_faces, side_faces, end_faces]).ravel()
    mesh = Mesh(vertices=vertices, indices=indices)
    logger.info("Built relief mesh: %d vertices, %d triangles", mesh.vertex_count, mesh.triangle_count)
    return mesh
