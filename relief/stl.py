"""
Binary STL serialization.

Layout: 80-byte ASCII header, little-endian uint32 triangle count, then one
50-byte record per triangle (normal, three vertices, uint16 attribute).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from .errors import MeshValidationError
from .mesh import Mesh

logger = logging.getLogger(__name__)

HEADER_SIZE = 80
RECORD_SIZE = 50

STL_RECORD = np.dtype([
    ('normal', '<f4', (3,)),
    ('vertices', '<f4', (3, 3)),
    ('attribute', '<u2'),
])


@dataclass
class StlData:
    header: bytes
    normals: np.ndarray    # (N, 3)
    triangles: np.ndarray  # (N, 3, 3)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)


def _check_buffers(vertices, indices):
    if vertices is None or len(vertices) == 0:
        raise MeshValidationError("mesh has no vertices")
    if len(vertices) % 3 != 0:
        raise MeshValidationError(f"vertex buffer length {len(vertices)} is not a multiple of 3")
    if indices is None or len(indices) == 0:
        raise MeshValidationError("mesh has no indices")
    if len(indices) % 3 != 0:
        raise MeshValidationError(f"index buffer length {len(indices)} is not a multiple of 3")


def validate_mesh(vertices, indices):
    """
    Check flat vertex and index buffers before encoding.

    Raises MeshValidationError on the first problem found.
    """
    _check_buffers(vertices, indices)
    vertex_count = len(vertices) // 3
    indices = np.asarray(indices)
    bad = np.flatnonzero((indices < 0) | (indices >= vertex_count))
    if len(bad) > 0:
        pos = int(bad[0])
        raise MeshValidationError(
            f"index {int(indices[pos])} at position {pos} is out of range (max {vertex_count - 1})"
        )


def _header(name: str, triangle_count: int, vertex_count: int) -> bytes:
    text = f"3D Relief Mesh - {name} - Triangles: {triangle_count} - Vertices: {vertex_count}"
    return text.encode('ascii', errors='replace')[:HEADER_SIZE].ljust(HEADER_SIZE, b'\0')


def face_normals(corners: np.ndarray) -> np.ndarray:
    """Unit normals of ``(N, 3, 3)`` triangles, ``(0, 0, 0)`` where degenerate."""
    normals = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
    length = np.linalg.norm(normals, axis=1, keepdims=True)
    return np.where(length > 0, normals / np.where(length > 0, length, 1.0), 0.0)


def encode_binary_stl(vertices, indices, name: str = 'growth_relief') -> bytes:
    """Encode flat vertex/index buffers as a complete binary STL file."""
    _check_buffers(vertices, indices)

    points = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    triangles = np.asarray(indices, dtype=np.int64).reshape(-1, 3)

    out_of_range = np.flatnonzero(np.any((triangles < 0) | (triangles >= len(points)), axis=1))
    if len(out_of_range) > 0:
        t = int(out_of_range[0])
        raise MeshValidationError(f"triangle {t} references a vertex outside [0, {len(points)})")

    corners = points[triangles]
    records = np.zeros(len(triangles), dtype=STL_RECORD)
    records['normal'] = face_normals(corners)
    records['vertices'] = corners

    header = _header(name, len(triangles), len(points))
    data = header + np.uint32(len(triangles)).astype('<u4').tobytes() + records.tobytes()
    logger.debug("Encoded %d triangles into %d bytes", len(triangles), len(data))
    return data


def write_binary_stl(path: Union[str, Path], mesh_or_vertices, indices=None,
                     name: str = 'growth_relief') -> int:
    """
    Write a mesh to ``path`` as binary STL and return the number of bytes written.

    The whole file is encoded before the path is opened, so a mesh that fails
    validation leaves nothing on disk.
    """
    if isinstance(mesh_or_vertices, Mesh):
        vertices, indices = mesh_or_vertices.vertices, mesh_or_vertices.indices
    else:
        vertices = mesh_or_vertices
    data = encode_binary_stl(vertices, indices, name)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("Saved STL with %d triangles to %s", (len(data) - HEADER_SIZE - 4) // RECORD_SIZE, path)
    return len(data)


def read_binary_stl(source: Union[str, Path, bytes]) -> StlData:
    """Parse a binary STL from a path or raw bytes."""
    data = source if isinstance(source, (bytes, bytearray)) else Path(source).read_bytes()
    if len(data) < HEADER_SIZE + 4:
        raise MeshValidationError(f"STL data too short: {len(data)} bytes")

    count = int(np.frombuffer(data, dtype='<u4', count=1, offset=HEADER_SIZE)[0])
    expected = HEADER_SIZE + 4 + count * RECORD_SIZE
    if len(data) < expected:
        raise MeshValidationError(f"STL declares {count} triangles but holds {len(data)} of {expected} bytes")

    records = np.frombuffer(data, dtype=STL_RECORD, count=count, offset=HEADER_SIZE + 4)
    return StlData(
        header=bytes(data[:HEADER_SIZE]),
        normals=records['normal'].astype(np.float32),
        triangles=records['vertices'].astype(np.float32),
    )


def header_text(header: bytes) -> str:
    return header.rstrip(b'\0').decode('ascii', errors='replace')
