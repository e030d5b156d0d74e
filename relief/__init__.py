"""
Relief generation: branch forest -> depth map -> closed panel mesh -> binary STL.
"""

from .config import DepthMapConfig, MeshConfig
from .depthmap import generate_depth_map, normalize
from .errors import Cancelled, MeshValidationError
from .exporters import export_branches, export_depth_png, load_branches
from .heightfield import HeightField
from .mesh import Mesh, build_relief_mesh
from .profile import ProfileLookup
from .stl import StlData, encode_binary_stl, read_binary_stl, validate_mesh, write_binary_stl

__all__ = [
    'DepthMapConfig',
    'MeshConfig',
    'generate_depth_map',
    'normalize',
    'Cancelled',
    'MeshValidationError',
    'export_branches',
    'export_depth_png',
    'load_branches',
    'HeightField',
    'Mesh',
    'build_relief_mesh',
    'ProfileLookup',
    'StlData',
    'encode_binary_stl',
    'read_binary_stl',
    'validate_mesh',
    'write_binary_stl',
]
