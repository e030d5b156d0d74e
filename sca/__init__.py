"""
Space Colonization Algorithm (SCA) for 2D branching growth on a torus.

Based on: "Modeling Trees with a Space Colonization Algorithm"
by Runions, Lane, and Prusinkiewicz (2007).
"""

from .attractor import Attractor, generate_attractors
from .branch import Branch, BranchForest, NO_PARENT
from .config import SCAConfig
from .engine import GrowthEngine, GrowthState, generate_roots
from .mask import attractors_from_image

__all__ = [
    'Attractor',
    'Branch',
    'BranchForest',
    'NO_PARENT',
    'SCAConfig',
    'GrowthEngine',
    'GrowthState',
    'generate_attractors',
    'generate_roots',
    'attractors_from_image',
]
