import matplotlib

matplotlib.use('Agg')

import numpy as np
import pytest

from sca import BranchForest, SCAConfig


@pytest.fixture
def small_config():
    return SCAConfig(
        num_attractors=150,
        kill_distance=3.0,
        influence_distance=12.0,
        segment_length=2.0,
        width=60,
        height=40,
        num_roots=3,
        random_seed=7,
    )


@pytest.fixture
def line_forest():
    """Root at (10, 10) with one child at (15, 10)."""
    return BranchForest.from_arrays([[10.0, 10.0], [15.0, 10.0]], [-1, 0], [5.0, 5.0])


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
