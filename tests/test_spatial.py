import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from sca.spatial import BranchSpatialIndex


def test_empty_index_returns_no_branch():
    index = BranchSpatialIndex(100, 100)
    index.rebuild(np.empty((0, 2)))
    dist, idx = index.nearest(np.array([[1.0, 2.0], [3.0, 4.0]]))
    assert np.all(np.isinf(dist))
    assert_array_equal(idx, [-1, -1])
    assert len(index) == 0


def test_single_branch():
    index = BranchSpatialIndex(100, 100)
    index.rebuild(np.array([[10.0, 10.0]]))
    dist, idx = index.nearest(np.array([[13.0, 14.0]]))
    assert_allclose(dist, [5.0])
    assert_array_equal(idx, [0])


def test_nearest_wraps_around_edges():
    index = BranchSpatialIndex(100, 50)
    index.rebuild(np.array([[50.0, 25.0], [1.0, 1.0]]))
    dist, idx = index.nearest(np.array([[99.0, 49.0]]))
    assert_array_equal(idx, [1])
    assert_allclose(dist, [np.hypot(2.0, 2.0)])


def test_ties_go_to_lowest_index():
    index = BranchSpatialIndex(100, 100)
    index.rebuild(np.array([[30.0, 30.0], [14.0, 10.0], [10.0, 10.0], [12.0, 14.0]]))
    dist, idx = index.nearest(np.array([[12.0, 10.0]]))
    assert_array_equal(idx, [1])
    assert_allclose(dist, [2.0])


def test_matches_brute_force():
    rng = np.random.default_rng(3)
    branches = rng.random((200, 2)) * [80, 60]
    points = rng.random((500, 2)) * [80, 60]
    index = BranchSpatialIndex(80, 60)
    index.rebuild(branches)
    dist, idx = index.nearest(points)

    dx = np.abs(points[:, None, 0] - branches[None, :, 0])
    dy = np.abs(points[:, None, 1] - branches[None, :, 1])
    dx = np.minimum(dx, 80 - dx)
    dy = np.minimum(dy, 60 - dy)
    brute = np.hypot(dx, dy)
    assert_array_equal(idx, brute.argmin(axis=1))
    assert_allclose(dist, brute.min(axis=1))
