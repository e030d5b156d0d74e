import numpy as np
import pytest
from numpy.testing import assert_allclose

from relief.depthmap import (
    SegmentGrid,
    bilateral_blur,
    distance_field,
    generate_depth_map,
    normalize,
    point_segment_distance,
)
from relief.errors import Cancelled
from relief.heightfield import HeightField
from sca import BranchForest


class TestPointSegmentDistance:
    segment = np.array([[0.0, 0.0, 2.0, 0.0]])

    @pytest.mark.parametrize("point, expected", [
        ((1.0, 1.0), 1.0),   # above the middle
        ((-1.0, 0.0), 1.0),  # before the start
        ((3.0, 0.0), 1.0),   # past the end
        ((2.0, 0.0), 0.0),
    ])
    def test_distance(self, point, expected):
        d = point_segment_distance(point[0], point[1], self.segment)
        assert_allclose(d, [expected])

    def test_degenerate_segment(self):
        d = point_segment_distance(1.0, 3.0, np.array([[1.0, 1.0, 1.0, 1.0]]))
        assert_allclose(d, [2.0])


def test_segment_grid_files_by_bounding_box():
    grid = SegmentGrid(np.array([[5.0, 5.0, 25.0, 5.0]]), 40, 40, cell_size=10)
    assert grid.cells[0][0] == [0]
    assert grid.cells[0][2] == [0]
    assert grid.cells[0][3] == []
    assert list(grid.neighbourhood(3, 1)) == [0]
    assert len(grid.neighbourhood(3, 3)) == 0


def test_segment_grid_rejects_bad_cell_size():
    with pytest.raises(ValueError):
        SegmentGrid(np.empty((0, 4)), 10, 10, cell_size=0)


def test_distance_field_exact_within_one_cell():
    segments = np.array([[5.0, 10.0, 15.0, 10.0]])
    field = distance_field(segments, 20, 20, cell_size=20)
    assert field.shape == (20, 20)
    assert field[10, 10] == 0.0
    assert field[0, 10] == pytest.approx(10.0)
    assert field[10, 0] == pytest.approx(5.0)


def test_distance_field_is_inf_outside_neighbourhood():
    segments = np.array([[1.0, 1.0, 2.0, 1.0]])
    field = distance_field(segments, 100, 10, cell_size=10)
    assert np.isfinite(field[:, :20]).all()
    assert np.isinf(field[:, 20:]).all()


def test_normalize_maps_to_unit_range():
    out = normalize(np.array([[1.0, 2.0], [3.0, 5.0]]))
    assert out.min() == 0.0
    assert out.max() == 1.0
    assert out.dtype == np.float32


def test_normalize_uniform_field_is_defined():
    out = normalize(np.full((4, 4), 0.5))
    assert not np.isnan(out).any()
    assert_allclose(out, 0.0)


def test_bilateral_blur_keeps_constant_field():
    field = np.full((8, 8), 0.7)
    assert_allclose(bilateral_blur(field, 2), 0.7, rtol=1e-6)


def test_bilateral_blur_preserves_sharp_edges():
    field = np.zeros((6, 6))
    field[:, 3:] = 1.0
    assert_allclose(bilateral_blur(field, 2, sigma_range=0.1), field, atol=1e-6)


def test_bilateral_blur_smooths_small_steps():
    field = np.zeros((6, 6))
    field[:, 3:] = 0.05
    out = bilateral_blur(field, 2, sigma_range=0.1)
    assert 0.0 < out[0, 2] < 0.05
    assert 0.0 < out[0, 3] < 0.05


def test_radius_zero_disables_blur():
    field = np.arange(12, dtype=np.float64).reshape(3, 4)
    assert_allclose(bilateral_blur(field, 0), field)


def test_depth_map_from_branches(line_forest):
    field = generate_depth_map(line_forest, 30, 30, blur_radius=0)
    assert isinstance(field, HeightField)
    assert (field.width, field.height) == (30, 30)
    assert not field.placeholder
    assert field.min() == 0.0
    assert field.max() == 1.0
    assert field.values[10, 12] == pytest.approx(1.0)
    assert field.values[29, 29] == pytest.approx(0.0)


def test_depth_map_with_blur_is_normalized(line_forest):
    field = generate_depth_map(line_forest, 30, 30, blur_radius=2)
    assert field.min() == pytest.approx(0.0)
    assert field.max() == pytest.approx(1.0)
    assert not np.isnan(field.values).any()


def test_roots_only_give_placeholder(rng):
    roots_only = BranchForest.from_arrays([[5.0, 5.0]], [-1])
    field = generate_depth_map(roots_only, 16, 12, rng=rng)
    assert field.placeholder
    assert field.values.shape == (12, 16)
    assert field.min() == 0.0 and field.max() == 1.0


def test_missing_forest_gives_placeholder():
    field = generate_depth_map(None, 8, 8)
    assert field.placeholder


def test_invalid_size():
    with pytest.raises(ValueError):
        generate_depth_map(None, 0, 10)


def test_cancel_before_start(line_forest):
    with pytest.raises(Cancelled):
        generate_depth_map(line_forest, 30, 30, should_cancel=lambda: True)


def test_cancel_between_phases(line_forest):
    polls = []

    def should_cancel():
        polls.append(1)
        return len(polls) >= 3

    with pytest.raises(Cancelled, match="blur"):
        generate_depth_map(line_forest, 30, 30, should_cancel=should_cancel)
    assert len(polls) == 3


def test_depth_map_is_deterministic(line_forest):
    a = generate_depth_map(line_forest, 25, 20)
    b = generate_depth_map(line_forest, 25, 20)
    assert_allclose(a.values, b.values)
