import json

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from PIL import Image

from relief.exporters import export_branches, export_depth_png, load_branches
from relief.heightfield import HeightField


def test_branches_round_trip(tmp_path, line_forest):
    path = tmp_path / 'branches.json'
    data = export_branches(line_forest, 40, 30, path)
    assert data['source_width'] == 40
    assert data['branches'][1] == {"position": [15.0, 10.0], "parent": 0, "depth": 1, "length": 5.0}

    forest, width, height = load_branches(path)
    assert (width, height) == (40, 30)
    assert_allclose(forest.positions, line_forest.positions)
    assert_array_equal(forest.parents, line_forest.parents)
    assert_allclose(forest.lengths, line_forest.lengths)


def test_load_branches_rejects_bad_links(tmp_path):
    path = tmp_path / 'branches.json'
    path.write_text(json.dumps({
        "source_width": 10,
        "source_height": 10,
        "branches": [{"position": [1, 1], "parent": 3}],
    }))
    with pytest.raises(ValueError):
        load_branches(path)


def test_load_branches_rejects_missing_keys(tmp_path):
    path = tmp_path / 'branches.json'
    path.write_text(json.dumps({"branches": []}))
    with pytest.raises(ValueError, match="source_width"):
        load_branches(path)


def test_depth_png(tmp_path):
    field = HeightField(np.array([[0.0, 0.5], [1.0, 0.25]]))
    path = export_depth_png(field, tmp_path / 'depth.png')

    with Image.open(path) as img:
        assert img.mode == 'LA'
        assert img.size == (2, 2)
        pixels = np.asarray(img)
    assert_array_equal(pixels[:, :, 0], [[0, 128], [255, 64]])
    assert_array_equal(pixels[:, :, 1], 255)


def test_depth_png_accepts_arrays(tmp_path):
    path = export_depth_png(np.zeros((3, 4)), tmp_path / 'flat.png')
    with Image.open(path) as img:
        assert img.size == (4, 3)


def test_heightfield_from_flat():
    field = HeightField.from_flat([0, 1, 2, 3, 4, 5], 3, 2)
    assert (field.width, field.height) == (3, 2)
    assert_allclose(field.flat(), [0, 1, 2, 3, 4, 5])
    with pytest.raises(ValueError):
        HeightField.from_flat([0, 1, 2], 2, 2)
    with pytest.raises(ValueError):
        HeightField(np.zeros(3))
