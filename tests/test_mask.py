import numpy as np
import pytest
from PIL import Image

from sca.mask import attractors_from_image, edge_mask, load_image, sample_positions


@pytest.fixture
def square_image(tmp_path):
    """White 40x20 image with a black square at x 10..19, y 5..14."""
    pixels = np.full((20, 40, 3), 255, dtype=np.uint8)
    pixels[5:15, 10:20] = 0
    path = tmp_path / 'square.png'
    Image.fromarray(pixels).save(path)
    return path


def test_dark_pixels(square_image, rng):
    points = np.array(attractors_from_image(str(square_image), 50, rng))
    assert len(points) == 50
    assert points[:, 0].min() >= 10 and points[:, 0].max() <= 19
    assert points[:, 1].min() >= 5 and points[:, 1].max() <= 14


def test_fewer_candidates_than_requested(square_image, rng):
    points = attractors_from_image(str(square_image), 500, rng)
    assert len(points) == 100
    assert len(set(points)) == 100


def test_alpha_method(tmp_path, rng):
    pixels = np.zeros((10, 10, 4), dtype=np.uint8)
    pixels[2, 3] = [255, 255, 255, 255]
    path = tmp_path / 'alpha.png'
    Image.fromarray(pixels).save(path)
    assert attractors_from_image(str(path), 5, rng, method='alpha') == [(3.0, 2.0)]


def test_edge_method_finds_square_outline(square_image, rng):
    points = np.array(attractors_from_image(str(square_image), 30, rng, method='edge', threshold=0.3))
    assert len(points) == 30
    inside = (points[:, 0] > 11) & (points[:, 0] < 18) & (points[:, 1] > 6) & (points[:, 1] < 13)
    assert not inside.any()


def test_edge_mask_of_flat_image_is_empty():
    img = Image.new('RGBA', (8, 8), (128, 128, 128, 255))
    assert not edge_mask(img).any()


def test_resize_to_domain(square_image, rng):
    assert load_image(str(square_image), (80, 40)).size == (80, 40)
    points = np.array(attractors_from_image(str(square_image), 20, rng, size=(80, 40)))
    assert points[:, 0].max() < 80 and points[:, 1].max() < 40


def test_sample_positions_empty_mask(rng):
    assert sample_positions(np.zeros((4, 4), dtype=bool), 10, rng) == []
