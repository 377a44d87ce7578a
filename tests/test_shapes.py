import numpy as np
import PIL.Image
import pytest

from lejajulia import InvalidArgumentError, complex_grid, edge_pixels, load_shape_mask, shape_points, square_outline
from lejajulia.shapes import threshold


def test_threshold_splits_at_mid_grey():
    rgb = np.array([[[0, 0, 0], [255, 255, 255]], [[127, 127, 127], [128, 128, 128]]])
    np.testing.assert_array_equal(threshold(rgb), [[True, False], [True, False]])


def test_edge_pixels_of_filled_block():
    mask = np.zeros((7, 7), dtype=bool)
    mask[1:6, 2:5] = True
    edges = edge_pixels(mask)

    assert (3, 3) not in edges
    assert {(2, 1), (4, 1), (2, 5), (4, 5), (2, 3), (4, 3), (3, 1), (3, 5)} <= edges
    assert len(edges) == 5 * 3 - 3


def test_edge_pixels_are_offset():
    mask = np.zeros((4, 4), dtype=bool)
    mask[1, 1] = True
    assert edge_pixels(mask, start_x=10, start_y=20) == {(11, 21)}


def test_shape_on_image_border_is_kept():
    mask = np.ones((3, 3), dtype=bool)
    assert edge_pixels(mask) == {(x, y) for x in range(3) for y in range(3)} - {(1, 1)}


def test_square_outline():
    outline = square_outline(8)

    assert (2, 2) in outline
    assert (6, 2) in outline and (2, 6) in outline
    assert (4, 4) not in outline
    assert all(2 <= x <= 6 and 2 <= y <= 6 for x, y in outline)


def test_shape_points_read_grid_values():
    grid = complex_grid(5, 5, spacing=0.5, decimals=1)
    points = shape_points({(2, 2), (0, 0), (4, 2)}, grid)
    assert points == {0j, complex(-1.0, 1.0), complex(1.0, 0.0)}


def test_shape_points_reject_pixels_off_grid():
    grid = complex_grid(5, 5)
    with pytest.raises(InvalidArgumentError):
        shape_points({(5, 0)}, grid)


def test_load_shape_mask(tmp_path):
    pixels = np.full((20, 20, 3), 255, dtype=np.uint8)
    pixels[5:15, 5:15] = 0
    path = tmp_path / "block.png"
    PIL.Image.fromarray(pixels).save(path)

    mask = load_shape_mask(path, 20)

    assert mask.shape == (20, 20)
    assert mask[10, 10]
    assert not mask[0, 0] and not mask[19, 19]
    assert 80 <= mask.sum() <= 120


def test_load_shape_mask_rejects_bad_size(tmp_path):
    with pytest.raises(InvalidArgumentError):
        load_shape_mask(tmp_path / "unused.png", 0)
