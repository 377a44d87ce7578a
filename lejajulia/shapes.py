"""Target shapes: bitmap outlines and simple generated outlines."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

import numpy as np
import PIL.Image

from .errors import InvalidArgumentError

MAX_COLOR_RANGE = 255

Pixel = tuple[int, int]


def load_shape_mask(path: Union[str, Path], size: int) -> np.ndarray:
    """Load a black-on-white bitmap as a ``(size, size)`` boolean mask.

    A pixel belongs to the shape when it is closer to black than to white.
    """

    if size <= 0:
        raise InvalidArgumentError(f"size must be positive, got {size}")
    with PIL.Image.open(Path(path).expanduser()) as image:
        scaled = image.convert("RGB").resize((size, size), PIL.Image.Resampling.LANCZOS)
        rgb = np.asarray(scaled, dtype=np.int32)
    return threshold(rgb)


def threshold(rgb: np.ndarray) -> np.ndarray:
    close_to_white = rgb.sum(axis=-1) // 3 > MAX_COLOR_RANGE // 2
    return ~close_to_white


def edge_pixels(mask: np.ndarray, start_x: int = 0, start_y: int = 0) -> set[Pixel]:
    """Outline of a solid shape as ``(x, y)`` pixels offset by the start position.

    Interior pixels are kept when one of their four neighbours lies outside
    the shape; shape pixels on the image border are always kept.
    """

    mask = np.asarray(mask, dtype=bool)
    height, width = mask.shape
    edges = np.zeros_like(mask)
    if height > 2 and width > 2:
        core = mask[1:-1, 1:-1]
        surrounded = mask[:-2, 1:-1] & mask[2:, 1:-1] & mask[1:-1, :-2] & mask[1:-1, 2:]
        edges[1:-1, 1:-1] = core & ~surrounded
    edges[0, :] |= mask[0, :]
    edges[-1, :] |= mask[-1, :]
    edges[:, 0] |= mask[:, 0]
    edges[:, -1] |= mask[:, -1]

    ys, xs = np.nonzero(edges)
    return {(int(x) + start_x, int(y) + start_y) for x, y in zip(xs, ys)}


def square_outline(size: int) -> set[Pixel]:
    """Outline of a square spanning the middle half of a ``size x size`` image."""

    low, high = size // 4, 3 * size // 4
    points: set[Pixel] = set()
    for i in range(low, high):
        points.update({(i, low), (i, high), (low, i), (high, i)})
    return points


def shape_points(pixels: Iterable[Pixel], grid: np.ndarray) -> set[complex]:
    """Look up the grid value under every pixel of a shape."""

    height, width = grid.shape
    points: set[complex] = set()
    for x, y in pixels:
        if not (0 <= x < width and 0 <= y < height):
            raise InvalidArgumentError(f"pixel ({x}, {y}) lies outside the {width}x{height} grid")
        points.add(complex(grid[y, x]))
    return points
