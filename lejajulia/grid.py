"""Construction of complex sampling grids and the inverse pixel lookup.

Grids are ``(height, width)`` arrays of ``complex128``: row ``y`` runs
downwards (decreasing imaginary part) and column ``x`` runs to the right
(increasing real part), so column ``x`` is ``grid[:, x]``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import numpy as np

from .errors import InvalidArgumentError

DEFAULT_SPACING = 0.005
DEFAULT_DECIMALS = 3
MAX_DECIMALS = 15


def _truncate(values: np.ndarray, decimals: int) -> np.ndarray:
    multiplier = float(10 ** decimals)
    return np.trunc(values * multiplier) / multiplier


def _assemble(re: np.ndarray, im: np.ndarray) -> np.ndarray:
    grid = np.empty((im.size, re.size), dtype=np.complex128)
    grid.real = re[np.newaxis, :]
    grid.imag = im[:, np.newaxis]
    return grid


def num_decimals(spacing: float) -> int:
    """Number of decimal digits needed to write ``spacing``, capped at 15."""

    exponent = Decimal(repr(float(spacing))).normalize().as_tuple().exponent
    if not isinstance(exponent, int) or exponent >= 0:
        return 0
    return min(-exponent, MAX_DECIMALS)


def complex_grid(
    width: int,
    height: int,
    *,
    origin_x: Optional[int] = None,
    origin_y: Optional[int] = None,
    spacing: float = DEFAULT_SPACING,
    decimals: int = DEFAULT_DECIMALS,
) -> np.ndarray:
    """Sample the plane so that pixel ``(origin_x, origin_y)`` maps to zero.

    Coordinates are truncated toward zero at ``decimals`` digits, which keeps
    every value produced for the same pixel bit-identical across calls.
    """

    if width <= 0 or height <= 0:
        raise InvalidArgumentError(f"grid dimensions must be positive, got {width}x{height}")
    origin_x = width // 2 if origin_x is None else int(origin_x)
    origin_y = height // 2 if origin_y is None else int(origin_y)

    xs = np.arange(width, dtype=np.int64)
    ys = np.arange(height, dtype=np.int64)
    re = _truncate((xs - origin_x) * np.float64(spacing), decimals)
    im = _truncate((origin_y - ys) * np.float64(spacing), decimals)
    return _assemble(re, im)


def complex_grid_from_bounds(left: float, top: float, spacing: float, width: int, height: int) -> np.ndarray:
    """Sample ``width x height`` points starting at the top-left value ``left + i*top``."""

    if width <= 0 or height <= 0:
        raise InvalidArgumentError(f"grid dimensions must be positive, got {width}x{height}")
    if not spacing > 0:
        raise InvalidArgumentError(f"spacing must be positive, got {spacing!r}")

    decimals = num_decimals(spacing)
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    re = _truncate(xs * np.float64(spacing) + np.float64(left), decimals)
    im = _truncate(np.float64(top) - ys * np.float64(spacing), decimals)
    return _assemble(re, im)


@dataclass(frozen=True)
class ZoomBox:
    """Inclusive pixel rectangle on a grid."""

    left_x: int
    right_x: int
    top_y: int
    bottom_y: int

    def __post_init__(self) -> None:
        if self.right_x <= self.left_x or self.bottom_y <= self.top_y:
            raise InvalidArgumentError(f"zoom box is empty: {self}")

    @property
    def width(self) -> int:
        return self.right_x - self.left_x

    @property
    def height(self) -> int:
        return self.bottom_y - self.top_y

    def fits(self, width: int, height: int) -> bool:
        return 0 <= self.left_x and self.right_x < width and 0 <= self.top_y and self.bottom_y < height

    def outline_mask(self, width: int, height: int) -> np.ndarray:
        """Boolean ``(height, width)`` mask of the box border."""

        ys, xs = np.mgrid[0:height, 0:width]
        inside = (xs >= self.left_x) & (xs <= self.right_x) & (ys >= self.top_y) & (ys <= self.bottom_y)
        on_edge = (xs == self.left_x) | (xs == self.right_x) | (ys == self.top_y) | (ys == self.bottom_y)
        return inside & on_edge


def zoom_grid(grid: np.ndarray, box: ZoomBox, zoom: int) -> np.ndarray:
    """Resample the area under ``box`` with ``zoom`` samples per original pixel."""

    height, width = grid.shape
    if zoom < 1:
        raise InvalidArgumentError(f"zoom must be at least 1, got {zoom}")
    if not box.fits(width, height):
        raise InvalidArgumentError(f"{box} does not fit in a {width}x{height} grid")

    top_left = grid[box.top_y, box.left_x]
    bottom_right = grid[box.bottom_y, box.right_x]
    spacing = float((bottom_right.real - top_left.real) / box.width / zoom)
    return complex_grid_from_bounds(
        float(top_left.real),
        float(top_left.imag),
        spacing,
        zoom * box.width,
        zoom * box.height,
    )


class BoundsPolicy(str, enum.Enum):
    """What :class:`GridLocator` does with values that fall off the grid."""

    UNCHECKED = "unchecked"
    CLAMP = "clamp"
    STRICT = "strict"


@dataclass(frozen=True)
class GridLocator:
    """Map complex values back to approximate pixel indices of a grid."""

    top_left: complex
    bottom_right: complex
    width: int
    height: int
    policy: BoundsPolicy = BoundsPolicy.CLAMP

    def __post_init__(self) -> None:
        object.__setattr__(self, "policy", BoundsPolicy(self.policy))
        if self.width <= 0 or self.height <= 0:
            raise InvalidArgumentError(f"grid dimensions must be positive, got {self.width}x{self.height}")
        if self.top_left.real == self.bottom_right.real or self.top_left.imag == self.bottom_right.imag:
            raise InvalidArgumentError(
                f"grid corners {self.top_left} and {self.bottom_right} do not span an area; "
                "at least two rows and two columns are needed"
            )

    @classmethod
    def from_grid(cls, grid: np.ndarray, policy: BoundsPolicy = BoundsPolicy.CLAMP) -> "GridLocator":
        height, width = grid.shape
        return cls(
            top_left=complex(grid[0, 0]),
            bottom_right=complex(grid[-1, -1]),
            width=int(width),
            height=int(height),
            policy=policy,
        )

    def locate(self, z: complex) -> Optional[tuple[int, int]]:
        """Return ``(x, y)`` for ``z``; ``None`` only under the strict policy."""

        left, top = self.top_left.real, self.top_left.imag
        right, bottom = self.bottom_right.real, self.bottom_right.imag
        x = int((z.real - left) / (right - left) * self.width)
        y = int((top - z.imag) / (top - bottom) * self.height)

        if self.policy is BoundsPolicy.UNCHECKED:
            return x, y
        if self.policy is BoundsPolicy.CLAMP:
            return min(max(x, 0), self.width - 1), min(max(y, 0), self.height - 1)
        if 0 <= x < self.width and 0 <= y < self.height:
            return x, y
        return None

    def box_around(self, z: complex, half_size: int) -> Optional[ZoomBox]:
        """Zoom box of ``2 * half_size`` pixels centred on ``z``, kept on the grid."""

        location = self.locate(z)
        if location is None:
            return None
        x, y = location
        left = max(x - half_size, 0)
        right = min(x + half_size, self.width - 1)
        top = max(y - half_size, 0)
        bottom = min(y + half_size, self.height - 1)
        return ZoomBox(left_x=left, right_x=right, top_y=top, bottom_y=bottom)
