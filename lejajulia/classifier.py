"""Filled Julia set classification of complex sample grids."""

from __future__ import annotations

import enum
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Union

import numpy as np

from . import kernels
from .errors import InvalidArgumentError
from .polynomial import RenormalizedPolynomial

ESCAPE_ITERATIONS = 15
DISTANCE_ITERATIONS = 200
ESCAPE_RADIUS = 10.0

ProgressCallback = Callable[[int, int], None]


class Label(enum.IntEnum):
    """Category assigned to every sample of a grid."""

    OUTSIDE_SET = 0
    INSIDE_SET = 1
    ORIGINAL_SHAPE = 2
    LEJA_POINT = 3


def _magnitude(z: np.complex128) -> float:
    with np.errstate(over="ignore", invalid="ignore"):
        return float(np.abs(z))


@dataclass(frozen=True, eq=False)
class EscapeTime:
    """Escape-time classification with Leja point and shape highlighting.

    Membership in the Leja sequence, then in ``shape``, takes precedence over
    the orbit test. A NaN magnitude counts as an escape.
    """

    polynomial: RenormalizedPolynomial
    shape: Iterable[complex] = ()
    max_iterations: int = ESCAPE_ITERATIONS
    escape_radius: float = ESCAPE_RADIUS
    device: Optional[str] = None
    _leja_set: frozenset = field(init=False, repr=False)
    _shape_set: frozenset = field(init=False, repr=False)
    _shape_array: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_leja_set", frozenset(complex(z) for z in self.polynomial.points))
        object.__setattr__(self, "_shape_set", frozenset(complex(z) for z in self.shape))
        shape_array = np.fromiter(self._shape_set, dtype=np.complex128, count=len(self._shape_set))
        object.__setattr__(self, "_shape_array", shape_array)

    def escapes(self, z: complex) -> bool:
        orbit = np.complex128(z)
        for _ in range(self.max_iterations):
            orbit = self.polynomial(orbit)
            magnitude = _magnitude(orbit)
            if magnitude > self.escape_radius or np.isnan(magnitude):
                return True
        return False

    def classify(self, z: complex) -> Label:
        if z in self._leja_set:
            return Label.LEJA_POINT
        if z in self._shape_set:
            return Label.ORIGINAL_SHAPE
        if self.escapes(z):
            return Label.OUTSIDE_SET
        return Label.INSIDE_SET

    def classify_block(self, block: np.ndarray) -> np.ndarray:
        escaped = kernels.escape_mask(
            self.polynomial,
            block,
            self.max_iterations,
            self.escape_radius,
            device=self.device,
        )
        labels = np.where(escaped, Label.OUTSIDE_SET, Label.INSIDE_SET).astype(np.uint8)
        if self._shape_set:
            labels[np.isin(block, self._shape_array)] = Label.ORIGINAL_SHAPE
        if self._leja_set:
            labels[np.isin(block, self.polynomial.points)] = Label.LEJA_POINT
        return labels


@dataclass(frozen=True, eq=False)
class DistanceEstimate:
    """Classification by the sign of the derivative-based distance estimate."""

    polynomial: RenormalizedPolynomial
    max_iterations: int = DISTANCE_ITERATIONS
    escape_radius: float = ESCAPE_RADIUS
    device: Optional[str] = None

    def distance(self, z: complex) -> float:
        orbit = np.complex128(z)
        dz = np.complex128(1 + 0j)
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            if _magnitude(orbit) < self.escape_radius:
                for _ in range(self.max_iterations):
                    dz = 2 * orbit * dz
                    orbit = self.polynomial(orbit)
                    magnitude = _magnitude(orbit)
                    if magnitude > self.escape_radius or np.isnan(magnitude):
                        break
            magnitude = np.float64(_magnitude(orbit))
            return float(magnitude * np.log(magnitude) / np.float64(_magnitude(dz)))

    def classify(self, z: complex) -> Label:
        if self.distance(z) > 0:
            return Label.OUTSIDE_SET
        return Label.INSIDE_SET

    def classify_block(self, block: np.ndarray) -> np.ndarray:
        distances = kernels.distance_estimates(
            self.polynomial,
            block,
            self.max_iterations,
            self.escape_radius,
            device=self.device,
        )
        return np.where(distances > 0, Label.OUTSIDE_SET, Label.INSIDE_SET).astype(np.uint8)


ClassificationMethod = Union[EscapeTime, DistanceEstimate]


def classify_grid(
    method: ClassificationMethod,
    grid: np.ndarray,
    *,
    workers: Optional[int] = None,
    chunks: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
) -> np.ndarray:
    """Label every sample of ``grid`` with ``method``.

    Columns are split into ``chunks`` contiguous blocks that are classified
    concurrently; ``progress`` is called from the calling thread with the
    number of finished columns after each block completes.
    """

    if grid.ndim != 2:
        raise InvalidArgumentError(f"grid must be two-dimensional, got shape {grid.shape}")
    height, width = grid.shape
    labels = np.empty((height, width), dtype=np.uint8)
    if width == 0 or height == 0:
        return labels

    workers = workers if workers is not None else (os.cpu_count() or 1)
    if workers < 1:
        raise InvalidArgumentError(f"workers must be at least 1, got {workers}")
    chunks = chunks if chunks is not None else workers * 4
    bounds = np.array_split(np.arange(width), max(1, min(chunks, width)))

    done = 0
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(method.classify_block, grid[:, columns[0]:columns[-1] + 1]): columns
            for columns in bounds
            if columns.size
        }
        for future in as_completed(futures):
            columns = futures[future]
            labels[:, columns[0]:columns[-1] + 1] = future.result()
            done += columns.size
            if progress is not None:
                progress(done, width)
    return labels
