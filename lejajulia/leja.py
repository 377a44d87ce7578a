"""Discrete Leja point selection over a finite shape."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .errors import InvalidArgumentError, InvalidStateError
from .polynomial import RenormalizedPolynomial


@dataclass(frozen=True)
class LejaPoints:
    """An ordered Leja sequence together with its normalization constants."""

    points: tuple[complex, ...]
    cap_e: float
    constant: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.cap_e) and self.cap_e > 0):
            raise InvalidArgumentError(f"cap_e must be positive and finite, got {self.cap_e!r}")
        if not math.isfinite(self.constant):
            raise InvalidArgumentError(f"constant must be finite, got {self.constant!r}")

    def __len__(self) -> int:
        return len(self.points)

    def point_set(self) -> frozenset[complex]:
        return frozenset(self.points)

    def polynomial(self) -> RenormalizedPolynomial:
        return RenormalizedPolynomial.from_points(self.points, self.cap_e, self.constant)


class LejaSelection:
    """Greedy Leja construction, one point per :meth:`advance` call.

    Every candidate carries the running product of its distances to the
    points selected so far, each distance raised to ``exponent``. Only the
    factor for the most recent point is multiplied in at each step.
    """

    def __init__(self, shape: Iterable[complex], exponent: float, seed: Optional[complex] = None):
        candidates = list(dict.fromkeys(complex(z) for z in shape))
        if not candidates:
            raise InvalidArgumentError("shape must contain at least one point")
        if seed is None:
            seed = candidates[0]
        else:
            seed = complex(seed)
            if seed not in set(candidates):
                raise InvalidArgumentError(f"seed {seed!r} is not a point of the shape")

        self._exponent = float(exponent)
        self._points: list[complex] = [seed]
        self._candidates = np.array([z for z in candidates if z != seed], dtype=np.complex128)
        self._weights = np.ones(self._candidates.shape, dtype=np.float64)

    @property
    def points(self) -> tuple[complex, ...]:
        return tuple(self._points)

    @property
    def remaining(self) -> int:
        return int(self._candidates.size)

    def advance(self) -> float:
        """Select the next Leja point and return the maximum weight it had."""

        if not self._points or self._candidates.size == 0:
            raise InvalidStateError("no candidate points left to select from")

        last = self._points[-1]
        self._weights *= np.abs(self._candidates - last) ** self._exponent
        index = int(np.argmax(self._weights))
        best = float(self._weights[index])

        self._points.append(complex(self._candidates[index]))
        self._candidates = np.delete(self._candidates, index)
        self._weights = np.delete(self._weights, index)
        return best


def polynomial_constant(n: int, s: float) -> float:
    return math.exp(-n * s / 2)


def select_leja_points(
    shape: Iterable[complex],
    n: int,
    s: float,
    *,
    seed: Optional[complex] = None,
) -> LejaPoints:
    """Select ``n`` Leja points from ``shape``.

    ``s`` is the small spacing parameter of the polynomial constant
    ``exp(-n * s / 2)``; ``1 / n`` is a good default. ``shape`` is copied and
    never modified.
    """

    points = list(dict.fromkeys(complex(z) for z in shape))
    if n < 2:
        raise InvalidArgumentError(f"at least two Leja points are required, got n={n}")
    if n > len(points):
        raise InvalidArgumentError(f"cannot select {n} Leja points from a shape of {len(points)} points")
    if not s > 0:
        raise InvalidArgumentError(f"s must be positive, got {s!r}")

    selection = LejaSelection(points, exponent=1.0 / n, seed=seed)
    cap_e = 0.0
    for _ in range(n - 1):
        cap_e = selection.advance()

    return LejaPoints(points=selection.points, cap_e=cap_e, constant=polynomial_constant(n, s))
