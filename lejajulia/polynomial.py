"""Host-side evaluation of the renormalized Leja interpolating polynomial."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Union

import numpy as np

ComplexLike = Union[complex, np.ndarray]


@dataclass(frozen=True, eq=False)
class RenormalizedPolynomial:
    """Polynomial ``z * prod(z - leja)`` rescaled by ``cap_e`` after every factor.

    The running product is divided by ``cap_e`` after each multiplication so
    that degrees in the thousands stay inside double-precision range. The
    constant is applied once, after the last factor.
    """

    points: np.ndarray = field(repr=False)
    cap_e: float
    constant: float

    @classmethod
    def from_points(cls, points: Sequence[complex], cap_e: float, constant: float) -> "RenormalizedPolynomial":
        array = np.array(points, dtype=np.complex128).reshape(-1)
        array.setflags(write=False)
        return cls(points=array, cap_e=float(cap_e), constant=float(constant))

    @property
    def degree(self) -> int:
        return int(self.points.size) + 1

    def __call__(self, z: ComplexLike) -> ComplexLike:
        values = np.asarray(z, dtype=np.complex128)
        zs = np.atleast_1d(values)
        acc = zs.copy()
        with np.errstate(over="ignore", invalid="ignore", under="ignore"):
            for leja in self.points:
                acc *= zs - leja
                acc.real /= self.cap_e
                acc.imag /= self.cap_e
            acc.real *= self.constant
            acc.imag *= self.constant
        if values.ndim == 0:
            return acc[0]
        return acc.reshape(values.shape)
