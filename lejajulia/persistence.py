"""Plain-text persistence of Leja sequences.

File layout::

    capE: <double>
    constant: <double>
    <re_1> <im_1>
    <re_2> <im_2>
    ...

Points are stored in selection order.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

from .errors import InvalidArgumentError, LejaFormatError
from .leja import LejaPoints

CAP_E_TOKEN = "capE:"
CONSTANT_TOKEN = "constant:"
LEJA_POINTS_SUFFIX = ".txt"

PathLike = Union[str, Path]


def dumps(leja: LejaPoints) -> str:
    lines = [
        f"{CAP_E_TOKEN} {leja.cap_e!r}",
        f"{CONSTANT_TOKEN} {leja.constant!r}",
    ]
    lines.extend(f"{z.real!r} {z.imag!r}" for z in leja.points)
    return "\n".join(lines) + "\n"


def _parse_header(line: str, token: str, line_number: int) -> float:
    parts = line.split()
    if len(parts) != 2 or parts[0] != token:
        raise LejaFormatError(f"line {line_number}: expected '{token} <value>', got {line!r}")
    try:
        return float(parts[1])
    except ValueError as exc:
        raise LejaFormatError(f"line {line_number}: {parts[1]!r} is not a number") from exc


def _parse_point(line: str, line_number: int) -> complex:
    parts = line.split()
    if len(parts) != 2:
        raise LejaFormatError(f"line {line_number}: expected '<re> <im>', got {line!r}")
    try:
        return complex(float(parts[0]), float(parts[1]))
    except ValueError as exc:
        raise LejaFormatError(f"line {line_number}: {line!r} does not hold two numbers") from exc


def loads(text: str) -> LejaPoints:
    """Parse a Leja sequence from its text form."""

    lines = text.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    if len(lines) < 2:
        raise LejaFormatError("missing 'capE:' and 'constant:' header lines")

    cap_e = _parse_header(lines[0], CAP_E_TOKEN, 1)
    constant = _parse_header(lines[1], CONSTANT_TOKEN, 2)
    points = tuple(_parse_point(line, number) for number, line in enumerate(lines[2:], start=3))

    try:
        return LejaPoints(points=points, cap_e=cap_e, constant=constant)
    except InvalidArgumentError as exc:
        raise LejaFormatError(str(exc)) from exc


def save(leja: LejaPoints, path: PathLike) -> Path:
    """Write ``leja`` to ``path``, creating parent directories as needed."""

    output_path = Path(path).expanduser()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dumps(leja), encoding="utf-8")
    return output_path


def load(path: PathLike) -> LejaPoints:
    return loads(Path(path).expanduser().read_text(encoding="utf-8"))
