import numpy as np
import pytest

from lejajulia import InvalidArgumentError, LejaFormatError, LejaPoints, select_leja_points
from lejajulia import persistence


@pytest.fixture
def leja():
    angles = np.linspace(0.0, 2 * np.pi, 90, endpoint=False)
    shape = {complex(round(1.3 * np.cos(a), 3), round(0.7 * np.sin(a), 3)) for a in angles}
    return select_leja_points(shape, 30, 1.0 / 30, seed=1.3 + 0j)


def test_text_layout():
    leja = LejaPoints(points=(0.5 + 0j, -0.25 + 1.5j), cap_e=1.25, constant=0.985)
    assert persistence.dumps(leja).splitlines() == [
        "capE: 1.25",
        "constant: 0.985",
        "0.5 0.0",
        "-0.25 1.5",
    ]


def test_round_trip_reproduces_polynomial(leja, tmp_path):
    path = persistence.save(leja, tmp_path / "nested" / "shape.txt")
    restored = persistence.load(path)

    assert restored == leja
    queries = np.array([0j, 0.3 + 0.2j, -1.1 + 0.4j, 2 - 2j, 0.01j])
    np.testing.assert_array_equal(restored.polynomial()(queries), leja.polynomial()(queries))


def test_points_keep_selection_order(leja):
    assert persistence.loads(persistence.dumps(leja)).points == leja.points


def test_trailing_blank_lines_ignored():
    leja = persistence.loads("capE: 2.0\nconstant: 0.5\n1 0\n-1 0\n\n\n")
    assert leja.points == (1 + 0j, -1 + 0j)
    assert leja.cap_e == 2.0
    assert leja.constant == 0.5


@pytest.mark.parametrize(
    "text",
    [
        "",
        "capE: 1.0\n",
        "cap: 1.0\nconstant: 0.5\n0 0\n",
        "capE: 1.0\nconst: 0.5\n0 0\n",
        "constant: 0.5\ncapE: 1.0\n0 0\n",
        "capE: one\nconstant: 0.5\n",
        "capE:1.0\nconstant: 0.5\n",
        "capE: 1.0\nconstant: 0.5\n0.1\n",
        "capE: 1.0\nconstant: 0.5\n0.1 0.2 0.3\n",
        "capE: 1.0\nconstant: 0.5\n0.1 x\n",
        "capE: -1.0\nconstant: 0.5\n0 0\n",
    ],
)
def test_malformed_files_rejected(text):
    with pytest.raises(LejaFormatError):
        persistence.loads(text)


def test_format_error_is_invalid_argument():
    assert issubclass(LejaFormatError, InvalidArgumentError)


def test_missing_file_reported(tmp_path):
    with pytest.raises(FileNotFoundError):
        persistence.load(tmp_path / "missing.txt")
