import numpy as np
import pytest

import lejaplot
from lejajulia import BoundsPolicy, ZoomBox, complex_grid, persistence
from lejajulia import select_leja_points, shape_points


def resolve(*argv):
    parser = lejaplot.build_parser()
    return lejaplot.resolve_config(parser.parse_args(list(argv)), parser)


def test_parse_shape_spec():
    assert lejaplot.parse_shape_spec("square", 400) == lejaplot.ShapeSpec("square", 0, 0, 400)
    assert lejaplot.parse_shape_spec("a.png@10,20", 400) == lejaplot.ShapeSpec("a.png", 10, 20, 400)
    assert lejaplot.parse_shape_spec("a.png@10,20,50", 400) == lejaplot.ShapeSpec("a.png", 10, 20, 50)


@pytest.mark.parametrize("spec", ["@1,2", "a.png@1", "a.png@1,2,3,4", "a.png@x,y", "a.png@0,0,0"])
def test_parse_shape_spec_rejects_bad_placement(spec):
    with pytest.raises(ValueError):
        lejaplot.parse_shape_spec(spec, 400)


@pytest.mark.parametrize(
    "milliseconds, expected",
    [(20, "20 ms"), (3020, "3 s 20 ms"), (63020, "1 min 3 s 20 ms"), (3723004, "1 h 2 min 3 s 4 ms")],
)
def test_format_elapsed(milliseconds, expected):
    assert lejaplot.format_elapsed(milliseconds) == expected


def test_defaults(tmp_path):
    config = resolve("--shape", "square", "--output-dir", str(tmp_path))

    assert config.width == config.height == 400
    assert config.leja_count is None
    assert config.s is None
    assert config.method == "escape"
    assert config.bounds_policy is BoundsPolicy.CLAMP
    assert config.leja_path == tmp_path.resolve() / f"julia{persistence.LEJA_POINTS_SUFFIX}"
    assert config.zoom_box is None


def test_default_leja_count_fits_default_square(tmp_path):
    config = resolve("--shape", "square", "--output-dir", str(tmp_path))
    grid = complex_grid(config.width, config.height, spacing=config.spacing, decimals=config.decimals)
    shape = shape_points(lejaplot.collect_shape_pixels(config.shapes), grid)

    n, s = lejaplot.leja_parameters(config, len(shape))
    assert n == min(lejaplot.DEFAULT_LEJA_COUNT, len(shape))
    assert s == pytest.approx(1.0 / n)

    leja = select_leja_points(shape, n, s)
    assert len(leja) == n
    assert set(leja.points) <= shape


def test_leja_parameters_keep_explicit_values(tmp_path):
    config = resolve("--shape", "square", "-n", "20", "-s", "0.25", "--output-dir", str(tmp_path))
    assert lejaplot.leja_parameters(config, 5000) == (20, 0.25)

    config = resolve("--shape", "square", "--output-dir", str(tmp_path))
    assert lejaplot.leja_parameters(config, 5000) == (lejaplot.DEFAULT_LEJA_COUNT, 1.0 / lejaplot.DEFAULT_LEJA_COUNT)


def test_explicit_options(tmp_path):
    config = resolve(
        "--shape", "square@5,5,40", "--width", "60", "--height", "50", "-n", "20", "-s", "0.5",
        "--seed", "0.1", "-0.2", "--zoom-box", "1", "9", "2", "8", "--inside-color", "white",
        "--no-save-leja", "--format", ".JPG", "--output-dir", str(tmp_path),
    )

    assert config.shapes == (lejaplot.ShapeSpec("square", 5, 5, 40),)
    assert (config.width, config.height) == (60, 50)
    assert config.s == 0.5
    assert config.seed == complex(0.1, -0.2)
    assert config.zoom_box == ZoomBox(1, 9, 2, 8)
    assert config.palette.inside == (255, 255, 255)
    assert config.leja_path is None
    assert config.image_format == "jpg"


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--shape", "square", "-n", "1"],
        ["--shape", "square", "-s", "0"],
        ["--shape", "square", "--width", "0"],
        ["--shape", "square", "--zoom-box", "5", "5", "0", "3"],
        ["--shape", "square", "--zoom-box", "0", "500", "0", "3"],
        ["--shape", "square", "--zoom-box", "0", "5", "0", "3", "--zoom-at", "0", "0"],
        ["--shape", "square", "--zoom", "0"],
        ["--shape", "square", "--outside-color", "nope"],
        ["--shape", "a.png@1"],
    ],
)
def test_invalid_options_exit(argv):
    with pytest.raises(SystemExit):
        resolve(*argv)


def test_load_leja_needs_no_shape(tmp_path):
    config = resolve("--load-leja", str(tmp_path / "points.txt"))
    assert config.shapes == ()
    assert config.leja_path is None


def test_collect_shape_pixels_offsets_square():
    pixels = lejaplot.collect_shape_pixels([lejaplot.ShapeSpec("square", 3, 4, 8)])
    assert (5, 6) in pixels
    assert all(5 <= x <= 9 and 6 <= y <= 10 for x, y in pixels)


def test_run_writes_images_and_leja_file(tmp_path):
    config = resolve(
        "--shape", "square@0,0,16", "--size", "16", "--spacing", "0.25", "--decimals", "2",
        "-n", "6", "--zoom-box", "2", "6", "2", "6", "--zoom", "2", "--workers", "2",
        "--output-dir", str(tmp_path),
    )
    lejaplot.run(config)

    written = sorted(path.name for path in tmp_path.iterdir())
    assert "julia.txt" in written
    assert any(name.endswith("original image.png") for name in written)
    assert sum(name.endswith(".png") for name in written) == 3

    leja = persistence.load(tmp_path / "julia.txt")
    grid = complex_grid(16, 16, spacing=0.25, decimals=2)
    assert len(leja) == 6
    assert set(leja.points) <= set(np.ravel(grid).tolist())


def test_run_with_default_leja_count(tmp_path):
    config = resolve(
        "--shape", "square", "--size", "24", "--spacing", "0.25", "--decimals", "2",
        "--workers", "2", "--output-dir", str(tmp_path),
    )
    lejaplot.run(config)

    leja = persistence.load(tmp_path / "julia.txt")
    grid = complex_grid(24, 24, spacing=0.25, decimals=2)
    shape = shape_points(lejaplot.collect_shape_pixels(config.shapes), grid)
    assert len(leja) == len(shape)
