import os
import sys
import time
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np
import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

import PIL.Image

from lejajulia import (
    BoundsPolicy,
    DistanceEstimate,
    EscapeTime,
    GridLocator,
    LejaJuliaError,
    LejaPoints,
    Palette,
    ZoomBox,
    annotate_bounds,
    classify_grid,
    complex_grid,
    edge_pixels,
    labels_to_image,
    load_shape_mask,
    select_leja_points,
    shape_image,
    shape_points,
    square_outline,
    zoom_grid,
)
from lejajulia import persistence

log("TensorFlow version: %s" % tf.__version__)

# Run the grid kernels on the first visible GPU when there is one.
gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
        log("GPU found, using %s" % gpus[0].name)
    except RuntimeError as e:
        log(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'
    log("No GPU found, using CPU")

from argparse import ArgumentParser

SQUARE_SHAPE = "square"
DEFAULT_LEJA_COUNT = 1000


@dataclass(frozen=True)
class ShapeSpec:
    source: str
    start_x: int
    start_y: int
    size: int


@dataclass(frozen=True)
class PlotConfig:
    shapes: tuple[ShapeSpec, ...]
    width: int
    height: int
    origin_x: Optional[int]
    origin_y: Optional[int]
    spacing: float
    decimals: int
    leja_count: Optional[int]
    s: Optional[float]
    seed: Optional[complex]
    method: str
    load_leja: Optional[Path]
    leja_path: Optional[Path]
    zoom_box: Optional[ZoomBox]
    zoom_at: Optional[complex]
    zoom_half_size: int
    zoom: int
    bounds_policy: BoundsPolicy
    workers: Optional[int]
    chunks: Optional[int]
    palette: Palette
    show_coordinates: bool
    output_dir: Path
    prefix: str
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Plot the filled Julia set of a Leja interpolating polynomial.')

    parser.add_argument('--shape', dest='shapes', action='append', metavar='SHAPE',
                        help='Shape to interpolate: "square" or a black-on-white bitmap, optionally placed as '
                             'PATH@X,Y or PATH@X,Y,SIZE. May be repeated.')

    parser.add_argument('--size', type=int, dest='size', metavar='SIZE', default=400,
                        help='default size of each shape and of the sampling grid, in pixels')

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH',
                        help='number of samples along the real axis (default: SIZE)')

    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT',
                        help='number of samples along the imaginary axis (default: SIZE)')

    parser.add_argument('--origin-x', type=int, dest='origin_x', metavar='ORIGIN_X',
                        help='pixel column mapped to re(z) = 0 (default: centre)')

    parser.add_argument('--origin-y', type=int, dest='origin_y', metavar='ORIGIN_Y',
                        help='pixel row mapped to im(z) = 0 (default: centre)')

    parser.add_argument('--spacing', type=float, dest='spacing', metavar='SPACING', default=0.005,
                        help='distance between neighbouring samples; smaller spacing makes the set larger')

    parser.add_argument('--decimals', type=int, dest='decimals', metavar='DECIMALS', default=3,
                        help='number of decimal digits kept in sample coordinates')

    parser.add_argument('-n', '--leja-count', type=int, dest='leja_count', metavar='N',
                        help=f'number of Leja points to select from the shape '
                             f'(default: {DEFAULT_LEJA_COUNT}, or every shape point for smaller shapes)')

    parser.add_argument('-s', type=float, dest='s', metavar='S',
                        help='spacing parameter of the polynomial constant exp(-n*s/2) (default: 1/N)')

    parser.add_argument('--seed', type=float, nargs=2, dest='seed', metavar=('RE', 'IM'),
                        help='first Leja point; must be a sample of the shape')

    parser.add_argument('--method', choices=['escape', 'distance'], default='escape',
                        help='"escape" iterates 15 times against radius 10 and highlights the shape; '
                             '"distance" uses the derivative-based distance estimate.')

    parser.add_argument('--load-leja', dest='load_leja', type=str, metavar='FILE',
                        help='read the Leja points from FILE instead of selecting them')

    parser.add_argument('--leja-file', dest='leja_file', type=str, metavar='FILE',
                        help='where to save the selected Leja points (default: OUTPUT_DIR/PREFIX.txt)')

    parser.add_argument('--no-save-leja', dest='save_leja', action='store_false',
                        help='do not write the selected Leja points to disk')

    parser.add_argument('--zoom-box', type=int, nargs=4, dest='zoom_box',
                        metavar=('LEFT_X', 'RIGHT_X', 'TOP_Y', 'BOTTOM_Y'),
                        help='pixel box of the main grid to plot again at higher resolution')

    parser.add_argument('--zoom-at', type=float, nargs=2, dest='zoom_at', metavar=('RE', 'IM'),
                        help='centre the zoom box on this complex value')

    parser.add_argument('--zoom-half-size', type=int, dest='zoom_half_size', metavar='PIXELS', default=8,
                        help='half the side of the box built by --zoom-at, in pixels')

    parser.add_argument('--zoom', type=int, dest='zoom', metavar='ZOOM', default=100,
                        help='samples per original pixel inside the zoom box')

    parser.add_argument('--bounds-policy', choices=[policy.value for policy in BoundsPolicy],
                        default=BoundsPolicy.CLAMP.value,
                        help='how --zoom-at treats values that fall off the grid')

    parser.add_argument('--workers', type=int, dest='workers', metavar='WORKERS',
                        help='number of threads classifying column blocks (default: CPU count)')

    parser.add_argument('--chunks', type=int, dest='chunks', metavar='CHUNKS',
                        help='number of column blocks the grid is split into (default: 4 per worker)')

    for name, default in (
        ('outside', 'blue'),
        ('inside', 'red'),
        ('shape', 'lightgray'),
        ('leja', 'black'),
        ('axis', 'orange'),
        ('zoom-box', 'lime'),
        ('background', 'black'),
    ):
        parser.add_argument(f'--{name}-color', type=str, dest=f"{name.replace('-', '_')}_color",
                            help=f'matplotlib color for {name.replace("-", " ")} pixels (default: {default})')

    parser.add_argument('--show-coordinates', dest='show_coordinates', action='store_true',
                        help='overlay the plotted bounds on every Julia set image')

    parser.add_argument('--output-dir', dest='output_dir', type=str, default='./julia',
                        help='directory receiving the images and the Leja point file')

    parser.add_argument('--prefix', dest='prefix', type=str, default='julia',
                        help='file name prefix of every output')

    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default='png',
                        help='file format for images. Can be any extension supported by Pillow. Default: "png".')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def parse_shape_spec(spec: str, default_size: int) -> ShapeSpec:
    """Parse ``SOURCE[@X,Y[,SIZE]]``."""

    source, _, placement = spec.partition('@')
    if not source:
        raise ValueError(f"Shape '{spec}' has no source.")
    start_x, start_y, size = 0, 0, default_size
    if placement:
        try:
            values = [int(part) for part in placement.split(',')]
        except ValueError as exc:
            raise ValueError(f"Shape placement '{placement}' must be integers X,Y[,SIZE].") from exc
        if len(values) == 2:
            start_x, start_y = values
        elif len(values) == 3:
            start_x, start_y, size = values
        else:
            raise ValueError(f"Shape placement '{placement}' must be X,Y or X,Y,SIZE.")
    if size <= 0:
        raise ValueError(f"Shape size must be positive, got {size}.")
    return ShapeSpec(source=source, start_x=start_x, start_y=start_y, size=size)


def resolve_config(opt, parser: ArgumentParser) -> PlotConfig:
    width = opt.width if opt.width is not None else opt.size
    height = opt.height if opt.height is not None else opt.size
    if width <= 0 or height <= 0:
        parser.error("--width and --height must be positive.")

    shapes: list[ShapeSpec] = []
    for spec in opt.shapes or []:
        try:
            shapes.append(parse_shape_spec(spec, opt.size))
        except ValueError as exc:
            parser.error(str(exc))
    if not shapes and not opt.load_leja:
        parser.error("at least one --shape is required unless --load-leja is given.")

    if opt.leja_count is not None and opt.leja_count < 2:
        parser.error("--leja-count must be at least 2.")
    if opt.s is not None and opt.s <= 0:
        parser.error("-s must be positive.")

    zoom_box = None
    if opt.zoom_box is not None:
        if opt.zoom_at is not None:
            parser.error("--zoom-box and --zoom-at cannot be combined.")
        try:
            zoom_box = ZoomBox(*opt.zoom_box)
        except LejaJuliaError as exc:
            parser.error(str(exc))
        if not zoom_box.fits(width, height):
            parser.error(f"--zoom-box must lie inside the {width}x{height} grid.")
    if opt.zoom < 1:
        parser.error("--zoom must be at least 1.")
    if opt.zoom_half_size < 1:
        parser.error("--zoom-half-size must be at least 1.")

    try:
        palette = Palette().with_overrides(
            outside=opt.outside_color,
            inside=opt.inside_color,
            shape=opt.shape_color,
            leja=opt.leja_color,
            axis=opt.axis_color,
            zoom_box=opt.zoom_box_color,
            background=opt.background_color,
        )
    except ValueError as exc:
        parser.error(str(exc))

    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    output_dir = Path(opt.output_dir).expanduser().resolve()

    leja_path = None
    if opt.save_leja and not opt.load_leja:
        leja_path = Path(opt.leja_file).expanduser() if opt.leja_file else output_dir / f"{opt.prefix}{persistence.LEJA_POINTS_SUFFIX}"

    return PlotConfig(
        shapes=tuple(shapes),
        width=width,
        height=height,
        origin_x=opt.origin_x,
        origin_y=opt.origin_y,
        spacing=opt.spacing,
        decimals=opt.decimals,
        leja_count=opt.leja_count,
        s=opt.s,
        seed=complex(*opt.seed) if opt.seed is not None else None,
        method=opt.method,
        load_leja=Path(opt.load_leja).expanduser() if opt.load_leja else None,
        leja_path=leja_path,
        zoom_box=zoom_box,
        zoom_at=complex(*opt.zoom_at) if opt.zoom_at is not None else None,
        zoom_half_size=opt.zoom_half_size,
        zoom=opt.zoom,
        bounds_policy=BoundsPolicy(opt.bounds_policy),
        workers=opt.workers,
        chunks=opt.chunks,
        palette=palette,
        show_coordinates=bool(opt.show_coordinates),
        output_dir=output_dir,
        prefix=opt.prefix,
        image_format=image_format,
    )


def format_elapsed(milliseconds: int) -> str:
    """Render a duration as ``[h ][min ][s ]ms``, e.g. ``1 min 3 s 20 ms``."""

    result = f"{milliseconds % 1000} ms"
    if milliseconds > 1000:
        seconds = milliseconds // 1000
        result = f"{seconds % 60} s {result}"
        if seconds > 60:
            minutes = seconds // 60
            result = f"{minutes % 60} min {result}"
            if minutes > 60:
                result = f"{minutes // 60} h {result}"
    return result


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    if pil_format == "JPEG" and image.mode == "RGBA":
        image = image.convert("RGB")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def collect_shape_pixels(shapes) -> set[tuple[int, int]]:
    pixels: set[tuple[int, int]] = set()
    for spec in shapes:
        if spec.source == SQUARE_SHAPE:
            pixels.update((x + spec.start_x, y + spec.start_y) for x, y in square_outline(spec.size))
        else:
            mask = load_shape_mask(spec.source, spec.size)
            pixels.update(edge_pixels(mask, spec.start_x, spec.start_y))
    return pixels


def leja_parameters(config: PlotConfig, shape_size: int) -> tuple[int, float]:
    """Return the Leja count and ``s``, filling in defaults from the shape size."""

    n = config.leja_count if config.leja_count is not None else min(DEFAULT_LEJA_COUNT, shape_size)
    s = config.s if config.s is not None else 1.0 / max(n, 1)
    return n, s


def _report_progress(done: int, total: int) -> None:
    print("column {0} out of {1}".format(done, total), end='\r')


def plot_julia_set(method, grid: np.ndarray, config: PlotConfig, name: str, extra_lines=()) -> Path:
    start = time.perf_counter()
    labels = classify_grid(method, grid, workers=config.workers, chunks=config.chunks, progress=_report_progress)
    elapsed = format_elapsed(int((time.perf_counter() - start) * 1000))
    print()

    image = labels_to_image(labels, config.palette)
    if config.show_coordinates:
        image = annotate_bounds(image, grid, extra_lines)
    output_path = config.output_dir / f"{name}{elapsed}.{config.image_format}"
    write_single_image(image, output_path, config.image_format)
    log(f"Saved {output_path}")
    return output_path


def build_method(config: PlotConfig, leja: LejaPoints, shape):
    polynomial = leja.polynomial()
    if config.method == "distance":
        return DistanceEstimate(polynomial, device=DEVICE)
    return EscapeTime(polynomial, shape=shape, device=DEVICE)


def run(config: PlotConfig) -> None:
    grid = complex_grid(
        config.width,
        config.height,
        origin_x=config.origin_x,
        origin_y=config.origin_y,
        spacing=config.spacing,
        decimals=config.decimals,
    )
    shape = shape_points(collect_shape_pixels(config.shapes), grid)
    log(f"Shape has {len(shape)} points on a {config.width} x {config.height} grid")

    zoom_box = config.zoom_box
    if config.zoom_at is not None:
        locator = GridLocator.from_grid(grid, config.bounds_policy)
        zoom_box = locator.box_around(config.zoom_at, config.zoom_half_size)
        if zoom_box is None:
            raise LejaJuliaError(f"zoom centre {config.zoom_at} lies outside the grid")
        log(f"Zoom box around {config.zoom_at}: {zoom_box}")

    base_name = f"{config.prefix} - {config.width} x {config.height}"
    if config.shapes:
        original = shape_image(grid, shape, config.palette, zoom_box)
        original_path = config.output_dir / f"{base_name} - original image.{config.image_format}"
        write_single_image(original, original_path, config.image_format)
        log(f"Saved {original_path}")

    if config.load_leja is not None:
        leja = persistence.load(config.load_leja)
        log(f"Loaded {len(leja)} Leja points from {config.load_leja}")
        s = config.s if config.s is not None else 1.0 / max(len(leja), 1)
    else:
        n, s = leja_parameters(config, len(shape))
        leja = select_leja_points(shape, n, s, seed=config.seed)
    log(f"lejaPolynomialConstant: {leja.constant}")
    log(f"cap(E): {leja.cap_e}")
    if config.leja_path is not None:
        persistence.save(leja, config.leja_path)
        log(f"Saved Leja points to {config.leja_path}")

    description = f"{len(leja)} leja points out of {len(shape)} - s = {s:.6g} - "
    method = build_method(config, leja, shape)
    extra_lines = (f"n = {len(leja)}", f"cap(E) = {leja.cap_e:.6g}")
    plot_julia_set(method, grid, config, f"{base_name} - {description}", extra_lines)

    if zoom_box is not None:
        zoomed = zoom_grid(grid, zoom_box, config.zoom)
        height, width = zoomed.shape
        print("Drawing zoom at {0}x with {1} columns".format(config.zoom, width))
        zoom_method = build_method(config, leja, ())
        plot_julia_set(zoom_method, zoomed, config, f"{config.prefix} - {config.zoom}x - ", extra_lines)


def main():
    parser = build_parser()
    opt = parser.parse_args()

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = resolve_config(opt, parser)
    try:
        run(config)
    except (LejaJuliaError, FileNotFoundError) as exc:
        parser.exit(1, f"{parser.prog}: error: {exc}\n")
    print("All plots complete!")


if __name__ == '__main__':
    main()
