"""Public API for Leja point selection and filled Julia set plotting."""

from .classifier import DistanceEstimate, EscapeTime, Label, classify_grid
from .errors import InvalidArgumentError, InvalidStateError, LejaFormatError, LejaJuliaError
from .grid import (
    BoundsPolicy,
    GridLocator,
    ZoomBox,
    complex_grid,
    complex_grid_from_bounds,
    zoom_grid,
)
from .leja import LejaPoints, LejaSelection, select_leja_points
from .polynomial import RenormalizedPolynomial
from .render import Palette, annotate_bounds, labels_to_image, shape_image
from .shapes import edge_pixels, load_shape_mask, shape_points, square_outline

__all__ = [
    "BoundsPolicy",
    "DistanceEstimate",
    "EscapeTime",
    "GridLocator",
    "InvalidArgumentError",
    "InvalidStateError",
    "Label",
    "LejaFormatError",
    "LejaJuliaError",
    "LejaPoints",
    "LejaSelection",
    "Palette",
    "RenormalizedPolynomial",
    "ZoomBox",
    "annotate_bounds",
    "classify_grid",
    "complex_grid",
    "complex_grid_from_bounds",
    "edge_pixels",
    "labels_to_image",
    "load_shape_mask",
    "select_leja_points",
    "shape_image",
    "shape_points",
    "square_outline",
    "zoom_grid",
]
