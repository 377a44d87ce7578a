"""Turning label grids and shapes into images."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont
from matplotlib import colors as mcolors

from .classifier import Label
from .grid import ZoomBox

RGB = tuple[int, int, int]


def to_rgb(color: str) -> RGB:
    """Parse any matplotlib colour specification into 8-bit RGB."""

    try:
        rgb = mcolors.to_rgb(color)
    except ValueError as exc:
        raise ValueError(f"Invalid color {color!r}.") from exc
    return tuple(int(round(channel * 255)) for channel in rgb)


@dataclass(frozen=True)
class Palette:
    outside: RGB = (0, 0, 255)
    inside: RGB = (255, 0, 0)
    shape: RGB = (192, 192, 192)
    leja: RGB = (0, 0, 0)
    axis: RGB = (255, 200, 0)
    zoom_box: RGB = (0, 255, 0)
    background: RGB = (0, 0, 0)

    def with_overrides(self, **overrides: Optional[str]) -> "Palette":
        """Replace entries given as colour strings; ``None`` keeps the default."""

        names = {f.name for f in fields(self)}
        unknown = set(overrides) - names
        if unknown:
            raise ValueError(f"Unknown palette entries: {', '.join(sorted(unknown))}.")
        parsed = {name: to_rgb(value) for name, value in overrides.items() if value is not None}
        return replace(self, **parsed)

    def label_colors(self) -> np.ndarray:
        table = np.zeros((len(Label), 3), dtype=np.uint8)
        table[Label.OUTSIDE_SET] = self.outside
        table[Label.INSIDE_SET] = self.inside
        table[Label.ORIGINAL_SHAPE] = self.shape
        table[Label.LEJA_POINT] = self.leja
        return table


def labels_to_image(labels: np.ndarray, palette: Palette = Palette()) -> PIL.Image.Image:
    """Colour a ``(height, width)`` label grid."""

    return PIL.Image.fromarray(palette.label_colors()[labels])


def shape_image(
    grid: np.ndarray,
    shape: Iterable[complex],
    palette: Palette = Palette(),
    zoom_box: Optional[ZoomBox] = None,
) -> PIL.Image.Image:
    """Draw the target shape over the coordinate axes, with an optional zoom box."""

    height, width = grid.shape
    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[...] = palette.background
    pixels[(grid.real == 0) | (grid.imag == 0)] = palette.axis
    shape_values = np.fromiter((complex(z) for z in shape), dtype=np.complex128)
    if shape_values.size:
        pixels[np.isin(grid, shape_values)] = palette.shape
    if zoom_box is not None:
        pixels[zoom_box.outline_mask(width, height)] = palette.zoom_box
    return PIL.Image.fromarray(pixels)


_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
)


def _load_annotation_font(image: PIL.Image.Image, scale: float = 1.0) -> PIL.ImageFont.ImageFont:
    base = max(min(image.size), 1)
    target_size = max(12, int(round(base * 0.028 * scale)))
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), target_size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def _draw_text_with_shadow(
    draw: PIL.ImageDraw.ImageDraw,
    position: tuple[float, float],
    text: str,
    font: PIL.ImageFont.ImageFont,
    fill: tuple[int, int, int, int],
    *,
    shadow_fill: tuple[int, int, int, int] = (0, 0, 0, 160),
    shadow_offset: tuple[int, int] = (2, 2),
    spacing: int = 4,
) -> None:
    shadow_position = (position[0] + shadow_offset[0], position[1] + shadow_offset[1])
    draw.multiline_text(shadow_position, text, font=font, fill=shadow_fill, spacing=spacing)
    draw.multiline_text(position, text, font=font, fill=fill, spacing=spacing)


def annotate_bounds(image: PIL.Image.Image, grid: np.ndarray, extra_lines: Iterable[str] = ()) -> PIL.Image.Image:
    """Overlay the grid's corner values, and any ``extra_lines``, on ``image``."""

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    top_left = complex(grid[0, 0])
    bottom_right = complex(grid[-1, -1])
    lines = [
        f"X: [{top_left.real:.6g}, {bottom_right.real:.6g}]",
        f"Y: [{bottom_right.imag:.6g}, {top_left.imag:.6g}]",
        *extra_lines,
    ]
    text = "\n".join(lines)

    overlay = PIL.Image.new("RGBA", image.size, (0, 0, 0, 0))
    draw = PIL.ImageDraw.Draw(overlay, "RGBA")
    font = _load_annotation_font(image)
    font_size = getattr(font, "size", 14)
    padding = max(8, int(round(font_size * 0.6)))
    spacing = max(4, int(round(font_size * 0.35)))

    bbox = draw.multiline_textbbox((0, 0), text, font=font, spacing=spacing)
    box_left, box_top = 12, 12
    box_right = box_left + int(round(bbox[2] - bbox[0])) + padding * 2
    box_bottom = box_top + int(round(bbox[3] - bbox[1])) + padding * 2
    radius = max(6, int(round(font_size * 0.75)))
    draw.rounded_rectangle(
        [(box_left, box_top), (box_right, box_bottom)],
        radius=radius,
        fill=(18, 22, 40, 190),
        outline=(255, 255, 255, 45),
        width=max(1, int(round(font_size * 0.08))),
    )
    offset = max(1, int(round(font_size * 0.1)))
    _draw_text_with_shadow(
        draw,
        (box_left + padding, box_top + padding),
        text,
        font,
        (240, 244, 255, 255),
        shadow_fill=(0, 0, 0, 170),
        shadow_offset=(offset, offset),
        spacing=spacing,
    )
    return PIL.Image.alpha_composite(image, overlay)
