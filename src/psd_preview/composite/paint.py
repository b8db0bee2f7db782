"""Paint operations for compositing.

Every leaf painter draws into a tile covering only the part of the leaf that
falls on the surface (its window), applies the leaf opacity to the tile
alpha, and alpha-composites the tile onto the surface. Painters are
registered per :py:class:`~psd_preview.constants.LeafStatus` in
:py:data:`PAINTERS`.
"""

import functools
import logging
import math
from typing import Any, Optional, Sequence

import numpy as np
from attrs import define, field
from PIL import Image, ImageDraw, ImageFont

from psd_preview.api import pil_io
from psd_preview.api.payload import TransformedLayer
from psd_preview.composite.utils import intersect, normalize_opacity
from psd_preview.constants import (
    AUTO_FRAME_COLOR,
    AUTO_FRAME_LABEL,
    AUTO_FRAME_MARGIN,
    CHECKER_COLORS,
    CHECKER_SIZE,
    DRAW_FAULT_FILL,
    DRAW_FAULT_STROKE,
    EMPTY_BUFFER_FILL,
    GENERATIVE_DASH,
    GENERATIVE_FILL,
    GENERATIVE_LABEL,
    GENERATIVE_LABEL_COLOR,
    GENERATIVE_STROKE,
    MISSING_PIXELS_STROKE,
    MISSING_SOURCE_FILL,
    LeafStatus,
)
from psd_preview.registry import new_registry
from psd_preview.validators import finite_or

logger = logging.getLogger(__name__)

PAINTERS, register = new_registry(attribute="status")

Box = tuple[int, int, int, int]
Point = tuple[float, float]


@define(frozen=True)
class Placement:
    """
    Leaf geometry in surface coordinates.

    .. py:attribute:: x
    .. py:attribute:: y

        Local position, ``coords - origin``.

    .. py:attribute:: rotation

        Degrees, clockwise on screen, about the rectangle center.
    """

    x: float = field(converter=finite_or(0.0))
    y: float = field(converter=finite_or(0.0))
    w: float = field(converter=finite_or(0.0))
    h: float = field(converter=finite_or(0.0))
    rotation: float = field(default=0.0, converter=finite_or(0.0))
    opacity: float = 1.0

    @classmethod
    def from_layer(
        cls, layer: TransformedLayer, origin: tuple[float, float]
    ) -> "Placement":
        return cls(
            x=layer.coords.x - origin[0],
            y=layer.coords.y - origin[1],
            w=layer.coords.w,
            h=layer.coords.h,
            rotation=layer.transform.rotation,
            opacity=normalize_opacity(layer.opacity),
        )

    @property
    def position(self) -> tuple[float, float]:
        return self.x, self.y

    @property
    def pivot(self) -> tuple[float, float]:
        return self.x + self.w / 2.0, self.y + self.h / 2.0

    @property
    def tile_size(self) -> tuple[int, int]:
        return max(int(round(self.w)), 0), max(int(round(self.h)), 0)

    @property
    def box(self) -> Box:
        """Integer (left, top, right, bottom) of the unrotated rectangle."""
        left, top = int(round(self.x)), int(round(self.y))
        width, height = self.tile_size
        return left, top, left + width, top + height

    def is_empty(self) -> bool:
        width, height = self.tile_size
        return width == 0 or height == 0

    def is_rotated(self) -> bool:
        return bool(self.rotation % 360.0)

    def corners(self) -> list[Point]:
        """Rectangle corners rotated about the pivot, clockwise from top-left."""
        cx, cy = self.pivot
        theta = math.radians(self.rotation)
        cos, sin = math.cos(theta), math.sin(theta)
        hw, hh = self.w / 2.0, self.h / 2.0
        return [
            (cx + dx * cos - dy * sin, cy + dx * sin + dy * cos)
            for dx, dy in ((-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh))
        ]

    def bbox(self, rotated: bool = True) -> Box:
        """Integer bounding box, of the rotated rectangle when `rotated`."""
        if not (rotated and self.is_rotated()):
            return self.box
        xs, ys = zip(*self.corners())
        if not all(math.isfinite(v) for v in xs + ys):
            return (0, 0, 0, 0)
        return (
            int(math.floor(min(xs))),
            int(math.floor(min(ys))),
            int(math.ceil(max(xs))),
            int(math.ceil(max(ys))),
        )

    def window(self, size: tuple[int, int], rotated: bool = True) -> Optional[Box]:
        """Part of the bounding box on a surface of `size`, or None."""
        if self.is_empty():
            return None
        window = intersect((0, 0, size[0], size[1]), self.bbox(rotated))
        if window == (0, 0, 0, 0):
            return None
        return window


def checkerboard(
    size: tuple[int, int],
    step: int = CHECKER_SIZE,
    colors: tuple[tuple[int, int, int], tuple[int, int, int]] = CHECKER_COLORS,
) -> Image.Image:
    """Opaque RGBA checkerboard; the top-left cell has the first color."""
    width, height = size
    rows = (np.arange(height) // step)[:, None]
    cols = (np.arange(width) // step)[None, :]
    parity = (rows + cols) % 2
    palette = np.array([tuple(c) + (255,) for c in colors], dtype=np.uint8)
    return Image.fromarray(np.ascontiguousarray(palette[parity]))


def create_surface(size: tuple[int, int]) -> Image.Image:
    """Fresh surface initialized with the checkerboard background."""
    return checkerboard(size)


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    """Multiply the alpha channel of an RGBA image by `opacity`."""
    if opacity >= 1.0:
        return image
    array = np.array(image, dtype=np.float32)
    array[:, :, 3] *= opacity
    return Image.fromarray((array + 0.5).astype(np.uint8))


def paste(surface: Image.Image, image: Image.Image, left: int, top: int) -> None:
    """Alpha-composite `image` at (left, top), clipped to the surface."""
    box = (left, top, left + image.width, top + image.height)
    inter = intersect((0, 0, surface.width, surface.height), box)
    if inter == (0, 0, 0, 0):
        return
    source = image.crop((inter[0] - left, inter[1] - top, inter[2] - left, inter[3] - top))
    surface.alpha_composite(source, dest=(inter[0], inter[1]))


def clip_segment(p0: Point, p1: Point, box: Sequence[float]) -> Optional[tuple[Point, Point]]:
    """Liang-Barsky clipping of the segment p0-p1 to `box`."""
    (x0, y0), (x1, y1) = p0, p1
    dx, dy = x1 - x0, y1 - y0
    t0, t1 = 0.0, 1.0
    for p, q in (
        (-dx, x0 - box[0]),
        (dx, box[2] - x0),
        (-dy, y0 - box[1]),
        (dy, box[3] - y0),
    ):
        if p == 0:
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)
    return (x0 + t0 * dx, y0 + t0 * dy), (x0 + t1 * dx, y0 + t1 * dy)


def _new_tile(window: Box, color: Any = (0, 0, 0, 0)) -> Image.Image:
    return Image.new("RGBA", (window[2] - window[0], window[3] - window[1]), color)


def _paste_window(
    surface: Image.Image, tile: Image.Image, window: Box, opacity: float
) -> None:
    paste(surface, apply_opacity(tile, opacity), window[0], window[1])


def _local_box(placement: Placement, window: Box) -> Box:
    """Inclusive unrotated rectangle in window coordinates.

    Edges outside the window are pulled to one pixel past it.
    """
    left, top, right, bottom = placement.box
    width, height = window[2] - window[0], window[3] - window[1]

    def clamp(value: int, upper: int) -> int:
        return min(max(value, -1), upper)

    return (
        clamp(left - window[0], width),
        clamp(top - window[1], height),
        clamp(right - 1 - window[0], width),
        clamp(bottom - 1 - window[1], height),
    )


def _dashes(start: int, end: int, lower: int, upper: int, dash: int):
    """Dash runs of the inclusive span [start, end], clipped to [lower, upper]."""
    period = 2 * dash
    first = start + max(0, (lower - start) // period) * period
    for position in range(first, min(end, upper) + 1, period):
        run = max(position, lower), min(position + dash - 1, end, upper)
        if run[0] <= run[1]:
            yield run


def _dashed_rectangle(
    draw: ImageDraw.ImageDraw,
    box: Box,
    window: Box,
    dash: int,
    fill: tuple[int, int, int, int],
) -> None:
    """Dashed outline of `box`, drawn only where it crosses `window`."""
    left, top, right, bottom = box[0], box[1], box[2] - 1, box[3] - 1
    wl, wt, wr, wb = window[0], window[1], window[2] - 1, window[3] - 1
    for y in (top, bottom):
        if wt <= y <= wb:
            for x0, x1 in _dashes(left, right, wl, wr, dash):
                draw.line([(x0 - wl, y - wt), (x1 - wl, y - wt)], fill=fill)
    for x in (left, right):
        if wl <= x <= wr:
            for y0, y1 in _dashes(top, bottom, wt, wb, dash):
                draw.line([(x - wl, y0 - wt), (x - wl, y1 - wt)], fill=fill)


def _rotated_coverage(placement: Placement, window: Box) -> tuple[np.ndarray, np.ndarray]:
    """Masks of window pixel centers inside the rotated rectangle and its border.

    Pixel centers are mapped back into the unrotated rectangle frame, so the
    test stays exact however far the rectangle extends past the window.
    """
    theta = math.radians(placement.rotation)
    cos, sin = math.cos(theta), math.sin(theta)
    cx, cy = placement.pivot
    xs = (np.arange(window[0], window[2], dtype=np.float64) + 0.5 - cx)[None, :]
    ys = (np.arange(window[1], window[3], dtype=np.float64) + 0.5 - cy)[:, None]
    qx = np.abs(xs * cos + ys * sin)
    qy = np.abs(ys * cos - xs * sin)
    hw, hh = placement.w / 2.0, placement.h / 2.0
    inside = (qx <= hw) & (qy <= hh)
    border = inside & ((qx > hw - 1.0) | (qy > hh - 1.0))
    return inside, border


def _draw_box(
    surface: Image.Image,
    placement: Placement,
    fill: tuple[int, int, int, int],
    outline: Optional[tuple[int, int, int, int]] = None,
) -> None:
    """Filled rectangle following the leaf rotation."""
    window = placement.window(surface.size)
    if window is None:
        return
    if placement.is_rotated():
        inside, border = _rotated_coverage(placement, window)
        array = np.zeros(inside.shape + (4,), dtype=np.uint8)
        array[inside] = fill
        if outline is not None:
            array[border] = outline
        tile = Image.fromarray(array)
    else:
        tile = _new_tile(window)
        ImageDraw.Draw(tile).rectangle(
            _local_box(placement, window), fill=fill, outline=outline
        )
    _paste_window(surface, tile, window, placement.opacity)


@functools.lru_cache(maxsize=None)
def _get_font() -> Any:
    return ImageFont.load_default()


def _text_size(draw: ImageDraw.ImageDraw, text: str) -> tuple[int, int]:
    bbox = draw.textbbox((0, 0), text, font=_get_font())
    return int(bbox[2]), int(bbox[3])


@register(LeafStatus.PLACEHOLDER)
def draw_placeholder(surface: Image.Image, placement: Placement, canvas: Any = None) -> None:
    """Dashed outline with a tinted fill for a not-yet-generated layer."""
    window = placement.window(surface.size, rotated=False)
    if window is None:
        return
    tile = _new_tile(window)
    draw = ImageDraw.Draw(tile)
    draw.rectangle(_local_box(placement, window), fill=GENERATIVE_FILL)
    _dashed_rectangle(draw, placement.box, window, GENERATIVE_DASH, GENERATIVE_STROKE)

    x = placement.box[0] + 2 - window[0]
    y = placement.box[1] + 2 - window[1]
    width, height = _text_size(draw, GENERATIVE_LABEL)
    if -width < x < tile.width and -height < y < tile.height:
        draw.text((x, y), GENERATIVE_LABEL, fill=GENERATIVE_LABEL_COLOR, font=_get_font())
    _paste_window(surface, tile, window, placement.opacity)


@register(LeafStatus.DRAWN)
def draw_canvas(surface: Image.Image, placement: Placement, canvas: Any = None) -> None:
    """
    Draw a source buffer scaled to the leaf rectangle, rotated about its
    center.

    Only the visible part of the rectangle is resampled. Raises whatever PIL
    raises for unreadable buffers.
    """
    window = placement.window(surface.size)
    if window is None:
        return
    image = pil_io.topil(canvas)
    size = (window[2] - window[0], window[3] - window[1])
    if placement.is_rotated():
        tile = image.transform(
            size,
            Image.Transform.AFFINE,
            _inverse_affine(placement, image.size, window),
            resample=Image.Resampling.BICUBIC,
        )
    else:
        left, top, _, _ = placement.box
        width, height = placement.tile_size
        kx, ky = image.width / width, image.height / height
        source = (
            max((window[0] - left) * kx, 0.0),
            max((window[1] - top) * ky, 0.0),
            min((window[2] - left) * kx, image.width),
            min((window[3] - top) * ky, image.height),
        )
        tile = image.resize(size, resample=Image.Resampling.BILINEAR, box=source)
    _paste_window(surface, tile, window, placement.opacity)


def _inverse_affine(
    placement: Placement, source_size: tuple[int, int], window: Box
) -> tuple[float, ...]:
    """Coefficients mapping window pixels back to source buffer pixels."""
    theta = math.radians(placement.rotation)
    cos, sin = math.cos(theta), math.sin(theta)
    kx, ky = source_size[0] / placement.w, source_size[1] / placement.h
    cx, cy = placement.pivot
    ox, oy = window[0] - cx, window[1] - cy
    return (
        kx * cos,
        kx * sin,
        kx * (cos * ox + sin * oy + placement.w / 2.0),
        -ky * sin,
        ky * cos,
        ky * (-sin * ox + cos * oy + placement.h / 2.0),
    )


@register(LeafStatus.EMPTY_BUFFER)
def draw_empty_buffer(
    surface: Image.Image, placement: Placement, canvas: Any = None
) -> None:
    _draw_box(surface, placement, EMPTY_BUFFER_FILL)


@register(LeafStatus.DRAW_FAULT)
def draw_fault(surface: Image.Image, placement: Placement, canvas: Any = None) -> None:
    _draw_box(surface, placement, DRAW_FAULT_FILL, DRAW_FAULT_STROKE)


@register(LeafStatus.MISSING_PIXELS)
def draw_missing_pixels(
    surface: Image.Image, placement: Placement, canvas: Any = None
) -> None:
    """Outline with a crossing diagonal, never rotated."""
    window = placement.window(surface.size, rotated=False)
    if window is None:
        return
    tile = _new_tile(window)
    draw = ImageDraw.Draw(tile)
    draw.rectangle(_local_box(placement, window), outline=MISSING_PIXELS_STROKE)
    left, top, right, bottom = placement.box
    segment = clip_segment(
        (left - window[0], top - window[1]),
        (right - 1 - window[0], bottom - 1 - window[1]),
        (-1, -1, tile.width, tile.height),
    )
    if segment is not None:
        draw.line(
            [
                (min(max(x, -1.0), tile.width), min(max(y, -1.0), tile.height))
                for x, y in segment
            ],
            fill=MISSING_PIXELS_STROKE,
        )
    _paste_window(surface, tile, window, placement.opacity)


@register(LeafStatus.MISSING_SOURCE)
def draw_missing_source(
    surface: Image.Image, placement: Placement, canvas: Any = None
) -> None:
    window = placement.window(surface.size, rotated=False)
    if window is None:
        return
    _paste_window(surface, _new_tile(window, MISSING_SOURCE_FILL), window, placement.opacity)


def draw_auto_frame_indicator(
    surface: Image.Image, text: Optional[str] = AUTO_FRAME_LABEL
) -> None:
    """Label in the bottom-left corner telling the viewer framing is automatic."""
    if not text:
        return
    draw = ImageDraw.Draw(surface)
    top = surface.height - AUTO_FRAME_MARGIN - _text_size(draw, text)[1]
    draw.text((AUTO_FRAME_MARGIN, top), text, fill=AUTO_FRAME_COLOR, font=_get_font())
