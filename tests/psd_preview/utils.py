import logging
from typing import Any, Optional

import numpy as np
from PIL import Image

from psd_preview.api.document import SourceDocument, SourceNode
from psd_preview.api.payload import (
    Metrics,
    Rect,
    Transform,
    TransformedLayer,
    TransformedPayload,
)
from psd_preview.constants import CHECKER_COLORS, CHECKER_SIZE, LayerType

logging.basicConfig(level=logging.DEBUG)

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
WHITE = (255, 255, 255, 255)


def make_layer(
    id: str,
    name: Optional[str] = None,
    coords: tuple[float, float, float, float] = (0, 0, 10, 10),
    type: LayerType = LayerType.RASTER,
    rotation: float = 0.0,
    opacity: Any = 1.0,
    visible: bool = True,
    children: Optional[list[TransformedLayer]] = None,
) -> TransformedLayer:
    return TransformedLayer(
        id=id,
        name=id if name is None else name,
        type=type,
        coords=Rect(*coords),
        transform=Transform(rotation),
        opacity=opacity,
        is_visible=visible,
        children=children,
    )


def make_payload(
    layers: list[TransformedLayer],
    size: tuple[int, int] = (100, 100),
    source: str = "psd-1",
    container: str = "Hero",
    polished: bool = False,
) -> TransformedPayload:
    return TransformedPayload(
        source_node_id=source,
        target_container=container,
        metrics=Metrics(*size),
        layers=layers,
        is_polished=polished,
    )


def solid(size: tuple[int, int], color: tuple[int, int, int, int] = RED) -> Image.Image:
    return Image.new("RGBA", size, color)


def make_document(id: str = "psd-1", children: Optional[list[SourceNode]] = None):
    return SourceDocument(id, children or [])


def pixel(image: Image.Image, x: int, y: int) -> tuple[int, ...]:
    return tuple(image.getpixel((x, y)))


def checker_color(x: int, y: int) -> tuple[int, int, int, int]:
    color = CHECKER_COLORS[(x // CHECKER_SIZE + y // CHECKER_SIZE) % 2]
    return tuple(color) + (255,)


def as_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image)
