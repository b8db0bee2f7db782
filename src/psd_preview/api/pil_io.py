"""
PIL IO module.

Conversion of source buffers to PIL images and encoding of finished
previews.
"""

import base64
import io
import logging
from typing import Any

import numpy as np
from PIL import Image

from psd_preview.constants import PREVIEW_FORMAT, PREVIEW_QUALITY

logger = logging.getLogger(__name__)

_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


def get_size(canvas: Any) -> tuple[int, int]:
    """Return (width, height) of a PIL image or a NumPy array."""
    if isinstance(canvas, Image.Image):
        return canvas.size
    if isinstance(canvas, np.ndarray):
        if canvas.ndim not in (2, 3):
            raise TypeError("Unsupported array shape: %s" % (canvas.shape,))
        return canvas.shape[1], canvas.shape[0]
    raise TypeError("Unsupported canvas type: %s" % type(canvas).__name__)


def topil(canvas: Any) -> Image.Image:
    """
    Convert a source buffer to an RGBA PIL image.

    Arrays may be ``uint8`` in [0, 255] or floating point in [0, 1], with
    shape (height, width) or (height, width, channels) where channels is 1,
    3 or 4.
    """
    if isinstance(canvas, Image.Image):
        canvas.load()
        return canvas if canvas.mode == "RGBA" else canvas.convert("RGBA")
    if not isinstance(canvas, np.ndarray):
        raise TypeError("Unsupported canvas type: %s" % type(canvas).__name__)

    array = canvas
    if np.issubdtype(array.dtype, np.floating):
        array = (255 * np.clip(array, 0.0, 1.0) + 0.5).astype(np.uint8)
    elif array.dtype != np.uint8:
        raise TypeError("Unsupported array dtype: %s" % array.dtype)

    if array.ndim == 3 and array.shape[2] == 1:
        array = array[:, :, 0]
    if not (array.ndim == 2 or (array.ndim == 3 and array.shape[2] in (3, 4))):
        raise TypeError("Unsupported array shape: %s" % (canvas.shape,))
    return Image.fromarray(np.ascontiguousarray(array)).convert("RGBA")


def encode(
    image: Image.Image, format: str = PREVIEW_FORMAT, quality: int = PREVIEW_QUALITY
) -> bytes:
    """
    Serialize a preview surface.

    Formats without alpha support are flattened to RGB first.
    """
    format = format.upper()
    if format == "JPG":
        format = "JPEG"
    if format == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")
    with io.BytesIO() as f:
        if format in ("JPEG", "WEBP"):
            image.save(f, format=format, quality=quality)
        else:
            image.save(f, format=format)
        return f.getvalue()


def to_data_url(
    image: Image.Image, format: str = PREVIEW_FORMAT, quality: int = PREVIEW_QUALITY
) -> str:
    """Encode a preview surface as a ``data:`` URL."""
    data = encode(image, format, quality)
    mime = _MIME_TYPES.get(format.upper().replace("JPG", "JPEG"), "application/octet-stream")
    return "data:%s;base64,%s" % (mime, base64.b64encode(data).decode("ascii"))
