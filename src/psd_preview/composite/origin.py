"""
Camera origin resolution.

The origin is the point of the logical coordinate space that maps to the
top-left pixel of the output canvas. Local positions are ``coords - origin``.
"""

import logging
from typing import Iterable, Iterator, Optional

from psd_preview.api.payload import TransformedLayer
from psd_preview.api.template import Template, find_container
from psd_preview.composite.utils import BBox, paint_order, union_bbox
from psd_preview.constants import FramingMode, NameMatch

logger = logging.getLogger(__name__)


def _visible_boxes(layers: Iterable[TransformedLayer]) -> Iterator[BBox]:
    for layer in paint_order(list(layers)):
        if not layer.is_visible:
            continue
        yield layer.coords.bbox
        if layer.children:
            yield from _visible_boxes(layer.children)


def content_bbox(layers: Iterable[TransformedLayer]) -> Optional[BBox]:
    """
    Bounding box of all visible nodes, groups included.

    An invisible group hides its whole subtree. Returns None when nothing is
    visible.
    """
    return union_bbox(_visible_boxes(layers))


def resolve_origin(
    layers: Iterable[TransformedLayer],
    framing: FramingMode,
    container_name: str,
    templates: Iterable[Template],
    canvas_size: tuple[int, int],
    name_match: NameMatch = NameMatch.EXACT,
) -> tuple[float, float]:
    """
    Compute the camera origin for one render.

    :param layers: top-level layers of the payload.
    :param framing: :py:class:`~psd_preview.constants.FramingMode`.
    :param container_name: target container of the payload.
    :param templates: templates in registration order, for strict framing.
    :param canvas_size: output (width, height).
    :param name_match: container name comparison policy.
    :return: (origin_x, origin_y)
    """
    if FramingMode(framing) == FramingMode.AUTO:
        bbox = content_bbox(layers)
        if bbox is None:
            logger.debug("No visible content, origin (0, 0)")
            return 0.0, 0.0
        width, height = canvas_size
        content_w = bbox[2] - bbox[0]
        content_h = bbox[3] - bbox[1]
        return (
            bbox[0] + (content_w - width) / 2.0,
            bbox[1] + (content_h - height) / 2.0,
        )

    container = find_container(templates, container_name, name_match)
    if container is None:
        logger.debug("No template container matches %r" % container_name)
        return 0.0, 0.0
    return container.bounds.x, container.bounds.y
