"""Composite implementation for preview rendering."""

import collections
import logging
from typing import Any, Optional

from attrs import define, field
from PIL import Image

from psd_preview.api import pil_io
from psd_preview.api.document import SourceDocument, SourceNode
from psd_preview.api.payload import TransformedLayer, TransformedPayload, count_leaves
from psd_preview.api.protocols import DocumentLookupProtocol, TemplateLookupProtocol
from psd_preview.composite import paint
from psd_preview.composite.origin import resolve_origin
from psd_preview.composite.resolver import resolve_document, resolve_source
from psd_preview.composite.utils import paint_order
from psd_preview.constants import (
    PREVIEW_FORMAT,
    PREVIEW_QUALITY,
    FramingMode,
    LayerType,
    LeafStatus,
    NameMatch,
    ResolutionStatus,
)

logger = logging.getLogger(__name__)

# Failures a single leaf may raise while drawing; they never abort a render.
DRAW_ERRORS = (ArithmeticError, MemoryError, OSError, TypeError, ValueError)

_RESOLUTION_STATUS = {
    ResolutionStatus.MISSING_SOURCE: LeafStatus.MISSING_SOURCE,
    ResolutionStatus.MISSING_PIXELS: LeafStatus.MISSING_PIXELS,
}


@define
class RenderRequest:
    """
    Inputs of one render.

    .. py:attribute:: payload
    .. py:attribute:: framing

        :py:class:`~psd_preview.constants.FramingMode`, auto by default.

    .. py:attribute:: documents

        Source document lookup. None renders every raster leaf as a missing
        source.

    .. py:attribute:: templates

        Template lookup for strict framing.

    .. py:attribute:: name_match

        Container name comparison policy for strict framing.
    """

    payload: TransformedPayload
    framing: FramingMode = field(default=FramingMode.AUTO, converter=FramingMode)
    documents: Optional[DocumentLookupProtocol] = None
    templates: Optional[TemplateLookupProtocol] = None
    name_match: NameMatch = field(default=NameMatch.EXACT, converter=NameMatch)


@define(frozen=True)
class LeafResult:
    """Paint outcome of one visible leaf."""

    layer: TransformedLayer
    status: LeafStatus
    placement: paint.Placement
    node: Optional[SourceNode] = None

    @property
    def position(self) -> tuple[float, float]:
        """Local top-left position before rotation."""
        return self.placement.position


@define
class RenderResult:
    """
    Finished preview.

    .. py:attribute:: image

        RGBA :py:class:`PIL.Image.Image` of the target size.

    .. py:attribute:: leaves

        One :py:class:`LeafResult` per visible leaf, in paint order.
    """

    payload: TransformedPayload
    image: Image.Image
    origin: tuple[float, float]
    framing: FramingMode
    leaves: list[LeafResult] = field(factory=list)
    document: Optional[SourceDocument] = None

    def __repr__(self) -> str:
        return "%s(%r size=%dx%d origin=%r leaves=%d)" % (
            self.__class__.__name__,
            self.payload.target_container,
            self.image.width,
            self.image.height,
            self.origin,
            len(self.leaves),
        )

    @property
    def leaf_count(self) -> int:
        """Deep leaf count of the rendered payload, hidden leaves included."""
        return count_leaves(self.payload.layers)

    def statuses(self) -> collections.Counter:
        return collections.Counter(leaf.status for leaf in self.leaves)

    def encode(self, format: str = PREVIEW_FORMAT, quality: int = PREVIEW_QUALITY) -> bytes:
        return pil_io.encode(self.image, format, quality)

    def data_url(
        self, format: str = PREVIEW_FORMAT, quality: int = PREVIEW_QUALITY
    ) -> str:
        return pil_io.to_data_url(self.image, format, quality)


class Compositor(object):
    """Paint traversal context.

    Example::

        compositor = Compositor((300, 200), origin, document)
        for layer in paint_order(payload.layers):
            compositor.apply(layer)
        image, leaves = compositor.finish()
    """

    def __init__(
        self,
        size: tuple[int, int],
        origin: tuple[float, float] = (0.0, 0.0),
        document: Optional[SourceDocument] = None,
    ):
        self._surface = paint.create_surface(size)
        self._origin = origin
        self._document = document
        self._leaves: list[LeafResult] = []

    @property
    def surface(self) -> Image.Image:
        return self._surface

    @property
    def origin(self) -> tuple[float, float]:
        return self._origin

    @property
    def leaves(self) -> list[LeafResult]:
        return self._leaves

    def apply(self, layer: TransformedLayer) -> None:
        logger.debug("Compositing %s" % layer)

        if not layer.is_visible:
            logger.debug("Ignore %s" % layer)
            return
        if layer.children:
            for child in paint_order(layer.children):
                self.apply(child)
            return

        self._leaves.append(self._paint_leaf(layer))

    def finish(self) -> tuple[Image.Image, list[LeafResult]]:
        return self._surface, self._leaves

    def _classify(self, layer: TransformedLayer) -> tuple[LeafStatus, Any, Optional[SourceNode]]:
        if layer.type == LayerType.GENERATIVE:
            return LeafStatus.PLACEHOLDER, None, None

        resolution = resolve_source(self._document, layer.id, layer.name)
        if not resolution.resolved:
            return _RESOLUTION_STATUS[resolution.status], None, None

        width, height = pil_io.get_size(resolution.canvas)
        if width == 0 or height == 0:
            return LeafStatus.EMPTY_BUFFER, None, resolution.node
        return LeafStatus.DRAWN, resolution.canvas, resolution.node

    def _paint_leaf(self, layer: TransformedLayer) -> LeafResult:
        placement = paint.Placement.from_layer(layer, self._origin)
        try:
            status, canvas, node = self._classify(layer)
            paint.PAINTERS[status](self._surface, placement, canvas)
        except DRAW_ERRORS as e:
            logger.warning("Failed to draw %s: %s" % (layer, e))
            status, node = LeafStatus.DRAW_FAULT, None
            try:
                paint.PAINTERS[status](self._surface, placement, None)
            except DRAW_ERRORS as err:
                logger.error("Failed to draw fault marker of %s: %s" % (layer, err))
        logger.debug("Painted %s as %s" % (layer, status.value))
        return LeafResult(layer, status, placement, node)


def render(request: RenderRequest) -> Optional[RenderResult]:
    """
    Render the preview of one payload.

    Returns None when the target size has a zero dimension. Missing data
    never raises; it is reported per leaf in
    :py:attr:`RenderResult.leaves` and drawn as a diagnostic.

    Example::

        result = render(RenderRequest(payload, FramingMode.STRICT, documents, templates))
        if result is not None:
            result.image.save('preview.png')
    """
    payload = request.payload
    if payload.metrics.is_empty():
        logger.debug("Empty target %s, nothing to render" % payload)
        return None

    document = resolve_document(request.documents, payload.source_node_id)
    templates = request.templates.templates() if request.templates is not None else ()
    origin = resolve_origin(
        payload.layers,
        request.framing,
        payload.target_container,
        templates,
        payload.metrics.size,
        request.name_match,
    )

    compositor = Compositor(payload.metrics.size, origin, document)
    for layer in paint_order(payload.layers):
        compositor.apply(layer)
    image, leaves = compositor.finish()
    if request.framing == FramingMode.AUTO:
        paint.draw_auto_frame_indicator(image)

    result = RenderResult(payload, image, origin, request.framing, leaves, document)
    logger.info("Rendered %s" % result)
    return result


def render_payload(
    payload: TransformedPayload,
    documents: Optional[DocumentLookupProtocol] = None,
    templates: Optional[TemplateLookupProtocol] = None,
    framing: FramingMode = FramingMode.AUTO,
    name_match: NameMatch = NameMatch.EXACT,
) -> Optional[RenderResult]:
    """Shortcut for :py:func:`render` with keyword arguments."""
    return render(RenderRequest(payload, framing, documents, templates, name_match))
