"""
Layer resolution.

Maps a transformed layer reference back to pixel data of a source document
when identifiers may have drifted between payload generation and render.
"""

import logging
from typing import Any, Optional

from attrs import define

from psd_preview.api.document import SourceDocument, SourceNode
from psd_preview.api.protocols import DocumentLookupProtocol
from psd_preview.constants import ResolutionStatus

logger = logging.getLogger(__name__)


@define(frozen=True)
class Resolution:
    """
    Outcome of :py:func:`resolve_source`.

    ``node`` and ``canvas`` are set only when ``status`` is ``RESOLVED``.
    """

    status: ResolutionStatus
    node: Optional[SourceNode] = None
    canvas: Any = None

    @property
    def resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED


def resolve_document(
    documents: Optional[DocumentLookupProtocol], source_id: str
) -> Optional[SourceDocument]:
    """
    Return the document registered for `source_id`.

    A stale reference falls back to the first registered document.
    """
    if documents is None:
        return None
    document = documents.get(source_id)
    if document is None:
        document = documents.first()
        if document is not None:
            logger.warning(
                "Source %r is not registered, falling back to %s" % (source_id, document)
            )
    return document


def resolve_source(
    document: Optional[SourceDocument], layer_id: str, layer_name: str
) -> Resolution:
    """
    Find the pixel buffer of a layer.

    Attempted in order, first success wins:

    1. the node whose path identifier equals `layer_id`;
    2. the first node with a canvas, depth first, whose name equals
       `layer_name`.

    A node found without a canvas does not stop the chain. Nothing is raised:
    a missing document gives ``MISSING_SOURCE`` and a miss on both steps gives
    ``MISSING_PIXELS``.
    """
    if document is None:
        return Resolution(ResolutionStatus.MISSING_SOURCE)

    node = document.find_by_path(layer_id)
    if node is not None and node.has_canvas():
        return Resolution(ResolutionStatus.RESOLVED, node, node.canvas)

    logger.debug("Path %r not found in %s, trying name %r" % (layer_id, document, layer_name))
    for node in document.findall(layer_name):
        if node.has_canvas():
            return Resolution(ResolutionStatus.RESOLVED, node, node.canvas)

    logger.debug("No pixels for %r (%r) in %s" % (layer_id, layer_name, document))
    return Resolution(ResolutionStatus.MISSING_PIXELS)
