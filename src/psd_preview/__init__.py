"""
psd-preview: preview compositing for transformed layer payloads.

This package renders a single preview bitmap for a target container of a
design template, from a tree of transformed layers whose pixels come from
registered source documents.

Basic usage::

    from psd_preview import RenderRequest, TransformedPayload, render
    from psd_preview.api.store import DocumentRegistry

    payload = TransformedPayload.from_dict(data)
    result = render(RenderRequest(payload, documents=DocumentRegistry([document])))
    if result is not None:
        result.image.save('preview.png')

Architecture:

- :py:mod:`psd_preview.api`: Payload, document and template models, registries
  and preview slots
- :py:mod:`psd_preview.composite`: Origin resolution, layer resolution and the
  paint traversal
"""

from psd_preview.api.document import SourceDocument, SourceNode
from psd_preview.api.payload import TransformedLayer, TransformedPayload
from psd_preview.api.preview import AssetPreview, PreviewSlot
from psd_preview.api.template import Template, TemplateContainer
from psd_preview.composite import RenderRequest, RenderResult, render
from psd_preview.version import __version__

__all__ = [
    "AssetPreview",
    "PreviewSlot",
    "RenderRequest",
    "RenderResult",
    "SourceDocument",
    "SourceNode",
    "Template",
    "TemplateContainer",
    "TransformedLayer",
    "TransformedPayload",
    "render",
    "__version__",
]
