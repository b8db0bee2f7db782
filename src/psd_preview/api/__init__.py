from psd_preview.api.document import SourceDocument, SourceNode
from psd_preview.api.payload import (
    Metrics,
    Rect,
    Transform,
    TransformedLayer,
    TransformedPayload,
    count_leaves,
)
from psd_preview.api.store import ProceduralStore
from psd_preview.api.template import Bounds, Template, TemplateContainer

__all__ = [
    "Bounds",
    "Metrics",
    "ProceduralStore",
    "Rect",
    "SourceDocument",
    "SourceNode",
    "Template",
    "TemplateContainer",
    "Transform",
    "TransformedLayer",
    "TransformedPayload",
    "count_leaves",
]
