"""
Composite module for preview rendering.

This subpackage renders one preview bitmap for a target container from a
transformed layer tree.

Key modules:

- :py:mod:`psd_preview.composite.composite`: Paint traversal and ``render``
- :py:mod:`psd_preview.composite.origin`: Camera origin resolution
- :py:mod:`psd_preview.composite.resolver`: Layer to pixel source resolution
- :py:mod:`psd_preview.composite.paint`: Background, leaf and diagnostic painters

Example usage::

    from psd_preview.composite import RenderRequest, render

    result = render(RenderRequest(payload, documents=store.documents))
    if result is not None:
        result.image.save('preview.png')

Failures are never raised. Each visible leaf is reported with a
:py:class:`~psd_preview.constants.LeafStatus` and drawn with a distinct
diagnostic when its pixels cannot be found.
"""

from psd_preview.composite.composite import (
    Compositor,
    LeafResult,
    RenderRequest,
    RenderResult,
    render,
    render_payload,
)

__all__ = [
    "Compositor",
    "LeafResult",
    "RenderRequest",
    "RenderResult",
    "render",
    "render_payload",
]
