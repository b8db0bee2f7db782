"""
Protocol definitions for the read-only collaborators of the compositor.

The compositor never reaches into process-wide state; hosts pass objects
implementing these interfaces. In-memory implementations live in
:py:mod:`psd_preview.api.store`.
"""

from typing import Iterable, Optional, Protocol

from psd_preview.api.document import SourceDocument
from psd_preview.api.payload import TransformedPayload
from psd_preview.api.template import Template


class PayloadSourceProtocol(Protocol):
    """Active payloads keyed by producing node and output handle."""

    def get(self, node_id: str, handle: str) -> Optional[TransformedPayload]:
        """Return the payload on `handle` of `node_id`, or None."""
        ...

    def payloads(self, node_id: str) -> Iterable[TransformedPayload]:
        """Return every payload produced by `node_id`."""
        ...


class DocumentLookupProtocol(Protocol):
    """Source documents keyed by source identifier."""

    def get(self, source_id: str) -> Optional[SourceDocument]:
        ...

    def first(self) -> Optional[SourceDocument]:
        """Return the first registered document, used for stale references."""
        ...


class TemplateLookupProtocol(Protocol):
    def templates(self) -> Iterable[Template]:
        """Return all templates in registration order."""
        ...


class ReviewerRegistryProtocol(Protocol):
    """Reviewed (possibly polished) payloads, writable for re-broadcast."""

    def get(self, node_id: str, handle: str) -> Optional[TransformedPayload]:
        ...

    def register(self, node_id: str, handle: str, payload: TransformedPayload) -> None:
        ...
