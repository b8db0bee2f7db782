"""
In-memory registries.

Each registry implements one protocol of :py:mod:`psd_preview.api.protocols`.
:py:class:`ProceduralStore` bundles the four of them for a host.

Example::

    store = ProceduralStore()
    store.documents.register(document)
    store.templates.register(template)
    store.payloads.register('node-1', 'out-0', payload)
"""

import logging
from typing import Iterable, Iterator, Optional

from attrs import define, field

from psd_preview.api.document import SourceDocument
from psd_preview.api.payload import TransformedPayload
from psd_preview.api.template import Template

logger = logging.getLogger(__name__)


class _HandleRegistry(object):
    """Payloads keyed by ``(node id, handle)``."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, TransformedPayload]] = {}

    def __repr__(self) -> str:
        return "%s(nodes=%d)" % (self.__class__.__name__, len(self._entries))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._entries

    def register(self, node_id: str, handle: str, payload: TransformedPayload) -> None:
        logger.debug("Register %s at %s:%s" % (payload, node_id, handle))
        self._entries.setdefault(node_id, {})[handle] = payload

    def unregister(self, node_id: str, handle: Optional[str] = None) -> None:
        if handle is None:
            self._entries.pop(node_id, None)
        else:
            self._entries.get(node_id, {}).pop(handle, None)

    def get(self, node_id: str, handle: str) -> Optional[TransformedPayload]:
        return self._entries.get(node_id, {}).get(handle)

    def payloads(self, node_id: str) -> Iterable[TransformedPayload]:
        return list(self._entries.get(node_id, {}).values())


class PayloadRegistry(_HandleRegistry):
    """Procedural payloads produced by upstream nodes."""


class ReviewerRegistry(_HandleRegistry):
    """Reviewed payloads, and payloads re-broadcast by preview slots."""


class DocumentRegistry(object):
    """Source documents in registration order."""

    def __init__(self, documents: Iterable[SourceDocument] = ()) -> None:
        self._documents: dict[str, SourceDocument] = {}
        for document in documents:
            self.register(document)

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[SourceDocument]:
        return iter(self._documents.values())

    def register(self, document: SourceDocument) -> None:
        self._documents[document.id] = document

    def unregister(self, source_id: str) -> None:
        self._documents.pop(source_id, None)

    def get(self, source_id: str) -> Optional[SourceDocument]:
        return self._documents.get(source_id)

    def first(self) -> Optional[SourceDocument]:
        for document in self._documents.values():
            return document
        return None


class TemplateRegistry(object):
    """Templates in registration order."""

    def __init__(self, templates: Iterable[Template] = ()) -> None:
        self._templates: dict[str, Template] = {}
        for template in templates:
            self.register(template)

    def __len__(self) -> int:
        return len(self._templates)

    def register(self, template: Template) -> None:
        self._templates[template.name] = template

    def templates(self) -> Iterable[Template]:
        return list(self._templates.values())


@define
class ProceduralStore:
    """Bundle of the registries a preview host reads from."""

    payloads: PayloadRegistry = field(factory=PayloadRegistry)
    reviewer: ReviewerRegistry = field(factory=ReviewerRegistry)
    documents: DocumentRegistry = field(factory=DocumentRegistry)
    templates: TemplateRegistry = field(factory=TemplateRegistry)
