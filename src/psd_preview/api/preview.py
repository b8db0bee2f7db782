"""
Preview slots.

A preview node hosts one or more slots. Each slot picks the payload to show
from the payload and reviewer registries, re-broadcasts it on its
``preview-out-<index>`` handle, and renders it.

Example::

    from psd_preview.api.preview import AssetPreview
    from psd_preview.api.store import ProceduralStore

    store = ProceduralStore()
    ...
    preview = AssetPreview('preview-1', store)
    preview.slots[0].connect('resolver-1', 'out-0')
    result = preview.slots[0].render()
"""

import logging
from typing import Optional

from attrs import define, field

from psd_preview.api.payload import TransformedPayload
from psd_preview.api.store import ProceduralStore
from psd_preview.composite import RenderRequest, RenderResult, render
from psd_preview.constants import (
    PREVIEW_INPUT_PREFIX,
    PREVIEW_OUTPUT_PREFIX,
    FramingMode,
    NameMatch,
    ViewMode,
)

logger = logging.getLogger(__name__)


def output_handle(index: int) -> str:
    return "%s%d" % (PREVIEW_OUTPUT_PREFIX, index)


def input_handle(index: int) -> str:
    return "%s%d" % (PREVIEW_INPUT_PREFIX, index)


@define
class Selection:
    """
    Payload selection of a slot.

    .. py:attribute:: payload

        The payload shown, or None when the slot has no input.

    .. py:attribute:: mode

        Effective view mode.

    .. py:attribute:: polished_available

        True when a reviewer payload exists and is marked polished.
    """

    payload: Optional[TransformedPayload]
    mode: ViewMode
    polished_available: bool
    polished: Optional[TransformedPayload] = None
    procedural: Optional[TransformedPayload] = None


def select_payload(
    store: ProceduralStore,
    source: Optional[tuple[str, str]],
    view_mode: ViewMode = ViewMode.PROCEDURAL,
) -> Selection:
    """
    Decide which payload a slot connected to `source` shows.

    A polished reviewer payload wins only in polished view mode. Otherwise the
    reviewer payload is still preferred over the procedural one, which is
    looked up on the input handle, or by target container under the reviewer
    payload's source node.
    """
    polished = store.reviewer.get(*source) if source is not None else None

    procedural = None
    if polished is None:
        if source is not None:
            procedural = store.payloads.get(*source)
    else:
        for payload in store.payloads.payloads(polished.source_node_id):
            if payload.target_container == polished.target_container:
                procedural = payload
                break

    available = polished is not None and polished.is_polished
    if ViewMode(view_mode) == ViewMode.POLISHED and available:
        return Selection(polished, ViewMode.POLISHED, available, polished, procedural)
    return Selection(
        polished or procedural, ViewMode.PROCEDURAL, available, polished, procedural
    )


@define
class PreviewSlot:
    """
    One preview slot of an :py:class:`AssetPreview` node.

    .. py:attribute:: source

        ``(node id, handle)`` connected to this slot's input, or None.

    .. py:attribute:: auto_frame

        Center visible content when True, use template bounds when False.
    """

    node_id: str
    index: int
    store: ProceduralStore = field(repr=False)
    source: Optional[tuple[str, str]] = None
    view_mode: ViewMode = field(default=ViewMode.PROCEDURAL, converter=ViewMode)
    auto_frame: bool = True
    name_match: NameMatch = field(default=NameMatch.EXACT, converter=NameMatch)

    @property
    def input_handle(self) -> str:
        return input_handle(self.index)

    @property
    def output_handle(self) -> str:
        return output_handle(self.index)

    @property
    def framing(self) -> FramingMode:
        return FramingMode.AUTO if self.auto_frame else FramingMode.STRICT

    def connect(self, node_id: str, handle: str) -> None:
        self.source = (node_id, handle)

    def disconnect(self) -> None:
        self.source = None

    def toggle_auto_frame(self) -> bool:
        self.auto_frame = not self.auto_frame
        return self.auto_frame

    def set_view_mode(self, mode: ViewMode) -> None:
        self.view_mode = ViewMode(mode)

    def select(self) -> Selection:
        return select_payload(self.store, self.source, self.view_mode)

    def broadcast(self) -> Optional[TransformedPayload]:
        """
        Publish the displayed payload on this slot's output handle so that
        downstream nodes use exactly what was previewed.
        """
        payload = self.select().payload
        if payload is not None:
            self.store.reviewer.register(self.node_id, self.output_handle, payload)
        return payload

    def render(self) -> Optional[RenderResult]:
        """Broadcast and render the displayed payload."""
        payload = self.broadcast()
        if payload is None:
            logger.debug("Slot %s:%d has no payload" % (self.node_id, self.index))
            return None
        return render(
            RenderRequest(
                payload,
                self.framing,
                self.store.documents,
                self.store.templates,
                self.name_match,
            )
        )

    def summary(self) -> dict:
        """Display metadata of the slot."""
        selection = self.select()
        payload = selection.payload
        return {
            "title": payload.target_container if payload else "SLOT %d" % self.index,
            "size": (
                "%dx%d" % (payload.metrics.w, payload.metrics.h) if payload else "N/A"
            ),
            "leaf_count": payload.leaf_count() if payload else 0,
            "mode": selection.mode.value,
            "polished_available": selection.polished_available,
            "auto_frame": self.auto_frame,
        }


class AssetPreview(object):
    """Preview node hosting a growable list of slots."""

    def __init__(self, node_id: str, store: ProceduralStore, instance_count: int = 1):
        if instance_count < 1:
            raise ValueError("instance_count must be positive: %d" % instance_count)
        self.node_id = node_id
        self.store = store
        self.slots: list[PreviewSlot] = []
        for _ in range(instance_count):
            self.add_slot()

    def __repr__(self) -> str:
        return "%s(%r slots=%d)" % (self.__class__.__name__, self.node_id, len(self.slots))

    def __len__(self) -> int:
        return len(self.slots)

    def __getitem__(self, index: int) -> PreviewSlot:
        return self.slots[index]

    @property
    def instance_count(self) -> int:
        return len(self.slots)

    def add_slot(self) -> PreviewSlot:
        slot = PreviewSlot(self.node_id, len(self.slots), self.store)
        self.slots.append(slot)
        return slot

    def render_all(self) -> list[Optional[RenderResult]]:
        return [slot.render() for slot in self.slots]
