"""
Transformed payload structure.

A payload is a fully positioned layer tree targeting one output slot. It is
produced upstream and never mutated by the compositor.

Example::

    from psd_preview.api.payload import TransformedPayload

    payload = TransformedPayload.from_dict({
        'sourceNodeId': 'psd-1',
        'targetContainer': 'Hero',
        'metrics': {'target': {'w': 300, 'h': 200}},
        'layers': [{
            'id': 'L1',
            'name': 'Bg',
            'type': 'raster',
            'coords': {'x': 0, 'y': 0, 'w': 300, 'h': 200},
        }],
    })
    print(payload.leaf_count())
"""

import logging
from typing import Any, Iterable, Iterator, Optional, TypeVar

from attrs import define, field

from psd_preview.constants import LayerType
from psd_preview.validators import finite_or, range_

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="TransformedPayload")


def _require(data: Any, key: str, owner: str) -> Any:
    if not isinstance(data, dict):
        raise TypeError("%s must be a dict, got %s" % (owner, type(data).__name__))
    if key not in data:
        raise ValueError("%s is missing required key %r" % (owner, key))
    return data[key]


@define
class Rect:
    """
    Axis-aligned rectangle in the shared logical coordinate space.

    .. py:attribute:: x
    .. py:attribute:: y
    .. py:attribute:: w
    .. py:attribute:: h
    """

    x: float = field(default=0.0, converter=finite_or(0.0))
    y: float = field(default=0.0, converter=finite_or(0.0))
    w: float = field(default=0.0, converter=finite_or(0.0))
    h: float = field(default=0.0, converter=finite_or(0.0))

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        """(left, top, right, bottom) tuple."""
        return self.x, self.y, self.x + self.w, self.y + self.h

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.w / 2.0, self.y + self.h / 2.0

    @classmethod
    def from_dict(cls, data: dict) -> "Rect":
        return cls(*(_require(data, key, "coords") for key in "xywh"))

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@define
class Transform:
    """Layer transform. Rotation is in degrees about the rectangle center."""

    rotation: float = field(default=0.0, converter=finite_or(0.0))

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Transform":
        return cls(rotation=(data or {}).get("rotation", 0.0))

    def to_dict(self) -> dict:
        return {"rotation": self.rotation}


@define
class TransformedLayer:
    """
    Node of a transformed layer tree.

    A node with non-empty ``children`` is a group and is never painted
    itself; a node without children is a leaf.

    .. py:attribute:: id

        Path-like identifier of the layer in its source document.

    .. py:attribute:: opacity

        Opacity in [0, 1]. Anything that is not a finite number becomes 1.0.
    """

    id: str = field(converter=str)
    name: str = field(default="", converter=str)
    type: LayerType = field(default=LayerType.RASTER, converter=LayerType)
    coords: Rect = field(factory=Rect)
    transform: Transform = field(factory=Transform)
    opacity: float = field(default=1.0, converter=finite_or(1.0))
    is_visible: bool = field(default=True, converter=bool)
    children: Optional[list["TransformedLayer"]] = None

    def __repr__(self) -> str:
        return "%s(%r name=%r type=%s%s)" % (
            self.__class__.__name__,
            self.id,
            self.name,
            self.type.value,
            "" if self.is_visible else " hidden",
        )

    def is_group(self) -> bool:
        """Return True if the layer has children."""
        return bool(self.children)

    def is_leaf(self) -> bool:
        return not self.children

    def descendants(self) -> Iterator["TransformedLayer"]:
        """Iterate over all descendant layers in stored order."""
        for child in self.children or ():
            yield child
            yield from child.descendants()

    @classmethod
    def from_dict(cls, data: dict) -> "TransformedLayer":
        children = data.get("children") if isinstance(data, dict) else None
        return cls(
            id=_require(data, "id", "layer"),
            name=data.get("name", ""),
            type=data.get("type", LayerType.RASTER.value),
            coords=Rect.from_dict(_require(data, "coords", "layer")),
            transform=Transform.from_dict(data.get("transform")),
            opacity=data.get("opacity", 1.0),
            is_visible=data.get("isVisible", True),
            children=(
                [cls.from_dict(child) for child in children]
                if children is not None
                else None
            ),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "coords": self.coords.to_dict(),
            "transform": self.transform.to_dict(),
            "opacity": self.opacity,
            "isVisible": self.is_visible,
        }
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@define
class Metrics:
    """Output canvas size, ``target = (w, h)`` in whole pixels."""

    w: int = field(default=0, converter=int, validator=range_(0))
    h: int = field(default=0, converter=int, validator=range_(0))

    @property
    def size(self) -> tuple[int, int]:
        return self.w, self.h

    def is_empty(self) -> bool:
        return self.w == 0 or self.h == 0

    @classmethod
    def from_dict(cls, data: dict) -> "Metrics":
        target = _require(data, "target", "metrics")
        return cls(_require(target, "w", "target"), _require(target, "h", "target"))

    def to_dict(self) -> dict:
        return {"target": {"w": self.w, "h": self.h}}


@define
class TransformedPayload:
    """
    Transformed layer tree targeting one output slot.

    .. py:attribute:: source_node_id

        Identifier of the source document that produced this payload.

    .. py:attribute:: target_container

        Name of the destination template container.

    .. py:attribute:: is_polished

        True when a reviewer finalized this payload.
    """

    source_node_id: str = field(converter=str)
    target_container: str = field(converter=str)
    metrics: Metrics = field(factory=Metrics)
    layers: list[TransformedLayer] = field(factory=list)
    is_polished: bool = field(default=False, converter=bool)

    def __repr__(self) -> str:
        return "%s(%r -> %r size=%dx%d layers=%d%s)" % (
            self.__class__.__name__,
            self.source_node_id,
            self.target_container,
            self.metrics.w,
            self.metrics.h,
            len(self.layers),
            " polished" if self.is_polished else "",
        )

    def leaf_count(self) -> int:
        """Number of leaf layers in the whole tree."""
        return count_leaves(self.layers)

    def descendants(self) -> Iterator[TransformedLayer]:
        for layer in self.layers:
            yield layer
            yield from layer.descendants()

    @classmethod
    def from_dict(cls: type[T], data: dict) -> T:
        return cls(
            source_node_id=_require(data, "sourceNodeId", "payload"),
            target_container=_require(data, "targetContainer", "payload"),
            metrics=Metrics.from_dict(_require(data, "metrics", "payload")),
            layers=[
                TransformedLayer.from_dict(layer) for layer in data.get("layers") or ()
            ],
            is_polished=data.get("isPolished", False),
        )

    def to_dict(self) -> dict:
        return {
            "sourceNodeId": self.source_node_id,
            "targetContainer": self.target_container,
            "isPolished": self.is_polished,
            "metrics": self.metrics.to_dict(),
            "layers": [layer.to_dict() for layer in self.layers],
        }


def count_leaves(layers: Iterable[TransformedLayer]) -> int:
    """
    Deep leaf count.

    Counts nodes without children, recursing into groups. Visibility is not
    taken into account.
    """
    count = 0
    for layer in layers:
        if layer.children:
            count += count_leaves(layer.children)
        else:
            count += 1
    return count


def iter_leaves(layers: Iterable[TransformedLayer]) -> Iterator[TransformedLayer]:
    """Iterate over leaves in stored order."""
    for layer in layers:
        if layer.children:
            yield from iter_leaves(layer.children)
        else:
            yield layer
