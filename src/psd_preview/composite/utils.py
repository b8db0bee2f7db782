"""Utility functions for composite operations."""

import math
from typing import Any, Iterable, Optional, Reversible, TypeVar

T = TypeVar("T")

BBox = tuple[float, float, float, float]


def intersect(
    a: tuple[int, int, int, int], b: tuple[int, int, int, int]
) -> tuple[int, int, int, int]:
    """Calculate intersection of two bounding boxes."""
    inter = (max(a[0], b[0]), max(a[1], b[1]), min(a[2], b[2]), min(a[3], b[3]))
    if inter[0] >= inter[2] or inter[1] >= inter[3]:
        return (0, 0, 0, 0)
    return inter


def union_bbox(boxes: Iterable[BBox]) -> Optional[BBox]:
    """Smallest bounding box covering all `boxes`, or None when empty."""
    result = None
    for box in boxes:
        if result is None:
            result = box
        else:
            result = (
                min(result[0], box[0]),
                min(result[1], box[1]),
                max(result[2], box[2]),
                max(result[3], box[3]),
            )
    return result


def normalize_opacity(value: Any) -> float:
    """Clip opacity between [0, 1]; non-finite values become 1."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 1.0
    if not math.isfinite(value):
        return 1.0
    return min(max(value, 0.0), 1.0)


def paint_order(layers: Optional[Reversible[T]]) -> Iterable[T]:
    """
    Sibling order of the traversal.

    Siblings are walked from the last one to the first one, so the first
    sibling is painted last and ends up on top.
    """
    if not layers:
        return ()
    return reversed(layers)
