"""
Various constants for psd_preview
"""

from enum import Enum


class LayerType(str, Enum):
    """
    Kind of a transformed layer.

    Groups are implicit: any layer with non-empty children is walked as a
    group regardless of its declared type.
    """

    RASTER = "raster"
    GENERATIVE = "generative"
    GROUP = "group"


class FramingMode(str, Enum):
    """
    Camera framing mode.

    ``AUTO`` centers the visible content inside the output canvas,
    ``STRICT`` uses the bounds declared by the template container.
    """

    AUTO = "auto"
    STRICT = "strict"


class NameMatch(str, Enum):
    """
    Comparison policy for template container names.

    Both policies compare the target against ``name`` and ``original_name``.
    """

    EXACT = "exact"
    CASE_INSENSITIVE = "case-insensitive"


class ViewMode(str, Enum):
    """Which payload a preview slot shows."""

    PROCEDURAL = "procedural"
    POLISHED = "polished"


class ResolutionStatus(str, Enum):
    """Outcome of resolving a layer reference against a source document."""

    RESOLVED = "resolved"
    MISSING_SOURCE = "missing-source"
    MISSING_PIXELS = "missing-pixels"


class LeafStatus(str, Enum):
    """
    Per-leaf paint outcome.

    Every visible leaf produces exactly one of these during the traversal.
    """

    DRAWN = "drawn"
    PLACEHOLDER = "placeholder"
    MISSING_SOURCE = "missing-source"
    MISSING_PIXELS = "missing-pixels"
    EMPTY_BUFFER = "empty-buffer"
    DRAW_FAULT = "draw-fault"


#: Checkerboard grid step in pixels.
CHECKER_SIZE = 20

#: Checkerboard colors, slate 800 and slate 700.
CHECKER_COLORS = ((0x1E, 0x29, 0x3B), (0x33, 0x41, 0x55))

GENERATIVE_FILL = (192, 132, 252, 51)
GENERATIVE_STROKE = (192, 132, 252, 255)
GENERATIVE_LABEL = "AI GEN"
GENERATIVE_LABEL_COLOR = (255, 255, 255, 255)
GENERATIVE_DASH = 3

EMPTY_BUFFER_FILL = (255, 0, 255, 26)
MISSING_PIXELS_STROKE = (0xEF, 0x44, 0x44, 255)
MISSING_SOURCE_FILL = (255, 0, 0, 26)
DRAW_FAULT_FILL = (255, 0, 0, 64)
DRAW_FAULT_STROKE = (255, 0, 0, 255)

AUTO_FRAME_LABEL = "AUTO-CENTER ACTIVE"
AUTO_FRAME_COLOR = (0x06, 0xB6, 0xD4, 255)
AUTO_FRAME_MARGIN = 4

#: Default preview encoding.
PREVIEW_FORMAT = "JPEG"
PREVIEW_QUALITY = 90

#: Handle prefixes of a preview slot.
PREVIEW_INPUT_PREFIX = "payload-in-"
PREVIEW_OUTPUT_PREFIX = "preview-out-"
