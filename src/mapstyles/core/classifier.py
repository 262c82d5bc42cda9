"""Attribute-presence predicates for flat styles.

Flat styles have no schema: what a style *is* follows from which attributes it
carries.  A single style may exhibit several kinds at once (a text style with
a coloured halo is also a stroke and a fill style), so :func:`classify`
returns a set and :func:`get_styler_title` ranks the kinds into one label.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping, Optional

STROKE_ATTRIBUTES = ("color", "opacity", "dashArray", "dashOffset", "lineCap", "lineJoin", "weight")
FILL_ATTRIBUTES = ("fillColor", "fillOpacity")
TEXT_ATTRIBUTES = ("label",)
CIRCLE_ATTRIBUTES = ("radius",)
MARKER_ATTRIBUTES = ("iconGlyph", "iconShape", "iconColor")
SYMBOL_ATTRIBUTES = ("symbolUrl",)

# Circle annotations saved by older clients only carry this title.
LEGACY_CIRCLE_TITLE = "Circle Style"


class StyleKind(str, Enum):
    """Visual kinds a flat style can exhibit."""

    STROKE = "stroke"
    FILL = "fill"
    TEXT = "text"
    CIRCLE = "circle"
    MARKER = "marker"
    SYMBOL = "symbol"


def is_attr_present(style: Optional[Mapping[str, Any]], attributes: Iterable[str]) -> bool:
    """Return ``True`` when at least one of *attributes* is a key of *style*."""

    if not style:
        return False
    return any(attribute in style for attribute in attributes)


def is_stroke_style(style: Optional[Mapping[str, Any]]) -> bool:
    return is_attr_present(style, STROKE_ATTRIBUTES)


def is_fill_style(style: Optional[Mapping[str, Any]]) -> bool:
    return is_attr_present(style, FILL_ATTRIBUTES)


def is_text_style(style: Optional[Mapping[str, Any]]) -> bool:
    return is_attr_present(style, TEXT_ATTRIBUTES)


def is_circle_style(style: Optional[Mapping[str, Any]]) -> bool:
    if is_attr_present(style, CIRCLE_ATTRIBUTES):
        return True
    return bool(style) and style.get("title") == LEGACY_CIRCLE_TITLE


def is_marker_style(style: Optional[Mapping[str, Any]]) -> bool:
    return is_attr_present(style, MARKER_ATTRIBUTES)


def is_symbol_style(style: Optional[Mapping[str, Any]]) -> bool:
    return is_attr_present(style, SYMBOL_ATTRIBUTES)


# Ordered by title precedence: the first kind present names the style.
_TITLE_PRECEDENCE = (
    (StyleKind.MARKER, is_marker_style, "Marker"),
    (StyleKind.SYMBOL, is_symbol_style, "Symbol"),
    (StyleKind.TEXT, is_text_style, "Text"),
    (StyleKind.CIRCLE, is_circle_style, "Circle"),
    (StyleKind.FILL, is_fill_style, "Polygon"),
    (StyleKind.STROKE, is_stroke_style, "Polyline"),
)


def classify(style: Optional[Mapping[str, Any]]) -> set[StyleKind]:
    """Return every :class:`StyleKind` exhibited by *style*."""

    return {kind for kind, predicate, _title in _TITLE_PRECEDENCE if predicate(style)}


def get_styler_title(style: Optional[Mapping[str, Any]]) -> str:
    """Return the display title of *style*, or ``""`` when it has no kind."""

    for _kind, predicate, title in _TITLE_PRECEDENCE:
        if predicate(style):
            return title
    return ""


__all__ = [
    "StyleKind",
    "classify",
    "get_styler_title",
    "is_attr_present",
    "is_circle_style",
    "is_fill_style",
    "is_marker_style",
    "is_stroke_style",
    "is_symbol_style",
    "is_text_style",
]
