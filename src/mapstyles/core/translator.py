"""Translate flat layer and feature styles into structured geostyler styles.

Two flat shapes are understood:

* *annotation* layers, whose features carry their own ``style`` and an ``id``
  property.  Every such feature becomes one rule filtered on that id;
* *simple* layers with a single layer-level ``style`` (or a list of them),
  which become unfiltered rules.

Styles that are already structured pass through untouched, which makes the
translation idempotent.  Inputs that match neither shape translate to a style
without rules instead of raising, so renderers always get something to draw
with.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ..config import (
    DEFAULT_FILL_COLOR,
    DEFAULT_FILL_OPACITY,
    DEFAULT_ICON_SIZE,
    DEFAULT_POINT_OPACITY,
    DEFAULT_POINT_RADIUS,
    DEFAULT_STROKE_COLOR,
    DEFAULT_STROKE_OPACITY,
    DEFAULT_STROKE_WIDTH,
    DEFAULT_STYLE_NAME,
    GEOSTYLER_FORMAT,
    VISUAL_EDITOR_TYPE,
)
from .classifier import (
    is_circle_style,
    is_fill_style,
    is_marker_style,
    is_stroke_style,
    is_symbol_style,
    is_text_style,
)
from .symbolizers import (
    FillSymbolizer,
    IconSymbolizer,
    LineSymbolizer,
    MarkSymbolizer,
    Rule,
    StructuredStyle,
    Symbolizer,
    TextSymbolizer,
)

_LOGGER = logging.getLogger(__name__)

FlatStyle = Mapping[str, Any]


def is_geostyler_style(style: Any) -> bool:
    """Return ``True`` when *style* is already a structured style document."""

    return isinstance(style, Mapping) and style.get("format") == GEOSTYLER_FORMAT


def flatten_features(features: Optional[Iterable[Any]]) -> list[dict]:
    """Expand nested FeatureCollections into a single list of features."""

    flattened: list[dict] = []
    for item in features or []:
        if isinstance(item, Mapping):
            if item.get("type") == "FeatureCollection":
                flattened.extend(flatten_features(item.get("features")))
            else:
                flattened.append(item)  # type: ignore[arg-type]
        elif isinstance(item, (list, tuple)):
            flattened.extend(flatten_features(item))
    return flattened


# ----------------------------------------------------------------------
# Flat attribute -> symbolizer helpers
# ----------------------------------------------------------------------

def _number(value: Any) -> Any:
    """Return numeric strings as numbers; other values unchanged."""

    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return value
        return int(number) if number.is_integer() else number
    return value


def _dash_array(value: Any) -> Optional[tuple]:
    if value is None:
        return None
    parts = value.replace(",", " ").split() if isinstance(value, str) else value
    if not isinstance(parts, (list, tuple)) or not parts:
        return None
    numbers = tuple(_number(part) for part in parts)
    if not all(isinstance(number, (int, float)) for number in numbers):
        _LOGGER.debug("Ignoring non numeric dash array %r", value)
        return None
    return numbers


def line_symbolizer(style: FlatStyle) -> LineSymbolizer:
    return LineSymbolizer(
        color=style.get("color"),
        opacity=style.get("opacity"),
        width=style.get("weight"),
        dasharray=_dash_array(style.get("dashArray")),
        cap=style.get("lineCap"),
        join=style.get("lineJoin"),
    )


def fill_symbolizer(style: FlatStyle) -> FillSymbolizer:
    return FillSymbolizer(
        color=style.get("fillColor"),
        opacity=style.get("fillOpacity"),
        fill_opacity=style.get("fillOpacity"),
        outline_color=style.get("color"),
        outline_opacity=style.get("opacity"),
        outline_width=style.get("weight"),
    )


def mark_symbolizer(style: FlatStyle) -> MarkSymbolizer:
    return MarkSymbolizer(
        well_known_name="Circle",
        color=style.get("fillColor"),
        fill_opacity=style.get("fillOpacity"),
        stroke_color=style.get("color"),
        stroke_opacity=style.get("opacity"),
        stroke_width=style.get("weight"),
        radius=style.get("radius"),
    )


def icon_symbolizer(style: FlatStyle) -> IconSymbolizer:
    return IconSymbolizer(
        image=style.get("symbolUrlCustomized") or style.get("symbolUrl"),
        opacity=style.get("opacity"),
        size=_number(style.get("size", DEFAULT_ICON_SIZE)),
        rotate=style.get("rotate", style.get("rotation")),
    )


def text_symbolizer(style: FlatStyle) -> TextSymbolizer:
    family = style.get("fontFamily")
    has_fill = style.get("fillColor") is not None
    return TextSymbolizer(
        label=style.get("label"),
        font=(family,) if family else None,
        size=_number(style.get("fontSize")),
        font_style=style.get("fontStyle"),
        font_weight=style.get("fontWeight"),
        color=style.get("fillColor") if has_fill else style.get("color"),
        opacity=style.get("fillOpacity"),
        # With a fill colour present the stroke colour outlines the glyphs.
        halo_color=style.get("color") if has_fill else None,
        halo_width=style.get("weight") if has_fill else None,
    )


def _point_symbolizer(style: FlatStyle) -> Optional[Symbolizer]:
    """Return the single symbolizer of a point-like style, if it is one."""

    if is_symbol_style(style):
        return icon_symbolizer(style)
    if is_circle_style(style):
        return mark_symbolizer(style)
    if is_text_style(style):
        return text_symbolizer(style)
    if is_marker_style(style):
        _LOGGER.debug("Glyph marker styles have no structured counterpart: %s", sorted(style))
    return None


def _as_style_list(style: Any) -> list[FlatStyle]:
    if isinstance(style, Mapping):
        return [style]
    if isinstance(style, (list, tuple)):
        return [item for item in style if isinstance(item, Mapping)]
    return []


def feature_style_to_symbolizers(style: Any) -> list[Symbolizer]:
    """Return the symbolizers for the flat style(s) attached to one feature.

    A polygon annotation carrying both fill and stroke attributes yields a
    single ``Fill`` symbolizer whose outline holds the stroke attributes; a
    ``Line`` is only produced for styles without fill attributes.
    """

    symbolizers: list[Symbolizer] = []
    for flat in _as_style_list(style):
        point = _point_symbolizer(flat)
        if point is not None:
            symbolizers.append(point)
        elif is_fill_style(flat):
            symbolizers.append(fill_symbolizer(flat))
        elif is_stroke_style(flat):
            symbolizers.append(line_symbolizer(flat))
    return symbolizers


def layer_style_to_rules(style: Any) -> list[Rule]:
    """Return the unfiltered rules for a layer-level flat style (or list)."""

    rules: list[Rule] = []
    for flat in _as_style_list(style):
        point = _point_symbolizer(flat)
        if point is not None:
            rules.append(Rule(name="", symbolizers=(point,)))
            continue
        if is_stroke_style(flat):
            rules.append(Rule(name="", symbolizers=(line_symbolizer(flat),)))
        if is_fill_style(flat):
            rules.append(Rule(name="", symbolizers=(fill_symbolizer(flat),)))
    return rules


def _feature_id(feature: Mapping[str, Any]) -> Any:
    properties = feature.get("properties")
    if not isinstance(properties, Mapping):
        return None
    return properties.get("id")


def features_to_rules(features: Iterable[Mapping[str, Any]]) -> list[Rule]:
    """Return one ``["==", "id", <id>]`` filtered rule per styled feature."""

    rules: list[Rule] = []
    for feature in features:
        feature_id = _feature_id(feature)
        if feature_id is None:
            continue
        symbolizers = feature_style_to_symbolizers(feature.get("style"))
        if not symbolizers:
            continue
        rules.append(Rule(name="", filter=["==", "id", feature_id], symbolizers=tuple(symbolizers)))
    return rules


async def layer_to_geostyler_style(layer: Any) -> dict:
    """Return the structured style of *layer*.

    *layer* may be a layer (``{features, style}``), a FeatureCollection, or a
    structured style; in the last case, and when the layer's own style is
    already structured, that style object is returned as-is.
    """

    if is_geostyler_style(layer):
        return layer
    if not isinstance(layer, Mapping):
        _LOGGER.warning("Cannot translate %s into a structured style", type(layer).__name__)
        return StructuredStyle(editor_type=VISUAL_EDITOR_TYPE).to_dict()

    style = layer.get("style")
    if is_geostyler_style(style):
        return style

    styled_features = [
        feature
        for feature in flatten_features(layer.get("features"))
        if feature.get("style") and _feature_id(feature) is not None
    ]
    if styled_features:
        rules = features_to_rules(styled_features)
    else:
        rules = layer_style_to_rules(style)
    return StructuredStyle(rules=tuple(rules), name="", editor_type=VISUAL_EDITOR_TYPE).to_dict()


def default_geostyler_style() -> dict:
    """Return a fresh copy of the style attached to layers without one."""

    return StructuredStyle(
        name=DEFAULT_STYLE_NAME,
        rules=(
            Rule(
                name="Default Point Style",
                symbolizers=(
                    MarkSymbolizer(
                        well_known_name="Circle",
                        color=DEFAULT_FILL_COLOR,
                        fill_opacity=DEFAULT_FILL_OPACITY,
                        opacity=DEFAULT_POINT_OPACITY,
                        stroke_color=DEFAULT_STROKE_COLOR,
                        stroke_opacity=DEFAULT_STROKE_OPACITY,
                        stroke_width=DEFAULT_STROKE_WIDTH,
                        radius=DEFAULT_POINT_RADIUS,
                        ms_bring_to_front=True,
                    ),
                ),
            ),
            Rule(
                name="Default Line Style",
                symbolizers=(
                    LineSymbolizer(
                        color=DEFAULT_STROKE_COLOR,
                        opacity=DEFAULT_STROKE_OPACITY,
                        width=DEFAULT_STROKE_WIDTH,
                    ),
                ),
            ),
            Rule(
                name="Default Polygon Style",
                symbolizers=(
                    FillSymbolizer(
                        color=DEFAULT_FILL_COLOR,
                        fill_opacity=DEFAULT_FILL_OPACITY,
                        outline_color=DEFAULT_STROKE_COLOR,
                        outline_opacity=DEFAULT_STROKE_OPACITY,
                        outline_width=DEFAULT_STROKE_WIDTH,
                    ),
                ),
            ),
        ),
    ).to_dict()


def apply_default_style_to_layer(layer: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Attach :func:`default_geostyler_style` to *layer* when it has no style.

    A style counts as missing when it is absent, empty, or a structured style
    without a body.  The input layer is never modified; a styled layer is
    returned unchanged.
    """

    current = layer or {}
    style = current.get("style")
    missing = not style or (is_geostyler_style(style) and not style.get("body"))
    if not missing:
        return current
    return {**current, "style": default_geostyler_style()}


__all__ = [
    "apply_default_style_to_layer",
    "default_geostyler_style",
    "feature_style_to_symbolizers",
    "features_to_rules",
    "flatten_features",
    "is_geostyler_style",
    "layer_style_to_rules",
    "layer_to_geostyler_style",
]
