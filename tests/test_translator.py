"""Tests for :mod:`mapstyles.core.translator`."""

from __future__ import annotations

import copy

import pytest

from mapstyles.core.translator import (
    apply_default_style_to_layer,
    default_geostyler_style,
    feature_style_to_symbolizers,
    flatten_features,
    layer_to_geostyler_style,
)

FLAT_STYLE = {
    "fillColor": "#ff0000",
    "fillOpacity": 0.5,
    "color": "#00ff00",
    "opacity": 0.25,
    "weight": 2,
}

FILL_SYMBOLIZER = {
    "kind": "Fill",
    "color": "#ff0000",
    "opacity": 0.5,
    "fillOpacity": 0.5,
    "outlineColor": "#00ff00",
    "outlineOpacity": 0.25,
    "outlineWidth": 2,
}

DEFAULT_STYLE = {
    "format": "geostyler",
    "body": {
        "name": "Default Style",
        "rules": [
            {
                "name": "Default Point Style",
                "symbolizers": [
                    {
                        "kind": "Mark",
                        "color": "#f2f2f2",
                        "fillOpacity": 0.3,
                        "opacity": 0.5,
                        "strokeColor": "#3075e9",
                        "strokeOpacity": 1,
                        "strokeWidth": 2,
                        "wellKnownName": "Circle",
                        "radius": 10,
                        "msBringToFront": True,
                    }
                ],
            },
            {
                "name": "Default Line Style",
                "symbolizers": [{"kind": "Line", "color": "#3075e9", "opacity": 1, "width": 2}],
            },
            {
                "name": "Default Polygon Style",
                "symbolizers": [
                    {
                        "kind": "Fill",
                        "color": "#f2f2f2",
                        "fillOpacity": 0.3,
                        "outlineColor": "#3075e9",
                        "outlineOpacity": 1,
                        "outlineWidth": 2,
                    }
                ],
            },
        ],
    },
}


def test_flatten_features_expands_collections() -> None:
    a = {"type": "Feature", "properties": {"name": "A"}, "geometry": {"type": "Point", "coordinates": [7, 41]}}
    b = {"type": "Feature", "properties": {"name": "B"}, "geometry": {"type": "Point", "coordinates": [6, 40]}}

    assert flatten_features([{"type": "FeatureCollection", "features": [a, b]}]) == [a, b]
    assert flatten_features([a, {"type": "FeatureCollection", "features": [b]}]) == [a, b]
    assert flatten_features(None) == []


class TestLayerToGeostylerStyle:
    @pytest.mark.asyncio
    async def test_annotation_layer_yields_one_filtered_rule_per_feature(self) -> None:
        layer = {
            "type": "vector",
            "features": [
                {
                    "type": "FeatureCollection",
                    "features": [
                        {
                            "type": "Feature",
                            "properties": {"id": "annotation-id"},
                            "geometry": {
                                "type": "Polygon",
                                "coordinates": [[[7, 41], [14, 41], [14, 46], [7, 46], [7, 41]]],
                            },
                            "style": dict(FLAT_STYLE),
                        }
                    ],
                }
            ],
        }

        style = await layer_to_geostyler_style(layer)

        assert style == {
            "format": "geostyler",
            "body": {
                "name": "",
                "rules": [
                    {
                        "name": "",
                        "filter": ["==", "id", "annotation-id"],
                        "symbolizers": [FILL_SYMBOLIZER],
                    }
                ],
            },
            "metadata": {"editorType": "visual"},
        }

    @pytest.mark.asyncio
    async def test_simple_layer_yields_line_then_fill(self) -> None:
        layer = {"type": "vector", "features": [], "style": dict(FLAT_STYLE)}

        style = await layer_to_geostyler_style(layer)

        assert style == {
            "format": "geostyler",
            "body": {
                "name": "",
                "rules": [
                    {
                        "name": "",
                        "symbolizers": [{"kind": "Line", "color": "#00ff00", "opacity": 0.25, "width": 2}],
                    },
                    {"name": "", "symbolizers": [FILL_SYMBOLIZER]},
                ],
            },
            "metadata": {"editorType": "visual"},
        }

    @pytest.mark.asyncio
    async def test_structured_style_passes_through(self) -> None:
        structured = {"format": "geostyler", "body": {"name": "", "rules": []}}
        layer = {"type": "vector", "features": [], "style": structured}

        assert await layer_to_geostyler_style(layer) is structured
        assert await layer_to_geostyler_style(structured) is structured

    @pytest.mark.asyncio
    async def test_translation_is_idempotent(self) -> None:
        layer = {"type": "vector", "features": [], "style": dict(FLAT_STYLE)}
        first = await layer_to_geostyler_style(layer)

        second = await layer_to_geostyler_style({**layer, "style": first})

        assert second == first

    @pytest.mark.asyncio
    @pytest.mark.parametrize("layer", [None, {}, {"features": []}, {"style": None}, "vector", 42])
    async def test_malformed_input_yields_no_rules(self, layer) -> None:
        style = await layer_to_geostyler_style(layer)

        assert style["format"] == "geostyler"
        assert style["body"]["rules"] == []

    @pytest.mark.asyncio
    async def test_input_is_not_mutated(self) -> None:
        layer = {"type": "vector", "features": [], "style": dict(FLAT_STYLE)}
        snapshot = copy.deepcopy(layer)

        await layer_to_geostyler_style(layer)

        assert layer == snapshot

    @pytest.mark.asyncio
    async def test_features_without_id_fall_back_to_layer_style(self) -> None:
        layer = {
            "features": [{"type": "Feature", "properties": {}, "style": {"color": "#000000"}}],
            "style": {"color": "#ff0000", "weight": 3},
        }

        style = await layer_to_geostyler_style(layer)

        assert style["body"]["rules"] == [
            {"name": "", "symbolizers": [{"kind": "Line", "color": "#ff0000", "width": 3}]}
        ]


class TestFeatureStyleToSymbolizers:
    def test_point_styles(self) -> None:
        (icon,) = feature_style_to_symbolizers({"symbolUrl": "pin.svg", "rotation": 45})
        assert icon.to_dict() == {"kind": "Icon", "image": "pin.svg", "size": 32, "rotate": 45}

        (mark,) = feature_style_to_symbolizers({"radius": 8, "fillColor": "#fff", "color": "#000", "weight": 1})
        assert mark.to_dict() == {
            "kind": "Mark",
            "wellKnownName": "Circle",
            "color": "#fff",
            "strokeColor": "#000",
            "strokeWidth": 1,
            "radius": 8,
        }

        (text,) = feature_style_to_symbolizers({"label": "Hi", "fontFamily": "Arial", "fontSize": "14"})
        assert text.to_dict() == {"kind": "Text", "label": "Hi", "font": ["Arial"], "size": 14}

    def test_customized_symbol_url_wins(self) -> None:
        (icon,) = feature_style_to_symbolizers(
            {"symbolUrl": "pin.svg", "symbolUrlCustomized": "data:image/svg+xml;base64,AA=="}
        )
        assert icon.image == "data:image/svg+xml;base64,AA=="

    def test_fill_masks_stroke_and_lists_are_expanded(self) -> None:
        symbolizers = feature_style_to_symbolizers([FLAT_STYLE, {"color": "#000000", "dashArray": "4 2"}])

        assert [item.to_dict() for item in symbolizers] == [
            FILL_SYMBOLIZER,
            {"kind": "Line", "color": "#000000", "dasharray": [4, 2]},
        ]

    def test_marker_styles_have_no_symbolizer(self) -> None:
        assert feature_style_to_symbolizers({"iconGlyph": "comment", "iconShape": "square"}) == []


class TestDefaultStyle:
    @pytest.mark.parametrize(
        "layer",
        [
            {},
            {"style": {}},
            {"style": None},
            {"style": {"format": "geostyler"}},
        ],
    )
    def test_default_is_attached_to_unstyled_layers(self, layer) -> None:
        snapshot = copy.deepcopy(layer)

        styled = apply_default_style_to_layer(layer)

        assert styled["style"] == DEFAULT_STYLE
        assert layer == snapshot

    def test_styled_layer_is_returned_unchanged(self) -> None:
        layer = {"style": {"format": "geostyler", "body": {"name": "", "rules": []}}}
        assert apply_default_style_to_layer(layer) is layer

        flat = {"style": {"color": "#000000"}}
        assert apply_default_style_to_layer(flat) is flat

    def test_default_style_is_a_fresh_copy(self) -> None:
        first = default_geostyler_style()
        first["body"]["rules"].clear()

        assert default_geostyler_style() == DEFAULT_STYLE
        assert apply_default_style_to_layer(None)["style"] == DEFAULT_STYLE
