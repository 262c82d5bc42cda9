"""Tests for :mod:`mapstyles.core.classifier`."""

from __future__ import annotations

from mapstyles.core.classifier import (
    StyleKind,
    classify,
    get_styler_title,
    is_attr_present,
    is_circle_style,
    is_fill_style,
    is_marker_style,
    is_stroke_style,
    is_symbol_style,
    is_text_style,
)


def test_is_attr_present() -> None:
    style = {"attribute1": "value1", "attribute2": "value2"}
    assert is_attr_present(style, ["attribute1", "attribute2"])
    assert not is_attr_present(style, ["other"])
    assert not is_attr_present({}, ["attribute1"])
    assert not is_attr_present(None, ["attribute1"])


class TestPredicates:
    def test_stroke_attributes(self) -> None:
        assert not is_stroke_style({})
        for key, value in (
            ("color", "#FF00FF"),
            ("opacity", 1),
            ("dashArray", [1]),
            ("dashOffset", 1),
            ("lineCap", "round"),
            ("lineJoin", "round"),
            ("weight", 2),
        ):
            assert is_stroke_style({key: value}), key

        stroke = {"weight": 2}
        assert not is_fill_style(stroke)
        assert not is_circle_style(stroke)
        assert not is_text_style(stroke)
        assert not is_marker_style(stroke)
        assert not is_symbol_style(stroke)

    def test_fill_attributes(self) -> None:
        assert not is_fill_style({})
        assert is_fill_style({"fillColor": "#FF00FF"})
        assert is_fill_style({"fillOpacity": 0.4})
        assert not is_stroke_style({"fillColor": "#FF00FF"})
        assert is_fill_style({"fillColor": "#FF00FF", "color": "#FF00FF"})

    def test_text_style_is_also_stroke_and_fill(self) -> None:
        text = {
            "label": "this is a text",
            "fontSize": "14",
            "fontFamily": "Arial",
            "color": "#000000",
            "opacity": 1,
            "fillColor": "#000000",
            "fillOpacity": 1,
        }
        assert is_text_style(text)
        assert is_stroke_style(text)
        assert is_fill_style(text)
        assert not is_circle_style(text)
        assert not is_marker_style(text)
        assert not is_symbol_style(text)

    def test_circle_marker_symbol(self) -> None:
        assert is_circle_style({"radius": 10})
        assert not is_circle_style({})
        assert is_marker_style({"iconGlyph": "comment", "iconShape": "square", "iconColor": "blue"})
        assert is_symbol_style({"symbolUrl": "comment"})
        assert not is_symbol_style({"radius": 10})

    def test_legacy_circle_title(self) -> None:
        assert is_circle_style({"title": "Circle Style"})
        assert not is_circle_style({"title": "Polygon Style"})


class TestTitles:
    def test_basic_styles(self) -> None:
        assert get_styler_title({}) == ""
        assert get_styler_title({"color": "#FF00FF"}) == "Polyline"
        assert get_styler_title({"fillColor": "#FF00FF"}) == "Polygon"
        assert get_styler_title({"label": "this is a text"}) == "Text"
        assert get_styler_title({"radius": 10}) == "Circle"
        assert get_styler_title({"title": "Circle Style"}) == "Circle"
        assert get_styler_title({"iconGlyph": "comment"}) == "Marker"
        assert get_styler_title({"symbolUrl": "comment"}) == "Symbol"

    def test_precedence_on_mixed_styles(self) -> None:
        mixed = {
            "color": "#FF00FF",
            "fillColor": "#FF00FF",
            "label": "this is a text",
            "radius": 10,
            "iconGlyph": "comment",
            "symbolUrl": "comment",
        }
        assert get_styler_title(mixed) == "Marker"
        del mixed["iconGlyph"]
        assert get_styler_title(mixed) == "Symbol"
        del mixed["symbolUrl"]
        assert get_styler_title(mixed) == "Text"
        del mixed["label"]
        assert get_styler_title(mixed) == "Circle"
        del mixed["radius"]
        assert get_styler_title(mixed) == "Polygon"
        del mixed["fillColor"]
        assert get_styler_title(mixed) == "Polyline"


def test_classify_returns_every_kind() -> None:
    assert classify({}) == set()
    assert classify({"label": "a", "color": "#000", "fillColor": "#fff"}) == {
        StyleKind.TEXT,
        StyleKind.STROKE,
        StyleKind.FILL,
    }
    assert StyleKind.SYMBOL in classify({"symbolUrl": "pin.svg", "color": "#000"})
