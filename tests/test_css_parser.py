"""Tests for :mod:`mapstyles.parsers.css`."""

from __future__ import annotations

import pytest

from mapstyles.core.translator import layer_to_geostyler_style
from mapstyles.errors import StyleParseError
from mapstyles.parsers.css import CssStyleParser, read_selector, write_selector


@pytest.fixture
def parser() -> CssStyleParser:
    return CssStyleParser()


class TestSelectors:
    @pytest.mark.parametrize(
        "expression, selector",
        [
            (None, "*"),
            (["==", "type", "park"], "[type = 'park']"),
            (["!=", "lanes", 0], "[lanes <> 0]"),
            (["*=", "name", "oak"], "[name LIKE '%oak%']"),
            (["*=", "discount", "50%"], "[discount LIKE '%50%%']"),
            (["*=", "code", "%"], "[code LIKE '%%%']"),
            (["&&", ["==", "a", 1], [">=", "b", 2.5]], "[a = 1][b >= 2.5]"),
            (["||", ["==", "a", "x"], ["<", "b", 3]], "[a = 'x'], [b < 3]"),
            (["!", ["==", "a", "it's"]], "[NOT (a = 'it\\'s')]"),
        ],
    )
    def test_write_and_read(self, expression, selector) -> None:
        assert write_selector(expression) == selector
        assert read_selector(selector) == expression

    def test_nested_expression(self) -> None:
        expression = ["||", ["&&", ["==", "a", 1], ["||", ["==", "b", 2], ["!", ["==", "c", 3]]]], ["==", "d", True]]

        assert read_selector(write_selector(expression)) == expression

    def test_keywords_are_case_insensitive(self) -> None:
        assert read_selector("[a = 1 or not (b like '%x%')]") == ["||", ["==", "a", 1], ["!", ["*=", "b", "x"]]]

    @pytest.mark.parametrize("selector", ["[a = ]", "[a 1]", "[(a = 1]", "a = 1", "[a = 1"])
    def test_malformed_selectors(self, selector) -> None:
        with pytest.raises(StyleParseError):
            read_selector(selector)


class TestCssStyleParser:
    @pytest.mark.asyncio
    async def test_write_then_read_preserves_rules(self, parser: CssStyleParser, city_style: dict) -> None:
        encoded = await parser.write_style(city_style)

        assert await parser.read_style(encoded) == city_style

    @pytest.mark.asyncio
    async def test_translated_layers_round_trip(self, parser: CssStyleParser, annotation_layers: list) -> None:
        for layer in annotation_layers:
            translated = await layer_to_geostyler_style(layer)

            decoded = await parser.read_style(await parser.write_style(translated))

            assert decoded["body"] == translated["body"]

    @pytest.mark.asyncio
    async def test_write_layout(self, parser: CssStyleParser) -> None:
        style = {
            "name": "Roads",
            "rules": [
                {
                    "name": "Major",
                    "filter": ["==", "kind", "road"],
                    "symbolizers": [{"kind": "Line", "color": "#3075e9", "width": 2.0}],
                }
            ],
        }

        assert await parser.write_style(style) == (
            "/* @name Roads */\n"
            "\n"
            "/* @title Major */\n"
            "[kind = 'road'] {\n"
            "  stroke: #3075e9;\n"
            "  stroke-width: 2;\n"
            "}\n"
        )

    @pytest.mark.asyncio
    async def test_read_braces_inside_labels(self, parser: CssStyleParser) -> None:
        encoded = '* { label: "{{name}}"; font-size: 12; /* ignored; */ }'

        style = await parser.read_style(encoded.encode("utf-8"))

        assert style["body"] == {
            "name": "",
            "rules": [{"name": "", "symbolizers": [{"kind": "Text", "label": "{{name}}", "size": 12}]}],
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "Empty"])
    async def test_empty_style_round_trips(self, parser: CssStyleParser, name: str) -> None:
        style = {"format": "geostyler", "body": {"name": name, "rules": []}}

        assert await parser.read_style(await parser.write_style(style)) == style

    @pytest.mark.asyncio
    @pytest.mark.parametrize("encoded", ["", "  \n", "/* nothing to draw */"])
    async def test_documents_without_rules(self, parser: CssStyleParser, encoded: str) -> None:
        style = await parser.read_style(encoded)

        assert style["body"] == {"name": "", "rules": []}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "encoded",
        [
            None,
            42,
            "* { stroke: #000000;",
            "* { stroke: #000000; }}",
            "* { a { stroke: #000000; } }",
            "* { stroke #000000; }",
            "* { mark: circle; }",
            "* { stroke: #000000; } trailing",
        ],
    )
    async def test_invalid_input(self, parser: CssStyleParser, encoded) -> None:
        with pytest.raises(StyleParseError):
            await parser.read_style(encoded)
