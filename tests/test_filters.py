"""Tests for :mod:`mapstyles.core.filters`."""

from __future__ import annotations

import logging

import pytest

from mapstyles.core.filters import (
    Comparison,
    Logical,
    Negation,
    geostyler_style_filter,
    parse_filter,
    select_rules,
)
from mapstyles.errors import InvalidArgumentError

FEATURE = {"properties": {"count": 10, "name": "Abc"}}


@pytest.mark.parametrize(
    "expression, expected",
    [
        (["==", "count", 10], True),
        (["!=", "count", 10], False),
        ([">=", "count", 10], True),
        (["<=", "count", 10], True),
        (["<", "count", 10], False),
        ([">", "count", 10], False),
        (["*=", "name", "A"], True),
        (["*=", "name", "d"], False),
        (["||", ["*=", "name", "d"], ["<", "count", 10]], False),
        (["||", ["*=", "name", "d"], ["<=", "count", 10]], True),
        (["&&", ["*=", "name", "d"], ["<=", "count", 10]], False),
        (["&&", ["*=", "name", "A"], ["<=", "count", 10]], True),
        (["!", ["==", "count", 10]], False),
    ],
)
def test_geostyler_style_filter(expression, expected) -> None:
    assert geostyler_style_filter(FEATURE, expression) is expected


def test_contains_is_case_sensitive() -> None:
    assert not geostyler_style_filter(FEATURE, ["*=", "name", "a"])


def test_missing_properties() -> None:
    assert not geostyler_style_filter(FEATURE, ["*=", "missing", "A"])
    assert not geostyler_style_filter(FEATURE, [">", "missing", 1])
    assert geostyler_style_filter(FEATURE, ["==", "missing", None])
    assert geostyler_style_filter({}, ["!=", "name", "Abc"])


def test_incomparable_types_do_not_match() -> None:
    assert not geostyler_style_filter(FEATURE, ["<", "name", 3])


def test_empty_filter_matches() -> None:
    assert geostyler_style_filter(FEATURE, None)
    assert geostyler_style_filter(FEATURE, [])


def test_unknown_operator_never_matches(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="mapstyles.core.filters"):
        assert not geostyler_style_filter(FEATURE, ["~=", "name", "A"])
    assert "Ignoring filter" in caplog.text


class TestParseFilter:
    def test_builds_closed_tree(self) -> None:
        node = parse_filter(["||", ["==", "id", "a"], ["!", ["<", "count", 3]]])
        assert node == Logical(
            "||",
            (Comparison("==", "id", "a"), Negation(Comparison("<", "count", 3))),
        )
        assert node.to_list() == ["||", ["==", "id", "a"], ["!", ["<", "count", 3]]]

    @pytest.mark.parametrize(
        "expression",
        [["=="], ["==", "id"], ["!", ["==", "id", 1], ["==", "id", 2]], "== id 1", ["??", "a", 1]],
    )
    def test_rejects_malformed_expressions(self, expression) -> None:
        with pytest.raises(InvalidArgumentError):
            parse_filter(expression)


def test_select_rules_keeps_document_order() -> None:
    style = {
        "format": "geostyler",
        "body": {
            "name": "",
            "rules": [
                {"name": "a", "filter": ["==", "id", "a"], "symbolizers": []},
                {"name": "all", "symbolizers": []},
                {"name": "b", "filter": ["==", "id", "b"], "symbolizers": []},
            ],
        },
    }
    feature = {"properties": {"id": "b"}}

    assert [rule["name"] for rule in select_rules(feature, style)] == ["all", "b"]
    assert [rule["name"] for rule in select_rules(feature, style["body"])] == ["all", "b"]
    assert select_rules(feature, {"body": {"rules": []}}) == []
