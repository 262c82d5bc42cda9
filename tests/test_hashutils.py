"""Tests for :mod:`mapstyles.utils.hashutils`."""

from __future__ import annotations

import pytest

from mapstyles.errors import InvalidArgumentError
from mapstyles.utils.hashutils import hash_and_stringify, hash_code, stringify


def test_hash_code_matches_web_client() -> None:
    assert hash_code("str") == 114225
    assert hash_code("") == 0


def test_hash_code_wraps_to_signed_32_bits() -> None:
    value = hash_code("a much longer string that overflows the accumulator")
    assert -(2**31) <= value < 2**31


def test_hash_code_uses_utf16_code_units() -> None:
    # U+1F600 is encoded as the surrogate pair D83D DE00.
    assert hash_code("\U0001F600") == 0xD83D * 31 + 0xDE00
    assert hash_code("é") == 0xE9


def test_stringify_keeps_insertion_order() -> None:
    first = {"symbolUrl": "/path/symbol.svg", "color": "#005544", "fillColor": "#218f8f"}
    second = {"fillColor": "#218f8f", "color": "#005544", "symbolUrl": "/path/symbol.svg"}

    assert stringify(first) == '{"symbolUrl":"/path/symbol.svg","color":"#005544","fillColor":"#218f8f"}'
    assert stringify(first) != stringify(second)


def test_stringify_renders_integral_floats_as_integers() -> None:
    assert stringify({"weight": 2.0, "opacity": 0.5}) == '{"weight":2,"opacity":0.5}'
    assert stringify({"label": "Größe"}) == '{"label":"Größe"}'


def test_hash_and_stringify_matches_web_client_key() -> None:
    style = {"symbolUrl": "/path/symbol.svg", "color": "#005544", "fillColor": "#218f8f"}

    assert hash_and_stringify(style) == -1572904514
    assert hash_and_stringify(style) == hash_code(stringify(style))
    assert hash_and_stringify(style) != hash_and_stringify({**style, "color": "#005545"})


def test_hash_and_stringify_requires_style() -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        hash_and_stringify(None)
    assert str(excinfo.value) == "hash_and_stringify: specify mandatory params: style"
