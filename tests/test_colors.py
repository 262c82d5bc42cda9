"""Tests for :mod:`mapstyles.utils.colors`."""

from __future__ import annotations

import pytest

pytest.importorskip("PySide6.QtGui", reason="Qt GUI is required for colour parsing", exc_type=ImportError)

from mapstyles.utils.colors import add_opacity_to_color, to_qcolor


def test_add_opacity_to_color() -> None:
    color = {"r": 255, "g": 255, "b": 255}

    assert add_opacity_to_color(color, 0)["a"] == 0
    assert add_opacity_to_color(color)["a"] == 0.2
    assert add_opacity_to_color(color, None)["a"] == 0.2
    assert "a" not in color


class TestToQColor:
    def test_hex_and_names(self) -> None:
        color = to_qcolor("#ff0000")
        assert (color.red(), color.green(), color.blue(), color.alpha()) == (255, 0, 0, 255)
        assert to_qcolor("blue").blue() == 255

    def test_rgba_function(self) -> None:
        color = to_qcolor("rgba(0, 128, 255, 0.5)")
        assert (color.red(), color.green(), color.blue()) == (0, 128, 255)
        assert color.alphaF() == pytest.approx(0.5, abs=0.01)

    def test_opacity_overrides_alpha(self) -> None:
        assert to_qcolor("#ff0000", 0).alpha() == 0
        assert to_qcolor("rgba(0, 0, 0, 1)", 0.25).alphaF() == pytest.approx(0.25, abs=0.01)

    @pytest.mark.parametrize("value", [None, 12, "not-a-colour", "rgb(1, 2)", "rgb(a, b, c)"])
    def test_invalid_values(self, value) -> None:
        assert to_qcolor(value) is None
