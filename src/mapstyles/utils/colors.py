"""Colour helpers shared by the symbol and icon renderers."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from PySide6.QtGui import QColor

from ..config import DEFAULT_COLOR_OPACITY

_RGBA_MATCHER = re.compile(r"rgba?\(([^)]+)\)")


def add_opacity_to_color(color: Mapping[str, Any], opacity: Optional[float] = DEFAULT_COLOR_OPACITY) -> dict[str, Any]:
    """Return a copy of the ``{r, g, b}`` mapping *color* with an ``a`` channel.

    ``None`` stands for "not given" and yields the default alpha; any other
    value, including ``0``, is used as-is.
    """

    alpha = DEFAULT_COLOR_OPACITY if opacity is None else opacity
    return {**color, "a": alpha}


def to_qcolor(value: Any, opacity: Any = None) -> Optional[QColor]:
    """Convert a CSS-like colour string into a :class:`QColor`.

    Hex notations and colour names are delegated to Qt, ``rgb()``/``rgba()``
    functions are parsed here.  *opacity*, when numeric, overrides the alpha
    channel.  Unparsable values return ``None``.
    """

    if isinstance(value, QColor):
        color = QColor(value)
    elif isinstance(value, str):
        match = _RGBA_MATCHER.fullmatch(value.strip())
        if match:
            try:
                components = [float(part.strip()) for part in match.group(1).split(",")]
            except ValueError:
                return None
            if len(components) not in (3, 4):
                return None
            color = QColor(*(int(component) for component in components[:3]))
            if len(components) == 4:
                color.setAlphaF(_clamp01(components[3]))
        else:
            color = QColor(value.strip())
    else:
        return None

    if not color.isValid():
        return None
    if isinstance(opacity, (int, float)) and not isinstance(opacity, bool):
        color.setAlphaF(_clamp01(opacity))
    return color


def _clamp01(value: float) -> float:
    """Clamp ``value`` to the inclusive ``[0.0, 1.0]`` range."""

    return max(0.0, min(1.0, float(value)))


__all__ = ["add_opacity_to_color", "to_qcolor"]
