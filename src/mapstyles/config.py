"""Default configuration values for mapstyles."""

from __future__ import annotations

from typing import Final

# Structured styles identify themselves through this ``format`` value.  Any
# input already carrying it is passed through the translator untouched.
GEOSTYLER_FORMAT: Final[str] = "geostyler"
VISUAL_EDITOR_TYPE: Final[str] = "visual"

# Colours applied to recoloured SVG symbols when the flat style omits them.
DEFAULT_SYMBOL_COLOR: Final[str] = "#FFCC33"
DEFAULT_SYMBOL_FILL_OPACITY: Final[float] = 0.2
DEFAULT_SYMBOL_STROKE_OPACITY: Final[float] = 1
DEFAULT_SYMBOL_STROKE_WIDTH: Final[float] = 1
DEFAULT_ICON_SIZE: Final[int] = 32

# ``add_opacity_to_color`` falls back to this alpha when none is supplied.
DEFAULT_COLOR_OPACITY: Final[float] = 0.2

# ---------------------------------------------------------------------------
# Fallback style attached to layers that have none
# ---------------------------------------------------------------------------

DEFAULT_STYLE_NAME: Final[str] = "Default Style"
DEFAULT_FILL_COLOR: Final[str] = "#f2f2f2"
DEFAULT_FILL_OPACITY: Final[float] = 0.3
DEFAULT_STROKE_COLOR: Final[str] = "#3075e9"
DEFAULT_STROKE_OPACITY: Final[float] = 1
DEFAULT_STROKE_WIDTH: Final[float] = 2
DEFAULT_POINT_RADIUS: Final[float] = 10
DEFAULT_POINT_OPACITY: Final[float] = 0.5

SVG_MIME_TYPE: Final[str] = "image/svg+xml"
PNG_MIME_TYPE: Final[str] = "image/png"

# Timeout applied by the bundled HTTP fetcher.  Callers needing a different
# policy inject their own fetcher instead.
FETCH_TIMEOUT_SEC: Final[float] = 15.0

# Number of vertices generated for every great-circle segment by ``lineToArc``.
ARC_POINT_COUNT: Final[int] = 100

# Encodings shipped with the package.  They are imported lazily the first time
# a caller resolves them, so unused parsers never cost an import.
BUILTIN_PARSERS: Final[dict[str, str]] = {
    "sld": "mapstyles.parsers.sld:SldStyleParser",
    "css": "mapstyles.parsers.css:CssStyleParser",
}
