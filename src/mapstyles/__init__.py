"""Translate flat map-layer styles into rule based geostyler styles.

The package re-exports the operations most callers need so that
``from mapstyles import layer_to_geostyler_style`` keeps working regardless of
how the internals are organised.
"""

from .core.classifier import StyleKind, classify, get_styler_title
from .core.filters import geostyler_style_filter, select_rules
from .core.translator import apply_default_style_to_layer, layer_to_geostyler_style
from .infrastructure.services.symbol_cache import SymbolCache
from .infrastructure.services.svg_colorizer import SvgColorizer
from .parsers.registry import FormatParserRegistry
from .utils.hashutils import hash_and_stringify, hash_code

__all__ = [
    "FormatParserRegistry",
    "StyleKind",
    "SvgColorizer",
    "SymbolCache",
    "apply_default_style_to_layer",
    "classify",
    "geostyler_style_filter",
    "get_styler_title",
    "hash_and_stringify",
    "hash_code",
    "layer_to_geostyler_style",
    "select_rules",
]
