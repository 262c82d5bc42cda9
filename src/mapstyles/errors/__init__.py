"""Custom exception hierarchy for mapstyles."""

from __future__ import annotations


class MapStylesError(Exception):
    """Base class for all custom errors raised by mapstyles."""


class InvalidArgumentError(MapStylesError, ValueError):
    """Raised when a mandatory parameter is missing."""


# --- Symbol pipeline errors ---

class SymbolFetchError(MapStylesError):
    """Raised when the raw bytes of a symbol image cannot be retrieved."""


class SymbolParseError(MapStylesError):
    """Raised when fetched symbol bytes are not a usable image."""


# --- Format plugin errors ---

class StyleParseError(MapStylesError):
    """Raised when an encoded style cannot be decoded by its format plugin."""


__all__ = [
    "InvalidArgumentError",
    "MapStylesError",
    "StyleParseError",
    "SymbolFetchError",
    "SymbolParseError",
]
