"""Lazily resolved registry of style format parsers.

Parsers are registered either as ready instances or as ``"module:attribute"``
entry points.  Entry points are imported the first time their name is
resolved and the resulting parser is kept for later calls, so merely creating
a registry never imports any plugin module.
"""

from __future__ import annotations

import importlib
import logging
from typing import Dict, Optional, Union

from ..application.interfaces import IStyleParser
from ..config import BUILTIN_PARSERS
from ..errors import InvalidArgumentError

_LOGGER = logging.getLogger(__name__)

ParserSource = Union[IStyleParser, str]


def load_entry_point(entry_point: str) -> IStyleParser:
    """Import ``"package.module:Attribute"`` and return a parser instance.

    Classes are instantiated without arguments; any other attribute must
    already be a parser.
    """

    module_path, _, attribute = entry_point.partition(":")
    if not module_path or not attribute:
        raise InvalidArgumentError(f"Entry point must look like 'module:attribute', got {entry_point!r}")
    module = importlib.import_module(module_path)
    target = getattr(module, attribute)
    parser = target() if isinstance(target, type) else target
    if not isinstance(parser, IStyleParser):
        raise InvalidArgumentError(f"{entry_point} does not provide a style parser")
    return parser


class FormatParserRegistry:
    """Map format names (``"sld"``, ``"css"``, ...) to style parsers.

    Names are case-sensitive.  Unknown names resolve to ``None``.
    """

    def __init__(self, builtins: bool = True) -> None:
        self._sources: Dict[str, ParserSource] = {}
        self._resolved: Dict[str, IStyleParser] = {}
        if builtins:
            for name, entry_point in BUILTIN_PARSERS.items():
                self.register(name, entry_point)

    def register(self, name: str, parser: Optional[ParserSource]) -> None:
        """Register *parser* (an instance or an entry point string) under *name*."""

        if not name or parser is None:
            raise InvalidArgumentError("register: specify all the params: name, parser")
        self._sources[name] = parser
        self._resolved.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    async def resolve(self, name: Optional[str]) -> Optional[IStyleParser]:
        """Return the parser registered under *name*, importing it if needed."""

        if name is None:
            return None
        cached = self._resolved.get(name)
        if cached is not None:
            return cached

        source = self._sources.get(name)
        if source is None:
            _LOGGER.debug("No style parser registered for '%s'", name)
            return None
        if isinstance(source, str):
            parser = load_entry_point(source)
            _LOGGER.debug("Loaded style parser '%s' from %s", name, source)
        else:
            parser = source
        self._resolved[name] = parser
        return parser


__all__ = ["FormatParserRegistry", "load_entry_point"]
