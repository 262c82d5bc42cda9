"""Recolour SVG symbols according to flat style attributes.

Symbol styles reference a neutral SVG through ``symbolUrl``.  Before the map
can draw them, the SVG is fetched, painted with the style's stroke and fill
attributes and inlined as a ``data:`` URI.  Results are stored in a
:class:`~mapstyles.infrastructure.services.symbol_cache.SymbolCache` keyed by
the content hash of the style, so every distinct style is fetched and
recoloured once.
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Any, Iterable, Mapping, Optional

from ...application.interfaces import IImageFetcher
from ...config import (
    DEFAULT_SYMBOL_COLOR,
    DEFAULT_SYMBOL_FILL_OPACITY,
    DEFAULT_SYMBOL_STROKE_OPACITY,
    DEFAULT_SYMBOL_STROKE_WIDTH,
    SVG_MIME_TYPE,
)
from ...core.classifier import is_symbol_style
from ...errors import InvalidArgumentError, MapStylesError, SymbolParseError
from ...utils.hashutils import hash_and_stringify
from .image_fetcher import encode_data_uri
from .symbol_cache import SymbolCache, SymbolCacheEntry

_LOGGER = logging.getLogger(__name__)

_SVG_NS = "http://www.w3.org/2000/svg"
_XLINK_NS = "http://www.w3.org/1999/xlink"
ET.register_namespace("", _SVG_NS)
ET.register_namespace("xlink", _XLINK_NS)

# Elements whose own paint attributes would otherwise hide the root colours.
_PAINTED_ELEMENTS = frozenset({"path", "circle", "ellipse", "rect", "polygon", "polyline", "line", "g"})


def _local_name(tag: Any) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _attribute(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return " ".join(_attribute(item) for item in value)
    return str(value)


def _pick(style: Mapping[str, Any], key: str, default: Any) -> Any:
    value = style.get(key)
    return default if value is None else value


def recolor_svg(raw: bytes | str, style: Mapping[str, Any]) -> str:
    """Return the SVG document *raw* painted with the attributes of *style*.

    The root ``<svg>`` receives ``fill``/``fill-opacity`` from ``fillColor``/
    ``fillOpacity`` and ``stroke``/``stroke-opacity``/``stroke-width`` from
    ``color``/``opacity``/``weight``.  Shapes that declare their own, visible
    ``fill`` or ``stroke`` get the same colours.
    """

    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise SymbolParseError(f"Symbol is not valid XML: {exc}") from exc

    svg = root if _local_name(root.tag) == "svg" else None
    if svg is None:
        svg = next((element for element in root.iter() if _local_name(element.tag) == "svg"), None)
    if svg is None:
        raise SymbolParseError("Symbol does not contain an <svg> element")

    fill = _attribute(_pick(style, "fillColor", DEFAULT_SYMBOL_COLOR))
    stroke = _attribute(_pick(style, "color", DEFAULT_SYMBOL_COLOR))

    svg.set("fill", fill)
    svg.set("fill-opacity", _attribute(_pick(style, "fillOpacity", DEFAULT_SYMBOL_FILL_OPACITY)))
    svg.set("stroke", stroke)
    svg.set("stroke-opacity", _attribute(_pick(style, "opacity", DEFAULT_SYMBOL_STROKE_OPACITY)))
    svg.set("stroke-width", _attribute(style.get("weight") or DEFAULT_SYMBOL_STROKE_WIDTH))
    if style.get("size") is not None:
        svg.set("width", _attribute(style["size"]))
        svg.set("height", _attribute(style["size"]))
    if style.get("dashArray"):
        svg.set("stroke-dasharray", _attribute(style["dashArray"]))

    for element in svg.iter():
        if element is svg or _local_name(element.tag) not in _PAINTED_ELEMENTS:
            continue
        if element.get("fill") not in (None, "none"):
            element.set("fill", fill)
        if element.get("stroke") not in (None, "none"):
            element.set("stroke", stroke)

    return ET.tostring(svg, encoding="unicode")


class SvgColorizer:
    """Fetch, recolour and cache SVG symbols for flat symbol styles."""

    def __init__(self, cache: SymbolCache, fetcher: IImageFetcher) -> None:
        self._cache = cache
        self._fetcher = fetcher

    @property
    def cache(self) -> SymbolCache:
        return self._cache

    async def recolor(self, style: Optional[Mapping[str, Any]], url: Optional[str] = None) -> Optional[str]:
        """Return the recoloured symbol of *style* as a ``data:`` URI.

        Non-symbol styles resolve to ``None`` without any I/O.  The source is
        *url* when given, otherwise the style's ``symbolUrl``.  Fetch and parse
        failures propagate to the caller.
        """

        if not is_symbol_style(style):
            return None

        key = hash_and_stringify(style)
        cached = self._cache.get_entry(key)
        if cached is not None and cached.data_uri:
            return cached.data_uri

        source = url or style.get("symbolUrl")
        if not source:
            raise InvalidArgumentError("recolor: specify mandatory params: symbolUrl")

        raw = await self._fetcher.fetch(source)
        svg = recolor_svg(raw, style)
        data_uri = encode_data_uri(svg.encode("utf-8"), SVG_MIME_TYPE)
        self._cache.register(
            key,
            SymbolCacheEntry(style={**style, "symbolUrlCustomized": data_uri}, data_uri=data_uri, svg=svg),
        )
        _LOGGER.debug("Recoloured symbol %s under key %d", source, key)
        return data_uri

    async def recolor_batch(self, styles: Optional[Iterable[Mapping[str, Any]]]) -> list[dict[str, Any]]:
        """Return one derived style per input style, in input order.

        Every symbol style gains a ``symbolUrlCustomized`` item; other styles
        are copied unchanged.  All recolouring runs concurrently.
        """

        if not styles:
            return []
        return list(await asyncio.gather(*(self._derive(style) for style in styles)))

    async def _derive(self, style: Mapping[str, Any]) -> dict[str, Any]:
        derived = dict(style)
        if not is_symbol_style(style):
            return derived
        try:
            data_uri = await self.recolor(style, style.get("symbolUrl") or style.get("symbolUrlCustomized"))
        except MapStylesError as exc:
            _LOGGER.warning("Keeping symbol %s uncoloured: %s", style.get("symbolUrl"), exc)
            return derived
        if data_uri:
            derived["symbolUrlCustomized"] = data_uri
        return derived


__all__ = ["SvgColorizer", "recolor_svg"]
