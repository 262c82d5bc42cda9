"""OGC Styled Layer Descriptor (SLD 1.0) encoding of structured styles."""

from __future__ import annotations

import logging
import mimetypes
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterator, Mapping, Optional

from ..application.interfaces import IStyleParser
from ..config import GEOSTYLER_FORMAT
from ..core.filters import FilterNode, Logical, Negation, parse_filter
from ..errors import InvalidArgumentError, StyleParseError

_LOGGER = logging.getLogger(__name__)

SLD_NS = "http://www.opengis.net/sld"
OGC_NS = "http://www.opengis.net/ogc"
XLINK_NS = "http://www.w3.org/1999/xlink"
ET.register_namespace("sld", SLD_NS)
ET.register_namespace("ogc", OGC_NS)
ET.register_namespace("xlink", XLINK_NS)

_COMPARISON_TAGS = {
    "==": "PropertyIsEqualTo",
    "!=": "PropertyIsNotEqualTo",
    "<": "PropertyIsLessThan",
    "<=": "PropertyIsLessThanOrEqualTo",
    ">": "PropertyIsGreaterThan",
    ">=": "PropertyIsGreaterThanOrEqualTo",
}
_COMPARISON_OPERATORS = {tag: op for op, tag in _COMPARISON_TAGS.items()}
_LOGICAL_TAGS = {"&&": "And", "||": "Or"}
_LOGICAL_OPERATORS = {tag: op for op, tag in _LOGICAL_TAGS.items()}
_WILDCARD = "*"
_SINGLE_CHAR = "."
_ESCAPE_CHAR = "!"
_LABEL_FIELD = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")
_NUMBER = re.compile(r"-?\d+(\.\d+)?([eE][-+]?\d+)?")
_INTEGER = re.compile(r"-?\d+")


def _sld(tag: str) -> str:
    return f"{{{SLD_NS}}}{tag}"


def _ogc(tag: str) -> str:
    return f"{{{OGC_NS}}}{tag}"


def _local_name(tag: Any) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return " ".join(_text(item) for item in value)
    return str(value)


def _value(text: Optional[str]) -> Any:
    """Return *text* as an ``int`` or ``float`` when it is numeric."""

    if text is None:
        return None
    stripped = text.strip()
    if not _NUMBER.fullmatch(stripped):
        return stripped
    if _INTEGER.fullmatch(stripped):
        return int(stripped)
    return float(stripped)


# ----------------------------------------------------------------------
# Element helpers
# ----------------------------------------------------------------------

def _children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    return (child for child in element if _local_name(child.tag) == name)


def _child(element: Optional[ET.Element], *path: str) -> Optional[ET.Element]:
    current = element
    for name in path:
        if current is None:
            return None
        current = next(_children(current, name), None)
    return current


def _child_text(element: Optional[ET.Element], *path: str) -> Optional[str]:
    found = _child(element, *path)
    if found is None or found.text is None:
        return None
    return found.text.strip()


def _parameters(element: Optional[ET.Element]) -> Dict[str, str]:
    """Return the ``CssParameter``/``SvgParameter`` items of *element*."""

    if element is None:
        return {}
    return {
        child.get("name", ""): (child.text or "").strip()
        for child in element
        if _local_name(child.tag) in ("CssParameter", "SvgParameter")
    }


def _sub(parent: ET.Element, tag: str, text: Any = None) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if text is not None:
        element.text = _text(text)
    return element


def _add_parameters(parent: ET.Element, tag: str, parameters: Mapping[str, Any]) -> Optional[ET.Element]:
    present = {name: value for name, value in parameters.items() if value is not None}
    if not present:
        return None
    element = _sub(parent, _sld(tag))
    for name, value in present.items():
        _sub(element, _sld("CssParameter"), value).set("name", name)
    return element


def _prune(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


# ----------------------------------------------------------------------
# Filters
# ----------------------------------------------------------------------

def _like_pattern(value: Any) -> str:
    """Return the ``PropertyIsLike`` literal matching *value* as a substring."""

    special = (_WILDCARD, _SINGLE_CHAR, _ESCAPE_CHAR)
    escaped = "".join(_ESCAPE_CHAR + char if char in special else char for char in _text(value))
    return f"{_WILDCARD}{escaped}{_WILDCARD}"


def _like_value(pattern: str, wildcard: str, escape: str) -> str:
    """Invert :func:`_like_pattern`: drop the outer wildcards and unescape."""

    if wildcard and pattern.startswith(wildcard):
        pattern = pattern[len(wildcard):]
    chars = []
    index = 0
    while index < len(pattern):
        if escape and pattern.startswith(escape, index) and index + len(escape) < len(pattern):
            index += len(escape)
            chars.append(pattern[index])
        elif wildcard and index + len(wildcard) == len(pattern) and pattern.startswith(wildcard, index):
            break
        else:
            chars.append(pattern[index])
        index += 1
    return "".join(chars)


def _write_filter(parent: ET.Element, node: FilterNode) -> None:
    if isinstance(node, Logical):
        element = _sub(parent, _ogc(_LOGICAL_TAGS[node.operator]))
        for child in node.children:
            _write_filter(element, child)
    elif isinstance(node, Negation):
        _write_filter(_sub(parent, _ogc("Not")), node.child)
    elif node.operator == "*=":
        element = _sub(parent, _ogc("PropertyIsLike"))
        element.set("wildCard", _WILDCARD)
        element.set("singleChar", _SINGLE_CHAR)
        element.set("escapeChar", _ESCAPE_CHAR)
        _sub(element, _ogc("PropertyName"), node.field)
        _sub(element, _ogc("Literal"), _like_pattern(node.value))
    else:
        element = _sub(parent, _ogc(_COMPARISON_TAGS[node.operator]))
        _sub(element, _ogc("PropertyName"), node.field)
        _sub(element, _ogc("Literal"), node.value)


def _read_filter(element: ET.Element) -> list:
    name = _local_name(element.tag)
    if name in _LOGICAL_OPERATORS:
        return [_LOGICAL_OPERATORS[name], *(_read_filter(child) for child in element)]
    if name == "Not":
        children = list(element)
        if len(children) != 1:
            raise StyleParseError("ogc:Not expects exactly one operand")
        return ["!", _read_filter(children[0])]

    field = _child_text(element, "PropertyName")
    literal = _child(element, "Literal")
    if field is None or literal is None:
        raise StyleParseError(f"ogc:{name} without PropertyName/Literal")
    if name == "PropertyIsLike":
        pattern = (literal.text or "").strip()
        wildcard = element.get("wildCard", _WILDCARD)
        escape = element.get("escapeChar", _ESCAPE_CHAR)
        return ["*=", field, _like_value(pattern, wildcard, escape)]
    if name in _COMPARISON_OPERATORS:
        return [_COMPARISON_OPERATORS[name], field, _value(literal.text or "")]
    raise StyleParseError(f"Unsupported filter element ogc:{name}")


# ----------------------------------------------------------------------
# Symbolizers
# ----------------------------------------------------------------------

def _write_graphic(parent: ET.Element, symbolizer: Mapping[str, Any]) -> None:
    graphic = _sub(_sub(parent, _sld("PointSymbolizer")), _sld("Graphic"))
    if symbolizer["kind"] == "Icon":
        external = _sub(graphic, _sld("ExternalGraphic"))
        image = symbolizer.get("image") or ""
        resource = _sub(external, _sld("OnlineResource"))
        resource.set(f"{{{XLINK_NS}}}type", "simple")
        resource.set(f"{{{XLINK_NS}}}href", image)
        mime = image[5:].split(";", 1)[0] if image.startswith("data:") else mimetypes.guess_type(image)[0]
        _sub(external, _sld("Format"), mime or "image/png")
        size = symbolizer.get("size")
    else:
        mark = _sub(graphic, _sld("Mark"))
        _sub(mark, _sld("WellKnownName"), symbolizer.get("wellKnownName") or "Circle")
        _add_parameters(mark, "Fill", {
            "fill": symbolizer.get("color"),
            "fill-opacity": symbolizer.get("fillOpacity"),
        })
        _add_parameters(mark, "Stroke", {
            "stroke": symbolizer.get("strokeColor"),
            "stroke-opacity": symbolizer.get("strokeOpacity"),
            "stroke-width": symbolizer.get("strokeWidth"),
        })
        radius = symbolizer.get("radius")
        size = radius * 2 if isinstance(radius, (int, float)) else None
    if symbolizer.get("opacity") is not None:
        _sub(graphic, _sld("Opacity"), symbolizer["opacity"])
    if size is not None:
        _sub(graphic, _sld("Size"), size)
    if symbolizer.get("rotate") is not None:
        _sub(graphic, _sld("Rotation"), symbolizer["rotate"])


def _write_symbolizer(parent: ET.Element, symbolizer: Mapping[str, Any]) -> None:
    kind = symbolizer.get("kind")
    if kind in ("Mark", "Icon"):
        _write_graphic(parent, symbolizer)
    elif kind == "Line":
        element = _sub(parent, _sld("LineSymbolizer"))
        _add_parameters(element, "Stroke", {
            "stroke": symbolizer.get("color"),
            "stroke-opacity": symbolizer.get("opacity"),
            "stroke-width": symbolizer.get("width"),
            "stroke-dasharray": symbolizer.get("dasharray"),
            "stroke-linecap": symbolizer.get("cap"),
            "stroke-linejoin": symbolizer.get("join"),
        })
    elif kind == "Fill":
        element = _sub(parent, _sld("PolygonSymbolizer"))
        fill_opacity = symbolizer.get("fillOpacity")
        _add_parameters(element, "Fill", {
            "fill": symbolizer.get("color"),
            "fill-opacity": fill_opacity if fill_opacity is not None else symbolizer.get("opacity"),
        })
        _add_parameters(element, "Stroke", {
            "stroke": symbolizer.get("outlineColor"),
            "stroke-opacity": symbolizer.get("outlineOpacity"),
            "stroke-width": symbolizer.get("outlineWidth"),
        })
    elif kind == "Text":
        element = _sub(parent, _sld("TextSymbolizer"))
        label = symbolizer.get("label")
        if label is not None:
            label_element = _sub(element, _sld("Label"))
            match = _LABEL_FIELD.fullmatch(str(label))
            if match:
                _sub(label_element, _ogc("PropertyName"), match.group(1))
            else:
                label_element.text = _text(label)
        font = symbolizer.get("font")
        _add_parameters(element, "Font", {
            "font-family": font[0] if font else None,
            "font-size": symbolizer.get("size"),
            "font-style": symbolizer.get("fontStyle"),
            "font-weight": symbolizer.get("fontWeight"),
        })
        if symbolizer.get("haloColor") is not None or symbolizer.get("haloWidth") is not None:
            halo = _sub(element, _sld("Halo"))
            if symbolizer.get("haloWidth") is not None:
                _sub(halo, _sld("Radius"), symbolizer["haloWidth"])
            _add_parameters(halo, "Fill", {"fill": symbolizer.get("haloColor")})
        _add_parameters(element, "Fill", {
            "fill": symbolizer.get("color"),
            "fill-opacity": symbolizer.get("opacity"),
        })
    else:
        _LOGGER.debug("No SLD counterpart for symbolizer kind %r", kind)


def _read_point(element: ET.Element) -> Optional[Dict[str, Any]]:
    graphic = _child(element, "Graphic")
    if graphic is None:
        return None
    opacity = _value(_child_text(graphic, "Opacity"))
    size = _value(_child_text(graphic, "Size"))
    rotate = _value(_child_text(graphic, "Rotation"))

    external = _child(graphic, "ExternalGraphic")
    if external is not None:
        resource = _child(external, "OnlineResource")
        image = resource.get(f"{{{XLINK_NS}}}href") if resource is not None else None
        return _prune({"kind": "Icon", "image": image, "opacity": opacity, "size": size, "rotate": rotate})

    mark = _child(graphic, "Mark")
    fill = _parameters(_child(mark, "Fill"))
    stroke = _parameters(_child(mark, "Stroke"))
    return _prune({
        "kind": "Mark",
        "wellKnownName": _child_text(mark, "WellKnownName") or "Circle",
        "color": fill.get("fill"),
        "fillOpacity": _value(fill.get("fill-opacity")),
        "opacity": opacity,
        "strokeColor": stroke.get("stroke"),
        "strokeOpacity": _value(stroke.get("stroke-opacity")),
        "strokeWidth": _value(stroke.get("stroke-width")),
        "radius": size / 2 if isinstance(size, (int, float)) else None,
        "rotate": rotate,
    })


def _read_text(element: ET.Element) -> Dict[str, Any]:
    label_element = _child(element, "Label")
    label = None
    if label_element is not None:
        field = _child_text(label_element, "PropertyName")
        label = f"{{{{{field}}}}}" if field else (label_element.text or "").strip()
    font = _parameters(_child(element, "Font"))
    fill = _parameters(_child(element, "Fill"))
    halo = _child(element, "Halo")
    return _prune({
        "kind": "Text",
        "label": label,
        "font": [font["font-family"]] if font.get("font-family") else None,
        "size": _value(font.get("font-size")),
        "fontStyle": font.get("font-style"),
        "fontWeight": font.get("font-weight"),
        "color": fill.get("fill"),
        "opacity": _value(fill.get("fill-opacity")),
        "haloColor": _parameters(_child(halo, "Fill")).get("fill"),
        "haloWidth": _value(_child_text(halo, "Radius")),
    })


def _read_symbolizer(element: ET.Element) -> Optional[Dict[str, Any]]:
    name = _local_name(element.tag)
    if name == "PointSymbolizer":
        return _read_point(element)
    if name == "LineSymbolizer":
        stroke = _parameters(_child(element, "Stroke"))
        dasharray = stroke.get("stroke-dasharray")
        return _prune({
            "kind": "Line",
            "color": stroke.get("stroke"),
            "opacity": _value(stroke.get("stroke-opacity")),
            "width": _value(stroke.get("stroke-width")),
            "dasharray": [_value(part) for part in dasharray.split()] if dasharray else None,
            "cap": stroke.get("stroke-linecap"),
            "join": stroke.get("stroke-linejoin"),
        })
    if name == "PolygonSymbolizer":
        fill = _parameters(_child(element, "Fill"))
        stroke = _parameters(_child(element, "Stroke"))
        # ``fill-opacity`` carries both the symbolizer and the fill opacity.
        fill_opacity = _value(fill.get("fill-opacity"))
        return _prune({
            "kind": "Fill",
            "color": fill.get("fill"),
            "opacity": fill_opacity,
            "fillOpacity": fill_opacity,
            "outlineColor": stroke.get("stroke"),
            "outlineOpacity": _value(stroke.get("stroke-opacity")),
            "outlineWidth": _value(stroke.get("stroke-width")),
        })
    if name == "TextSymbolizer":
        return _read_text(element)
    return None


class SldStyleParser(IStyleParser):
    """Read and write SLD 1.0 documents."""

    title = "OGC Styled Layer Descriptor"

    async def read_style(self, encoded: Any) -> Dict[str, Any]:
        if not isinstance(encoded, (str, bytes)) or not encoded:
            raise StyleParseError("SLD input must be a non-empty string")
        try:
            root = ET.fromstring(encoded)
        except ET.ParseError as exc:
            raise StyleParseError(f"SLD is not valid XML: {exc}") from exc
        if _local_name(root.tag) != "StyledLayerDescriptor":
            raise StyleParseError(f"Expected StyledLayerDescriptor, found {_local_name(root.tag)}")

        user_style = next((item for item in root.iter() if _local_name(item.tag) == "UserStyle"), None)
        name = _child_text(user_style, "Name") or _child_text(_child(root, "NamedLayer"), "Name") or ""

        rules = []
        for rule_element in (item for item in root.iter() if _local_name(item.tag) == "Rule"):
            rule: Dict[str, Any] = {"name": _child_text(rule_element, "Name") or ""}
            filter_element = _child(rule_element, "Filter")
            if filter_element is not None:
                operands = list(filter_element)
                if len(operands) != 1:
                    raise StyleParseError("ogc:Filter expects exactly one operand")
                rule["filter"] = _read_filter(operands[0])
            symbolizers = []
            for child in rule_element:
                symbolizer = _read_symbolizer(child)
                if symbolizer is not None:
                    symbolizers.append(symbolizer)
            rule["symbolizers"] = symbolizers
            rules.append(rule)

        return {"format": GEOSTYLER_FORMAT, "body": {"name": name, "rules": rules}}

    async def write_style(self, style: Dict[str, Any]) -> str:
        body = style.get("body", style)
        name = body.get("name") or ""

        root = ET.Element(_sld("StyledLayerDescriptor"), {"version": "1.0.0"})
        layer = _sub(root, _sld("NamedLayer"))
        _sub(layer, _sld("Name"), name)
        user_style = _sub(layer, _sld("UserStyle"))
        _sub(user_style, _sld("Name"), name)
        _sub(user_style, _sld("Title"), name)
        feature_type_style = _sub(user_style, _sld("FeatureTypeStyle"))

        for rule in body.get("rules") or []:
            rule_element = _sub(feature_type_style, _sld("Rule"))
            _sub(rule_element, _sld("Name"), rule.get("name") or "")
            if rule.get("filter"):
                try:
                    node = parse_filter(rule["filter"])
                except InvalidArgumentError as exc:
                    raise StyleParseError(f"Cannot encode filter of rule '{rule.get('name')}': {exc}") from exc
                _write_filter(_sub(rule_element, _ogc("Filter")), node)
            for symbolizer in rule.get("symbolizers") or []:
                _write_symbolizer(rule_element, symbolizer)

        return ET.tostring(root, encoding="unicode")


__all__ = ["SldStyleParser"]
