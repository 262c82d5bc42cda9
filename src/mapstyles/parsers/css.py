"""GeoServer-CSS-like text encoding of structured styles.

Every rule is written as one block::

    /* @title Roads */
    [kind = 'road'][lanes >= 2], [kind LIKE '%highway%'] {
      stroke: #3075e9;
      stroke-width: 2;
    }

Brackets hold ECQL-style predicates.  Juxtaposed brackets are AND-ed, comma
separated selectors are OR-ed and ``*`` selects every feature.  Complex
predicates (nested OR, ``NOT``) are written inside a single bracket with
parentheses.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..application.interfaces import IStyleParser
from ..config import GEOSTYLER_FORMAT
from ..core.filters import FilterNode, Logical, Negation, parse_filter
from ..errors import InvalidArgumentError, StyleParseError

_LOGGER = logging.getLogger(__name__)

_COMMENT = re.compile(r"/\*.*?\*/", re.S)
_TITLE_COMMENT = re.compile(r"/\*\s*@title\s+(?P<title>.*?)\s*\*/", re.S)
_NAME_COMMENT = re.compile(r"/\*\s*@name\s+(?P<name>.*?)\s*\*/", re.S)
_FUNCTION = re.compile(r"(?P<function>symbol|url)\(\s*(?P<argument>.*?)\s*\)", re.I)
_NUMBER = re.compile(r"-?\d+(\.\d+)?([eE][-+]?\d+)?")
_TOKEN = re.compile(
    r"\s*(?:(?P<string>'(?:[^'\\]|\\.)*')|(?P<number>-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)"
    r"|(?P<op><>|!=|<=|>=|=|<|>)|(?P<paren>[()])|(?P<word>[A-Za-z_][\w.:-]*))"
)

_OPERATORS_OUT = {"==": "=", "!=": "<>", "<": "<", "<=": "<=", ">": ">", ">=": ">="}
_OPERATORS_IN = {"=": "==", "<>": "!=", "!=": "!=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


# ----------------------------------------------------------------------
# Values
# ----------------------------------------------------------------------

def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _quoted(text: Any) -> str:
    escaped = str(text).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return re.sub(r"\\(.)", r"\1", text[1:-1])
    return text


def _strip_wildcards(pattern: str) -> str:
    """Remove the single ``%`` that opens and closes a substring pattern."""

    if pattern.startswith("%"):
        pattern = pattern[1:]
    if pattern.endswith("%"):
        pattern = pattern[:-1]
    return pattern


def _value(text: Optional[str]) -> Any:
    if text is None:
        return None
    stripped = text.strip()
    if _NUMBER.fullmatch(stripped):
        number = float(stripped)
        return int(number) if re.fullmatch(r"-?\d+", stripped) else number
    return _unquote(stripped)


# ----------------------------------------------------------------------
# Selectors
# ----------------------------------------------------------------------

def _predicate(node: FilterNode) -> str:
    if isinstance(node, Logical):
        joiner = " OR " if node.operator == "||" else " AND "
        return "(" + joiner.join(_predicate(child) for child in node.children) + ")"
    if isinstance(node, Negation):
        return f"NOT ({_predicate(node.child)})"
    if node.operator == "*=":
        return f"{node.field} LIKE {_literal('%' + str(node.value) + '%')}"
    return f"{node.field} {_OPERATORS_OUT[node.operator]} {_literal(node.value)}"


def _conjunction(node: FilterNode) -> str:
    if isinstance(node, Logical) and node.operator == "&&" and node.children:
        return "".join(f"[{_predicate(child)}]" for child in node.children)
    return f"[{_predicate(node)}]"


def write_selector(expression: Any) -> str:
    """Return the CSS selector of a filter expression (``*`` when there is none)."""

    if not expression:
        return "*"
    node = parse_filter(expression)
    if isinstance(node, Logical) and node.operator == "||" and node.children:
        return ", ".join(_conjunction(child) for child in node.children)
    return _conjunction(node)


class _PredicateParser:
    """Recursive descent parser for the ECQL subset found inside brackets."""

    def __init__(self, text: str) -> None:
        self._tokens = self._tokenize(text)
        self._position = 0

    @staticmethod
    def _tokenize(text: str) -> List[Tuple[str, str]]:
        tokens = []
        position = 0
        text = text.rstrip()
        while position < len(text):
            match = _TOKEN.match(text, position)
            if match is None or match.end() == position:
                raise StyleParseError(f"Unexpected character in selector: {text[position:]!r}")
            kind = match.lastgroup
            tokens.append((kind, match.group(kind)))
            position = match.end()
        return tokens

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self._tokens[self._position] if self._position < len(self._tokens) else None

    def _next(self) -> Tuple[str, str]:
        token = self._peek()
        if token is None:
            raise StyleParseError("Unexpected end of selector")
        self._position += 1
        return token

    def _keyword(self, word: str) -> bool:
        token = self._peek()
        if token is not None and token[0] == "word" and token[1].upper() == word:
            self._position += 1
            return True
        return False

    def parse(self) -> list:
        expression = self._or()
        if self._peek() is not None:
            raise StyleParseError(f"Trailing tokens in selector: {self._tokens[self._position:]}")
        return expression

    def _or(self) -> list:
        operands = [self._and()]
        while self._keyword("OR"):
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else ["||", *operands]

    def _and(self) -> list:
        operands = [self._not()]
        while self._keyword("AND"):
            operands.append(self._not())
        return operands[0] if len(operands) == 1 else ["&&", *operands]

    def _not(self) -> list:
        if self._keyword("NOT"):
            return ["!", self._not()]
        token = self._peek()
        if token == ("paren", "("):
            self._next()
            expression = self._or()
            if self._next() != ("paren", ")"):
                raise StyleParseError("Missing closing parenthesis in selector")
            return expression
        return self._comparison()

    def _comparison(self) -> list:
        kind, field = self._next()
        if kind != "word":
            raise StyleParseError(f"Expected a property name, found {field!r}")
        if self._keyword("LIKE"):
            kind, pattern = self._next()
            if kind != "string":
                raise StyleParseError("LIKE expects a quoted pattern")
            return ["*=", field, _strip_wildcards(_unquote(pattern))]
        kind, op = self._next()
        if kind != "op":
            raise StyleParseError(f"Expected a comparison operator after {field!r}")
        kind, literal = self._next()
        if kind == "string":
            value: Any = _unquote(literal)
        elif kind == "number":
            value = _value(literal)
        elif kind == "word" and literal.lower() in ("true", "false"):
            value = literal.lower() == "true"
        else:
            raise StyleParseError(f"Expected a literal after {field} {op}")
        return [_OPERATORS_IN[op], field, value]


def _split_top_level(text: str, separator: str) -> List[str]:
    """Split *text* on *separator* outside of brackets and quoted strings."""

    parts, current = [], []
    depth, quote, escaped = 0, None, False
    for char in text:
        if escaped:
            escaped = False
        elif quote:
            if char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def _brackets(text: str) -> List[str]:
    contents, start = [], 0
    depth, quote, escaped = 0, None, False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
        elif quote:
            if char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char == "'":
            quote = char
        elif char == "[":
            if depth == 0:
                start = index + 1
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                contents.append(text[start:index])
        elif depth == 0 and not char.isspace():
            raise StyleParseError(f"Unexpected {char!r} outside brackets in selector {text!r}")
    if depth != 0 or quote:
        raise StyleParseError(f"Unbalanced selector {text!r}")
    return contents


def read_selector(selector: str) -> Optional[list]:
    """Return the filter expression of a CSS selector, ``None`` for ``*``."""

    alternatives = []
    for alternative in _split_top_level(selector, ","):
        alternative = alternative.strip()
        if alternative in ("", "*"):
            return None
        operands = [_PredicateParser(content).parse() for content in _brackets(alternative)]
        alternatives.append(operands[0] if len(operands) == 1 else ["&&", *operands])
    if not alternatives:
        return None
    return alternatives[0] if len(alternatives) == 1 else ["||", *alternatives]


# ----------------------------------------------------------------------
# Declarations
# ----------------------------------------------------------------------

def _declarations(symbolizer: Dict[str, Any]) -> List[Tuple[str, Any]]:
    kind = symbolizer.get("kind")
    get = symbolizer.get
    if kind == "Line":
        dasharray = get("dasharray")
        return [
            ("stroke", get("color")),
            ("stroke-opacity", get("opacity")),
            ("stroke-width", get("width")),
            ("stroke-dasharray", " ".join(_format_number(part) for part in dasharray) if dasharray else None),
            ("stroke-linecap", get("cap")),
            ("stroke-linejoin", get("join")),
        ]
    if kind == "Fill":
        fill_opacity = get("fillOpacity")
        return [
            ("fill", get("color")),
            ("fill-opacity", fill_opacity if fill_opacity is not None else get("opacity")),
            ("stroke", get("outlineColor")),
            ("stroke-opacity", get("outlineOpacity")),
            ("stroke-width", get("outlineWidth")),
        ]
    if kind == "Mark":
        radius = get("radius")
        return [
            ("mark", f"symbol('{get('wellKnownName') or 'Circle'}')"),
            ("mark-size", radius * 2 if isinstance(radius, (int, float)) else None),
            ("mark-rotation", get("rotate")),
            ("mark-opacity", get("opacity")),
            ("mark-fill", get("color")),
            ("mark-fill-opacity", get("fillOpacity")),
            ("mark-stroke", get("strokeColor")),
            ("mark-stroke-opacity", get("strokeOpacity")),
            ("mark-stroke-width", get("strokeWidth")),
        ]
    if kind == "Icon":
        return [
            ("mark", f"url('{get('image') or ''}')"),
            ("mark-size", get("size")),
            ("mark-rotation", get("rotate")),
            ("mark-opacity", get("opacity")),
        ]
    if kind == "Text":
        font = get("font")
        label = get("label")
        return [
            ("label", _quoted(label) if label is not None else None),
            ("font-family", font[0] if font else None),
            ("font-size", get("size")),
            ("font-style", get("fontStyle")),
            ("font-weight", get("fontWeight")),
            ("font-fill", get("color")),
            ("font-opacity", get("opacity")),
            ("halo-color", get("haloColor")),
            ("halo-radius", get("haloWidth")),
            ("label-rotation", get("rotate")),
        ]
    _LOGGER.debug("No CSS counterpart for symbolizer kind %r", kind)
    return []


def _prune(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _symbolizers(properties: Dict[str, str]) -> List[Dict[str, Any]]:
    """Rebuild the symbolizers of one block from its declarations."""

    prop = properties.get

    def number(name: str) -> Any:
        return _value(prop(name))

    symbolizers = []

    mark = prop("mark")
    if mark:
        match = _FUNCTION.fullmatch(mark.strip())
        if match is None:
            raise StyleParseError(f"Unsupported mark value {mark!r}")
        argument = _unquote(match.group("argument"))
        size = number("mark-size")
        if match.group("function").lower() == "url":
            symbolizers.append(_prune({
                "kind": "Icon",
                "image": argument,
                "opacity": number("mark-opacity"),
                "size": size,
                "rotate": number("mark-rotation"),
            }))
        else:
            symbolizers.append(_prune({
                "kind": "Mark",
                "wellKnownName": argument,
                "color": prop("mark-fill"),
                "fillOpacity": number("mark-fill-opacity"),
                "opacity": number("mark-opacity"),
                "strokeColor": prop("mark-stroke"),
                "strokeOpacity": number("mark-stroke-opacity"),
                "strokeWidth": number("mark-stroke-width"),
                "radius": size / 2 if isinstance(size, (int, float)) else None,
                "rotate": number("mark-rotation"),
            }))

    if "fill" in properties:
        fill_opacity = number("fill-opacity")
        symbolizers.append(_prune({
            "kind": "Fill",
            "color": prop("fill"),
            "opacity": fill_opacity,
            "fillOpacity": fill_opacity,
            "outlineColor": prop("stroke"),
            "outlineOpacity": number("stroke-opacity"),
            "outlineWidth": number("stroke-width"),
        }))
    elif "stroke" in properties:
        dasharray = prop("stroke-dasharray")
        symbolizers.append(_prune({
            "kind": "Line",
            "color": prop("stroke"),
            "opacity": number("stroke-opacity"),
            "width": number("stroke-width"),
            "dasharray": [_value(part) for part in dasharray.split()] if dasharray else None,
            "cap": prop("stroke-linecap"),
            "join": prop("stroke-linejoin"),
        }))

    if "label" in properties:
        family = prop("font-family")
        symbolizers.append(_prune({
            "kind": "Text",
            "label": _unquote(prop("label").strip()),
            "font": [_unquote(family)] if family else None,
            "size": number("font-size"),
            "fontStyle": prop("font-style"),
            "fontWeight": prop("font-weight"),
            "color": prop("font-fill"),
            "opacity": number("font-opacity"),
            "haloColor": prop("halo-color"),
            "haloWidth": number("halo-radius"),
            "rotate": number("label-rotation"),
        }))
    return symbolizers


def _parse_body(body: str) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for declaration in _split_top_level(body, ";"):
        if not declaration.strip():
            continue
        name, separator, value = declaration.partition(":")
        if not separator:
            raise StyleParseError(f"Malformed declaration {declaration.strip()!r}")
        properties[name.strip().lower()] = value.strip()
    return properties


def _blocks(text: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(prelude, body)`` for every ``prelude { body }`` block of *text*.

    Braces inside quoted strings and comments do not count, so labels such as
    ``"{{name}}"`` survive.
    """

    position, start, length = 0, 0, len(text)
    prelude: Optional[str] = None
    quote, escaped = None, False
    while position < length:
        char = text[position]
        if escaped:
            escaped = False
        elif quote:
            if char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif text.startswith("/*", position):
            end = text.find("*/", position + 2)
            if end < 0:
                raise StyleParseError("Unterminated comment")
            position = end + 2
            continue
        elif char in "'\"":
            quote = char
        elif char == "{":
            if prelude is not None:
                raise StyleParseError("Nested blocks are not supported")
            prelude, start = text[start:position], position + 1
        elif char == "}":
            if prelude is None:
                raise StyleParseError("Unbalanced '}'")
            yield prelude, text[start:position]
            prelude, start = None, position + 1
        position += 1

    if prelude is not None or quote:
        raise StyleParseError("Unterminated block")
    trailing = _COMMENT.sub("", text[start:]).strip()
    if trailing:
        raise StyleParseError(f"Unexpected trailing text: {trailing[:40]!r}")


class CssStyleParser(IStyleParser):
    """Read and write the CSS-like style encoding."""

    title = "GeoServer CSS"

    async def read_style(self, encoded: Any) -> Dict[str, Any]:
        if isinstance(encoded, bytes):
            encoded = encoded.decode("utf-8")
        if not isinstance(encoded, str):
            raise StyleParseError("CSS input must be a string")

        name_match = _NAME_COMMENT.search(encoded)
        name = name_match.group("name") if name_match else ""

        rules = []
        for prelude, body in _blocks(encoded):
            title = _TITLE_COMMENT.search(prelude)
            try:
                expression = read_selector(_COMMENT.sub("", prelude))
            except InvalidArgumentError as exc:
                raise StyleParseError(str(exc)) from exc
            rule: Dict[str, Any] = {"name": title.group("title") if title else ""}
            if expression is not None:
                rule["filter"] = expression
            rule["symbolizers"] = _symbolizers(_parse_body(_COMMENT.sub("", body)))
            rules.append(rule)

        return {"format": GEOSTYLER_FORMAT, "body": {"name": name, "rules": rules}}

    async def write_style(self, style: Dict[str, Any]) -> str:
        body = style.get("body", style)
        blocks = []
        if body.get("name"):
            blocks.append(f"/* @name {body['name']} */")
        for rule in body.get("rules") or []:
            try:
                selector = write_selector(rule.get("filter"))
            except InvalidArgumentError as exc:
                raise StyleParseError(f"Cannot encode filter of rule '{rule.get('name')}': {exc}") from exc
            lines = []
            if rule.get("name"):
                lines.append(f"/* @title {rule['name']} */")
            lines.append(f"{selector} {{")
            for symbolizer in rule.get("symbolizers") or []:
                for prop, value in _declarations(symbolizer):
                    if value is not None:
                        lines.append(f"  {prop}: {_format_number(value)};")
            lines.append("}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + "\n"


__all__ = ["CssStyleParser", "read_selector", "write_selector"]
