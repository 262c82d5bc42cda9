"""Value types of the structured (geostyler) style model.

The structured documents exchanged with renderers and format plugins are
plain JSON-like dicts.  The dataclasses below are used to *build* them: each
one knows its ``kind`` tag and serialises to a dict with camelCase keys,
leaving out attributes that are not set.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Mapping, Optional, Sequence, Union

from ..config import GEOSTYLER_FORMAT

_CAMEL_BOUNDARY = re.compile(r"_([a-z])")
_SNAKE_BOUNDARY = re.compile(r"([A-Z])")


def _camel(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda match: match.group(1).upper(), name)


def _snake(name: str) -> str:
    return _SNAKE_BOUNDARY.sub(lambda match: "_" + match.group(1).lower(), name)


class _Symbolizer:
    kind: ClassVar[str]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind}
        for item in fields(self):  # type: ignore[arg-type]
            value = getattr(self, item.name)
            if value is None:
                continue
            payload[_camel(item.name)] = list(value) if isinstance(value, tuple) else value
        return payload


@dataclass(frozen=True)
class MarkSymbolizer(_Symbolizer):
    kind: ClassVar[str] = "Mark"

    well_known_name: str = "Circle"
    color: Optional[str] = None
    fill_opacity: Optional[float] = None
    opacity: Optional[float] = None
    stroke_color: Optional[str] = None
    stroke_opacity: Optional[float] = None
    stroke_width: Optional[float] = None
    radius: Optional[float] = None
    rotate: Optional[float] = None
    ms_bring_to_front: Optional[bool] = None


@dataclass(frozen=True)
class IconSymbolizer(_Symbolizer):
    kind: ClassVar[str] = "Icon"

    image: Optional[str] = None
    opacity: Optional[float] = None
    size: Optional[float] = None
    rotate: Optional[float] = None


@dataclass(frozen=True)
class LineSymbolizer(_Symbolizer):
    kind: ClassVar[str] = "Line"

    color: Optional[str] = None
    opacity: Optional[float] = None
    width: Optional[float] = None
    dasharray: Optional[tuple[float, ...]] = None
    cap: Optional[str] = None
    join: Optional[str] = None


@dataclass(frozen=True)
class FillSymbolizer(_Symbolizer):
    kind: ClassVar[str] = "Fill"

    color: Optional[str] = None
    opacity: Optional[float] = None
    fill_opacity: Optional[float] = None
    outline_color: Optional[str] = None
    outline_opacity: Optional[float] = None
    outline_width: Optional[float] = None


@dataclass(frozen=True)
class TextSymbolizer(_Symbolizer):
    kind: ClassVar[str] = "Text"

    label: Optional[str] = None
    font: Optional[tuple[str, ...]] = None
    size: Optional[float] = None
    font_style: Optional[str] = None
    font_weight: Optional[str] = None
    color: Optional[str] = None
    opacity: Optional[float] = None
    halo_color: Optional[str] = None
    halo_width: Optional[float] = None
    rotate: Optional[float] = None


Symbolizer = Union[MarkSymbolizer, IconSymbolizer, LineSymbolizer, FillSymbolizer, TextSymbolizer]

SYMBOLIZER_TYPES: dict[str, type] = {
    cls.kind: cls
    for cls in (MarkSymbolizer, IconSymbolizer, LineSymbolizer, FillSymbolizer, TextSymbolizer)
}


def symbolizer_from_dict(payload: Mapping[str, Any]) -> Optional[Symbolizer]:
    """Build the dataclass matching ``payload["kind"]``; unknown kinds give ``None``.

    Keys that the dataclass does not declare are ignored.
    """

    cls = SYMBOLIZER_TYPES.get(payload.get("kind"))  # type: ignore[arg-type]
    if cls is None:
        return None
    known = {item.name for item in fields(cls)}
    kwargs = {}
    for key, value in payload.items():
        name = _snake(key)
        if name not in known:
            continue
        kwargs[name] = tuple(value) if isinstance(value, list) else value
    return cls(**kwargs)


def as_symbolizer_dict(symbolizer: Union[Symbolizer, Mapping[str, Any]]) -> Mapping[str, Any]:
    """Return the dict form of *symbolizer* whether it is a dataclass or a mapping."""

    if isinstance(symbolizer, _Symbolizer):
        return symbolizer.to_dict()
    return symbolizer


@dataclass(frozen=True)
class Rule:
    """A filter plus the symbolizers drawn for the matching features."""

    name: str = ""
    symbolizers: Sequence[Symbolizer] = field(default_factory=tuple)
    filter: Optional[list] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if self.filter is not None:
            payload["filter"] = self.filter
        payload["symbolizers"] = [symbolizer.to_dict() for symbolizer in self.symbolizers]
        return payload


@dataclass(frozen=True)
class StructuredStyle:
    """The ``{format, body, metadata}`` document consumed by renderers."""

    rules: Sequence[Rule] = field(default_factory=tuple)
    name: str = ""
    editor_type: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "format": GEOSTYLER_FORMAT,
            "body": {
                "name": self.name,
                "rules": [rule.to_dict() for rule in self.rules],
            },
        }
        if self.editor_type is not None:
            payload["metadata"] = {"editorType": self.editor_type}
        return payload


__all__ = [
    "FillSymbolizer",
    "IconSymbolizer",
    "LineSymbolizer",
    "MarkSymbolizer",
    "Rule",
    "StructuredStyle",
    "Symbolizer",
    "TextSymbolizer",
    "as_symbolizer_dict",
    "symbolizer_from_dict",
]
