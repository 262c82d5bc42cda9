"""Evaluate geostyler filter expressions against feature properties.

Rules carry their filters in the compact list notation used by the structured
style documents, e.g. ``["==", "id", "annotation-id"]`` or
``["||", ["*=", "name", "A"], ["<=", "count", 10]]``.  The list form is first
parsed into a small closed tree (:class:`Comparison`, :class:`Logical`,
:class:`Negation`) which is then interpreted; nothing is ever executed
dynamically.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from ..errors import InvalidArgumentError

_LOGGER = logging.getLogger(__name__)

CONTAINS_OPERATOR = "*="
NEGATION_OPERATOR = "!"
LOGICAL_OPERATORS = frozenset({"||", "&&"})

_ORDERING: Dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    "<": operator.lt,
    ">": operator.gt,
}
COMPARISON_OPERATORS = frozenset({"==", "!=", CONTAINS_OPERATOR, *_ORDERING})


@dataclass(frozen=True)
class Comparison:
    """``[op, field, value]`` node comparing a feature property to a literal."""

    operator: str
    field: str
    value: Any

    def to_list(self) -> list:
        return [self.operator, self.field, self.value]


@dataclass(frozen=True)
class Logical:
    """``[op, expr, expr, ...]`` node combining children with OR/AND."""

    operator: str
    children: tuple["FilterNode", ...]

    def to_list(self) -> list:
        return [self.operator, *(child.to_list() for child in self.children)]


@dataclass(frozen=True)
class Negation:
    """``["!", expr]`` node inverting its child."""

    child: "FilterNode"

    def to_list(self) -> list:
        return [NEGATION_OPERATOR, self.child.to_list()]


FilterNode = Union[Comparison, Logical, Negation]


def parse_filter(expression: Union[Sequence[Any], FilterNode]) -> FilterNode:
    """Parse the list notation of a filter into a :data:`FilterNode` tree.

    Raises :class:`InvalidArgumentError` for malformed expressions and unknown
    operators.
    """

    if isinstance(expression, (Comparison, Logical, Negation)):
        return expression
    if not isinstance(expression, (list, tuple)) or not expression:
        raise InvalidArgumentError(f"Malformed filter expression: {expression!r}")

    op = expression[0]
    if op in LOGICAL_OPERATORS:
        return Logical(op, tuple(parse_filter(child) for child in expression[1:]))
    if op == NEGATION_OPERATOR:
        if len(expression) != 2:
            raise InvalidArgumentError(f"Negation expects exactly one operand: {expression!r}")
        return Negation(parse_filter(expression[1]))
    if op in COMPARISON_OPERATORS:
        if len(expression) != 3 or not isinstance(expression[1], str):
            raise InvalidArgumentError(f"Comparison expects [op, field, value]: {expression!r}")
        return Comparison(op, expression[1], expression[2])
    raise InvalidArgumentError(f"Unsupported filter operator {op!r}")


def evaluate(node: FilterNode, properties: Mapping[str, Any]) -> bool:
    """Interpret a parsed filter against a feature's *properties*."""

    if isinstance(node, Logical):
        # Every child is evaluated before reducing the results.
        results = [evaluate(child, properties) for child in node.children]
        if node.operator == "||":
            return any(results)
        return all(results)
    if isinstance(node, Negation):
        return not evaluate(node.child, properties)
    return _compare(node.operator, properties.get(node.field), node.value)


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if op == "==":
        return actual == expected
    if op == "!=":
        return actual != expected
    if op == CONTAINS_OPERATOR:
        if actual is None or expected is None:
            return False
        return str(expected) in str(actual)

    if actual is None or expected is None:
        return False
    try:
        return bool(_ORDERING[op](actual, expected))
    except TypeError:
        _LOGGER.debug("Cannot order %r against %r with '%s'", actual, expected, op)
        return False


def _feature_properties(feature: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if not feature:
        return {}
    properties = feature.get("properties")
    return properties if isinstance(properties, Mapping) else {}


def geostyler_style_filter(
    feature: Optional[Mapping[str, Any]],
    expression: Union[Sequence[Any], FilterNode, None],
) -> bool:
    """Return ``True`` when *feature* satisfies the filter *expression*.

    An empty filter matches every feature.  Expressions that cannot be parsed
    never match, so unexpected filters do not accidentally paint features.
    """

    if not expression:
        return True
    try:
        node = parse_filter(expression)
    except InvalidArgumentError as exc:
        _LOGGER.warning("Ignoring filter %r: %s", expression, exc)
        return False
    return evaluate(node, _feature_properties(feature))


def rule_matches(feature: Optional[Mapping[str, Any]], rule: Mapping[str, Any]) -> bool:
    """Return ``True`` when *rule* applies to *feature*."""

    return geostyler_style_filter(feature, rule.get("filter"))


def select_rules(feature: Optional[Mapping[str, Any]], style: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """Return the rules of *style* that apply to *feature*, in document order.

    *style* may be a full structured style (``{format, body}``) or just its
    body.
    """

    body = style.get("body", style) if isinstance(style, Mapping) else None
    rules = body.get("rules") if isinstance(body, Mapping) else None
    if not rules:
        return []
    return [rule for rule in rules if rule_matches(feature, rule)]


__all__ = [
    "Comparison",
    "FilterNode",
    "Logical",
    "Negation",
    "evaluate",
    "geostyler_style_filter",
    "parse_filter",
    "rule_matches",
    "select_rules",
]
