"""Hashing utilities.

Cache keys for recoloured symbols are produced in the browser as well as in
Python, and persisted caches outlive both.  The helpers below therefore follow
a fixed algorithm rather than anything from :mod:`hashlib`: a 31-multiplier
rolling hash over UTF-16 code units, truncated to a signed 32-bit integer at
every step.
"""

from __future__ import annotations

import json
import math
from typing import Any

from ..errors import InvalidArgumentError

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def hash_code(value: str) -> int:
    """Return the signed 32-bit rolling hash of *value*.

    ``hash_code("str") == 114225``.  Characters outside the Basic Multilingual
    Plane contribute their two surrogate code units, which keeps the result
    identical to hashes computed by the web client.
    """

    accumulator = 0
    data = value.encode("utf-16-le")
    for index in range(0, len(data), 2):
        unit = data[index] | (data[index + 1] << 8)
        accumulator = (accumulator * 31 + unit) & _INT32_MASK
    if accumulator & _INT32_SIGN:
        return accumulator - (_INT32_MASK + 1)
    return accumulator


def _canonical(value: Any) -> Any:
    """Normalise *value* to the JSON the web client would produce."""

    if isinstance(value, dict):
        return {str(key): _canonical(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        # ``2.0`` and ``2`` describe the same style attribute.
        if value.is_integer():
            return int(value)
    return value


def stringify(value: Any) -> str:
    """Return the compact JSON form of *value*.

    Keys keep their insertion order, matching the web client's serialisation.
    """

    return json.dumps(
        _canonical(value),
        separators=(",", ":"),
        ensure_ascii=False,
    )


def hash_and_stringify(style: Any) -> int:
    """Return :func:`hash_code` of the canonical serialisation of *style*."""

    if style is None:
        raise InvalidArgumentError("hash_and_stringify: specify mandatory params: style")
    return hash_code(stringify(style))


__all__ = ["hash_and_stringify", "hash_code", "stringify"]
