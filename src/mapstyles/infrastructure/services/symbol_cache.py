"""Content-addressed cache of recoloured symbol styles.

Entries are keyed by :func:`~mapstyles.utils.hashutils.hash_and_stringify` of
the flat style they were derived from, so two styles landing on the same key
are expected to describe the same symbol.  The cache never evicts: it lives as
long as its owner and callers bound the overall symbol set.  It is meant for
single-threaded cooperative use and carries no lock; registering a second
style under an existing key silently replaces the first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from ...errors import InvalidArgumentError


@dataclass(frozen=True)
class SymbolCacheEntry:
    """A cached style plus the artifacts generated for it."""

    style: Mapping[str, Any]
    data_uri: Optional[str] = None
    svg: Optional[str] = None


EntryLike = Union[SymbolCacheEntry, Mapping[str, Any]]


def _as_entry(entry: Optional[EntryLike]) -> Optional[SymbolCacheEntry]:
    if entry is None or isinstance(entry, SymbolCacheEntry):
        return entry
    if not isinstance(entry, Mapping) or entry.get("style") is None:
        return None
    return SymbolCacheEntry(
        style=entry["style"],
        data_uri=entry.get("data_uri"),
        svg=entry.get("svg"),
    )


class SymbolCache:
    """Unbounded ``hash -> SymbolCacheEntry`` registry."""

    def __init__(self) -> None:
        self._entries: dict[int, SymbolCacheEntry] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(self, key: Optional[int], entry: Optional[EntryLike]) -> None:
        """Store *entry* under *key*, replacing any previous entry.

        *entry* is a :class:`SymbolCacheEntry` or a mapping with at least a
        ``style`` item.  ``0`` is a valid key.
        """

        resolved = _as_entry(entry)
        if key is None or resolved is None or resolved.style is None:
            raise InvalidArgumentError("register: specify all the params: hash, style")
        self._entries[key] = resolved

    def fetch(self, key: int) -> Optional[Mapping[str, Any]]:
        """Return the style registered under *key*, or ``None``."""

        entry = self._entries.get(key)
        return entry.style if entry is not None else None

    def get_entry(self, key: int) -> Optional[SymbolCacheEntry]:
        """Return the full entry registered under *key*, or ``None``."""

        return self._entries.get(key)

    def clear(self) -> None:
        """Remove all entries."""

        self._entries.clear()

    def snapshot(self) -> dict[int, SymbolCacheEntry]:
        """Return a shallow copy of every entry keyed by hash."""

        return dict(self._entries)

    def replace(self, entries: Mapping[int, EntryLike]) -> None:
        """Swap the whole content for *entries* (validated like :meth:`register`)."""

        staged = SymbolCache()
        for key, entry in entries.items():
            staged.register(key, entry)
        self._entries = staged._entries

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["SymbolCache", "SymbolCacheEntry"]
