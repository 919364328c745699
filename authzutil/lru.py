"""Least-recently-used caches."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Hashable
from typing import Any


class LRUCache:
    """A fixed-capacity cache that evicts the least recently used entry."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[Hashable, Any] = OrderedDict()

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the value for ``key`` and mark it as recently used, or ``default``."""
        try:
            self._entries.move_to_end(key)
        except KeyError:
            return default
        return self._entries[key]

    def put(self, key: Hashable, value: Any) -> None:
        """Store ``value`` under a new key, evicting the oldest entry when full.

        Putting a key that is already cached only marks it as recently used;
        the value stored first is kept.
        """
        if key in self._entries:
            self._entries.move_to_end(key)
            return
        if len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def values(self) -> list[Any]:
        """Return the cached values, most recently used first."""
        return list(reversed(self._entries.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class SyncLRUCache(LRUCache):
    """An :class:`LRUCache` whose reads and writes are safe across threads."""

    def __init__(self, capacity: int) -> None:
        super().__init__(capacity)
        self._lock = threading.Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            return super().get(key, default)

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            super().put(key, value)

    def values(self) -> list[Any]:
        with self._lock:
            return super().values()