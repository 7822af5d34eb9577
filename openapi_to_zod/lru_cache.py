"""
Capacity-bounded least-recently-used cache.

Used for escaped regex patterns and for memoizing compiled leaf schemas.
Every generator owns its own instances; caches are never shared between runs.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Ordered-map LRU cache: reads refresh recency, writes evict the oldest entry."""

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError(f"LRUCache capacity must be positive, got {max_size}")
        self._max_size = max_size
        self._cache: OrderedDict[K, V] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._max_size

    def get(self, key: K) -> V | None:
        if key not in self._cache:
            return None
        self._cache.move_to_end(key)
        return self._cache[key]

    def set(self, key: K, value: V) -> None:
        if key in self._cache:
            self._cache.move_to_end(key)
        elif len(self._cache) >= self._max_size:
            self._cache.popitem(last=False)
        self._cache[key] = value

    def has(self, key: K) -> bool:
        return key in self._cache

    def clear(self) -> None:
        self._cache.clear()

    def size(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)
