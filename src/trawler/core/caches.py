"""
Bounded in-process caches.

These caches only save round-trips to the store. They are rebuilt from the
store when a process starts and are never the system of record, so eviction
is deliberately coarse: once a cache grows past ``max_size`` the oldest
entries are dropped until the newest ``max_size // 2`` remain.
"""

import logging
from typing import Any, Dict, Hashable, Iterable, Iterator, Optional


class BoundedMap:
    """Insertion-ordered mapping that discards its oldest half when full."""

    def __init__(self, max_size: int, name: str = "cache"):
        if max_size < 0:
            raise ValueError("max_size cannot be negative")
        self.max_size = max_size
        self.name = name
        self._data: Dict[Hashable, Any] = {}
        self.evictions = 0
        self.logger = logging.getLogger(self.__class__.__name__)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._data)

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value and evict if the cache is now oversized."""
        self._data[key] = value
        self.evict_if_full()

    def discard(self, key: Hashable) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def evict_if_full(self) -> int:
        """
        Drop the oldest entries once the cache exceeds ``max_size``.

        Returns:
            Number of entries removed
        """
        if len(self._data) <= self.max_size:
            return 0

        keep = self.max_size // 2
        drop = len(self._data) - keep
        for key in list(self._data)[:drop]:
            del self._data[key]

        self.evictions += 1
        self.logger.debug(f"{self.name}: evicted {drop} entries, {keep} kept")
        return drop


class BoundedSet(BoundedMap):
    """Insertion-ordered set with the same eviction rule as BoundedMap."""

    def __init__(self, max_size: int, name: str = "cache",
                 items: Optional[Iterable[Hashable]] = None):
        super().__init__(max_size, name)
        if items:
            self.update(items)

    def add(self, item: Hashable) -> None:
        self.set(item, True)

    def update(self, items: Iterable[Hashable]) -> None:
        for item in items:
            self._data[item] = True
        self.evict_if_full()
