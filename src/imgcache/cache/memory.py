"""L1 in-memory LRU cache with cost accounting."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, NamedTuple

DEFAULT_MAX_COST_BYTES = 64 * 1024 * 1024


class _Slot(NamedTuple):
    blob: Any
    cost: int


class MemoryCache:
    """In-memory LRU cache bounded by total cost (bytes).

    Entries can disappear at any time when the budget is exceeded; callers
    treat a missing entry as a miss and fall back to disk.
    """

    def __init__(self, max_cost_bytes: int = DEFAULT_MAX_COST_BYTES) -> None:
        self._store: OrderedDict[str, _Slot] = OrderedDict()
        self._max_cost_bytes = max(0, int(max_cost_bytes))
        self._current_cost_bytes = 0

    def get(self, key: str) -> Any | None:
        slot = self._store.get(key)
        if slot is None:
            return None
        # Move to end (most recently used)
        self._store.move_to_end(key)
        return slot.blob

    def set(self, key: str, blob: Any, cost: int = 0) -> None:
        if key in self._store:
            self._remove(key)
        cost = max(0, int(cost))
        if cost > self._max_cost_bytes:
            return
        # Evict until there's room
        while self._current_cost_bytes + cost > self._max_cost_bytes and self._store:
            self._evict_oldest()
        self._store[key] = _Slot(blob, cost)
        self._current_cost_bytes += cost

    def remove(self, key: str) -> bool:
        return self._remove(key)

    def clear(self) -> None:
        self._store.clear()
        self._current_cost_bytes = 0

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    @property
    def size_bytes(self) -> int:
        return self._current_cost_bytes

    @property
    def max_cost_bytes(self) -> int:
        return self._max_cost_bytes

    def _remove(self, key: str) -> bool:
        slot = self._store.pop(key, None)
        if slot is None:
            return False
        self._current_cost_bytes -= slot.cost
        return True

    def _evict_oldest(self) -> None:
        _, slot = self._store.popitem(last=False)
        self._current_cost_bytes -= slot.cost
