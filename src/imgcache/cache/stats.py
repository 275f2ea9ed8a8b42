"""Cache statistics model."""

from __future__ import annotations

from pydantic import BaseModel

from imgcache.events import CacheEvent, EventType


class CacheStats(BaseModel):
    """Aggregate cache statistics."""

    disk_entries: int = 0
    disk_bytes: int = 0
    memory_entries: int = 0
    memory_bytes: int = 0
    memory_hits: int = 0
    disk_hits: int = 0
    misses: int = 0
    writes: int = 0
    write_failures: int = 0
    expired: int = 0
    evicted: int = 0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.disk_hits

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @property
    def disk_mb(self) -> float:
        return self.disk_bytes / (1024 * 1024)

    def record(self, event: CacheEvent) -> None:
        """Update counters from a single event."""
        counter = _COUNTERS.get(event.event_type)
        if counter is not None:
            setattr(self, counter, getattr(self, counter) + 1)


_COUNTERS: dict[EventType, str] = {
    EventType.MEMORY_HIT: "memory_hits",
    EventType.DISK_HIT: "disk_hits",
    EventType.MISS: "misses",
    EventType.STORED: "writes",
    EventType.WRITE_FAILED: "write_failures",
    EventType.EXPIRED: "expired",
    EventType.EVICTED: "evicted",
}
