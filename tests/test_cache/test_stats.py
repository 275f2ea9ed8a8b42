"""Tests for cache statistics model."""

from imgcache.cache.stats import CacheStats
from imgcache.events import CacheEvent, EventType


class TestCacheStats:
    def test_defaults(self):
        stats = CacheStats()
        assert stats.hits == 0
        assert stats.misses == 0
        assert stats.disk_entries == 0

    def test_hit_rate_zero_when_no_requests(self):
        assert CacheStats().hit_rate == 0.0

    def test_hit_rate_calculation(self):
        stats = CacheStats(memory_hits=2, disk_hits=1, misses=1)
        assert stats.hits == 3
        assert stats.hit_rate == 0.75

    def test_disk_mb(self):
        assert CacheStats(disk_bytes=2 * 1024 * 1024).disk_mb == 2.0

    def test_record_counts_events(self):
        stats = CacheStats()
        for event_type in (
            EventType.MEMORY_HIT,
            EventType.DISK_HIT,
            EventType.MISS,
            EventType.MISS,
            EventType.STORED,
            EventType.WRITE_FAILED,
            EventType.EXPIRED,
            EventType.EVICTED,
        ):
            stats.record(CacheEvent(event_type=event_type))
        assert stats.memory_hits == 1
        assert stats.disk_hits == 1
        assert stats.misses == 2
        assert stats.writes == 1
        assert stats.write_failures == 1
        assert stats.expired == 1
        assert stats.evicted == 1

    def test_record_ignores_untracked_events(self):
        stats = CacheStats()
        stats.record(CacheEvent(event_type=EventType.CLEARED))
        assert stats == CacheStats()
