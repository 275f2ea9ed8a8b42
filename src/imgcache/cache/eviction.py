"""Disk maintenance: TTL expiry followed by LRU size enforcement."""

from __future__ import annotations

import logging
import time

from imgcache.cache.disk import DiskCache
from imgcache.events import CacheEvent, EventSink, EventType
from imgcache.types import CacheConfig, DiskFileInfo, MaintenanceReport

logger = logging.getLogger(__name__)


def run_maintenance(
    disk: DiskCache,
    config: CacheConfig,
    now: float | None = None,
    event_sink: EventSink | None = None,
) -> MaintenanceReport:
    """Expire stale files, then evict least-recently-touched files until under budget.

    Expiry always runs, even when the directory is already under budget, so
    the size pass works against the smallest possible set of files.
    """
    now = time.time() if now is None else now
    report = MaintenanceReport()

    survivors = _expire(disk, config.time_to_live, now, report, event_sink)

    size = disk.total_size()
    if size > config.max_disk_bytes:
        size = _evict_lru(disk, survivors, size, config.max_disk_bytes, report, event_sink)

    report.final_size = size
    if report.removed_files:
        logger.debug(
            "Maintenance removed %d expired and %d LRU files (%d bytes left)",
            report.expired_files,
            report.evicted_files,
            size,
        )
    return report


def select_lru_victims(
    files: list[DiskFileInfo],
    current_size: int,
    max_bytes: int,
) -> list[DiskFileInfo]:
    """Pick files oldest-first until the running total fits within ``max_bytes``.

    Ties on timestamp are broken by name so a run is deterministic.
    """
    victims: list[DiskFileInfo] = []
    size = current_size
    for info in sorted(files, key=lambda f: (f.last_touched, f.name)):
        if size <= max_bytes:
            break
        victims.append(info)
        size -= info.size
    return victims


def _expire(
    disk: DiskCache,
    ttl: float,
    now: float,
    report: MaintenanceReport,
    event_sink: EventSink | None,
) -> list[DiskFileInfo]:
    survivors: list[DiskFileInfo] = []
    for info in disk.list_with_timestamps():
        if now - info.last_touched > ttl and disk.delete(info.name):
            report.expired_files += 1
            report.expired_bytes += info.size
            report.removed.append(info.name)
            _emit(event_sink, EventType.EXPIRED, info)
            continue
        survivors.append(info)
    return survivors


def _evict_lru(
    disk: DiskCache,
    files: list[DiskFileInfo],
    size: int,
    max_bytes: int,
    report: MaintenanceReport,
    event_sink: EventSink | None,
) -> int:
    for info in select_lru_victims(files, size, max_bytes):
        if disk.delete(info.name):
            report.evicted_files += 1
            report.evicted_bytes += info.size
            report.removed.append(info.name)
            _emit(event_sink, EventType.EVICTED, info)
        # Decremented even when the delete failed; each file is visited once.
        size -= info.size
    return size


def _emit(event_sink: EventSink | None, event_type: EventType, info: DiskFileInfo) -> None:
    if event_sink is not None:
        event_sink(CacheEvent(event_type=event_type, file_name=info.name, size=info.size))
