"""Image cache facade: orchestrates L1 (memory) and L2 (disk) tiers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, NamedTuple

from imgcache.cache.disk import DiskCache
from imgcache.cache.eviction import run_maintenance
from imgcache.cache.keys import encode_file_name, extension_hint_for
from imgcache.cache.memory import DEFAULT_MAX_COST_BYTES, MemoryCache
from imgcache.cache.stats import CacheStats
from imgcache.codec import BlobCodec, PillowImageCodec
from imgcache.config.defaults import default_cache_root
from imgcache.errors.exceptions import CodecError
from imgcache.events import CacheEvent, EventSink, EventType, LoggingEventSink
from imgcache.types import CacheConfig, DiskFileInfo, MaintenanceReport

logger = logging.getLogger(__name__)


class _Resident(NamedTuple):
    """An L1 entry: the blob plus the time it was stored or read from disk."""

    blob: Any
    touched_at: float


class ImageCache:
    """Two-tier cache: L1 in-memory LRU → L2 on-disk files with TTL and size budget.

    Every public method runs under one re-entrant lock, so calls from
    different threads never interleave. Failures never propagate: I/O and
    codec problems are logged, emitted as events, and the call degrades to
    a miss or a no-op.

    A memory entry is served only while the time it was stored or last read
    from disk is within the TTL. Otherwise L1 is bounded only by its own cost
    budget: disk eviction leaves it alone. Memory hits do not touch the file.

    The file for a key is named after the key plus an extension hint. When
    no hint is given the key's URL path extension is used; callers passing
    an explicit hint to ``put`` must pass the same hint to ``get`` and
    ``remove``.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        cache_root: Path | str | None = None,
        memory_max_bytes: int = DEFAULT_MAX_COST_BYTES,
        codec: BlobCodec | None = None,
        event_sink: EventSink | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or CacheConfig()
        self._cache_root = Path(cache_root) if cache_root else default_cache_root()
        self._codec: BlobCodec = codec or PillowImageCodec()
        self._event_sink = event_sink if event_sink is not None else LoggingEventSink()
        self._clock = clock
        self._lock = threading.RLock()
        self._stats = CacheStats()
        self._l1 = MemoryCache(max_cost_bytes=memory_max_bytes)
        self._l2 = self._open_disk(self._config.namespace)

    @property
    def config(self) -> CacheConfig:
        with self._lock:
            return self._config

    @property
    def codec(self) -> BlobCodec:
        return self._codec

    @property
    def directory(self) -> Path:
        with self._lock:
            return self._l2.directory

    def get(self, key: str, extension_hint: str | None = None) -> Any | None:
        """Look up a key. L1 first, then L2 (with promotion)."""
        with self._lock:
            resident = self._l1.get(key)
            if resident is not None:
                if self._clock() - resident.touched_at <= self._config.time_to_live:
                    self._emit(EventType.MEMORY_HIT, key=key)
                    return resident.blob
                self._l1.remove(key)

            file_name = self._file_name(key, extension_hint)
            data = self._l2.read(file_name, self._config.time_to_live)
            if data is None:
                self._emit(EventType.MISS, key=key, file_name=file_name)
                return None

            try:
                blob = self._codec.decode(data)
            except CodecError as e:
                self._emit(EventType.DECODE_FAILED, key=key, file_name=file_name, detail=str(e))
                self._emit(EventType.MISS, key=key, file_name=file_name)
                return None

            self._l1.set(key, _Resident(blob, self._clock()), cost=len(data))
            self._emit(EventType.DISK_HIT, key=key, file_name=file_name, size=len(data))
            return blob

    def put(
        self,
        key: str,
        blob: Any,
        extension_hint: str | None = None,
        quality: float | None = None,
    ) -> bool:
        """Store in L1 and L2, then run disk maintenance.

        ``quality`` is passed to the codec (a JPEG quality for images).
        Returns True if the bytes reached disk. L1 is updated either way.
        """
        with self._lock:
            file_name = self._file_name(key, extension_hint)
            try:
                data = self._codec.encode(blob, quality)
            except CodecError as e:
                self._emit(EventType.ENCODE_FAILED, key=key, file_name=file_name, detail=str(e))
                data = b""

            self._l1.set(key, _Resident(blob, self._clock()), cost=len(data))

            written = self._l2.write(file_name, data)
            if written:
                self._emit(EventType.STORED, key=key, file_name=file_name, size=len(data))

            self._maintain()
            return written

    def remove(self, key: str, extension_hint: str | None = None) -> None:
        """Remove a key from both tiers."""
        with self._lock:
            file_name = self._file_name(key, extension_hint)
            self._l1.remove(key)
            self._l2.delete(file_name)
            self._emit(EventType.REMOVED, key=key, file_name=file_name)

    def clear(self) -> None:
        """Clear both tiers and recreate an empty namespace directory."""
        with self._lock:
            self._l1.clear()
            self._l2.clear_all()
            self._emit(EventType.CLEARED, detail=str(self._l2.directory))

    def reconfigure(self, config: CacheConfig) -> None:
        """Replace the active configuration for all subsequent operations.

        Existing files are left alone; a smaller budget is enforced by the
        next maintenance pass. A new namespace re-roots the disk tier and
        empties the memory tier.
        """
        with self._lock:
            previous = self._config
            self._config = config
            if config.namespace != previous.namespace:
                self._l2 = self._open_disk(config.namespace)
                self._l1.clear()
            self._emit(
                EventType.RECONFIGURED,
                detail=(
                    f"ttl={config.time_to_live}s max_disk_bytes={config.max_disk_bytes} "
                    f"namespace={config.namespace}"
                ),
            )

    def prune(self) -> MaintenanceReport:
        """Run a maintenance pass now instead of waiting for the next put."""
        with self._lock:
            return self._maintain()

    def contains(self, key: str, extension_hint: str | None = None) -> bool:
        """True if the key has an unexpired file. Touches nothing."""
        with self._lock:
            path = self._l2.path_for(self._file_name(key, extension_hint))
            try:
                mtime = path.stat().st_mtime
            except OSError:
                return False
            return self._clock() - mtime <= self._config.time_to_live

    def entries(self) -> list[DiskFileInfo]:
        """Disk files ordered most recently touched first."""
        with self._lock:
            files = self._l2.list_with_timestamps()
        return sorted(files, key=lambda f: (f.last_touched, f.name), reverse=True)

    def stats(self) -> CacheStats:
        """Return counters together with current tier sizes."""
        with self._lock:
            files = self._l2.list_with_timestamps()
            return self._stats.model_copy(
                update={
                    "disk_entries": len(files),
                    "disk_bytes": sum(f.size for f in files),
                    "memory_entries": len(self._l1),
                    "memory_bytes": self._l1.size_bytes,
                }
            )

    def _maintain(self) -> MaintenanceReport:
        return run_maintenance(
            self._l2, self._config, now=self._clock(), event_sink=self._dispatch
        )

    def _open_disk(self, namespace: str) -> DiskCache:
        return DiskCache(
            self._cache_root / namespace, clock=self._clock, event_sink=self._dispatch
        )

    @staticmethod
    def _file_name(key: str, extension_hint: str | None) -> str:
        return encode_file_name(key, extension_hint or extension_hint_for(key))

    def _emit(self, event_type: EventType, **fields: Any) -> None:
        self._dispatch(CacheEvent(event_type=event_type, **fields))

    def _dispatch(self, event: CacheEvent) -> None:
        self._stats.record(event)
        try:
            self._event_sink(event)
        except Exception as e:
            logger.warning("Cache event sink failed on %s: %s", event.event_type.value, e)
