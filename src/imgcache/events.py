"""Cache diagnostic events: structured side channel for hits, misses and failures."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    MEMORY_HIT = "MEMORY_HIT"
    DISK_HIT = "DISK_HIT"
    MISS = "MISS"
    EXPIRED = "EXPIRED"
    STORED = "STORED"
    EVICTED = "EVICTED"
    REMOVED = "REMOVED"
    CLEARED = "CLEARED"
    RECONFIGURED = "RECONFIGURED"
    WRITE_FAILED = "WRITE_FAILED"
    DELETE_FAILED = "DELETE_FAILED"
    DECODE_FAILED = "DECODE_FAILED"
    ENCODE_FAILED = "ENCODE_FAILED"


_FAILURES = {
    EventType.WRITE_FAILED,
    EventType.DELETE_FAILED,
    EventType.DECODE_FAILED,
    EventType.ENCODE_FAILED,
}


class CacheEvent(BaseModel):
    """A single cache event."""

    timestamp: float = Field(default_factory=time.time)
    event_type: EventType
    key: str = ""
    file_name: str = ""
    size: int = 0
    detail: str = ""

    @property
    def is_failure(self) -> bool:
        return self.event_type in _FAILURES


EventSink = Callable[[CacheEvent], Any]


class LoggingEventSink:
    """Forwards events to the ``imgcache.events`` logger.

    Failures are logged at WARNING, everything else at DEBUG.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def __call__(self, event: CacheEvent) -> None:
        level = logging.WARNING if event.is_failure else logging.DEBUG
        if not self._log.isEnabledFor(level):
            return
        target = event.key or event.file_name
        if event.detail:
            self._log.log(level, "%s %s: %s", event.event_type.value, target, event.detail)
        else:
            self._log.log(level, "%s %s", event.event_type.value, target)


class EventLog:
    """Append-only, queryable event log usable as a sink."""

    def __init__(self) -> None:
        self._events: list[CacheEvent] = []

    def __call__(self, event: CacheEvent) -> None:
        self.append(event)

    def append(self, event: CacheEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[CacheEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def query_by_type(self, event_type: EventType) -> list[CacheEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def query_by_key(self, key: str) -> list[CacheEvent]:
        return [e for e in self._events if e.key == key]

    def query_failures(self) -> list[CacheEvent]:
        return [e for e in self._events if e.is_failure]

    def clear(self) -> None:
        self._events.clear()
