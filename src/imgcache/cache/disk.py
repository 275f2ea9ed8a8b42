"""L2 disk cache: one file per key in a namespaced directory."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from imgcache.events import CacheEvent, EventSink, EventType
from imgcache.types import DiskFileInfo

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".tmp-"


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


# mkstemp creates 0600 files; cache files get the mode a plain open() would give
_FILE_MODE = _default_file_mode()


class DiskCache:
    """Directory-backed persistent cache.

    A file's modification time is its last-touched time: it is set on every
    write and on every non-expired read, and drives both TTL and LRU
    decisions. Hidden files (leading dot) are ignored, which keeps in-flight
    temporary files out of listings and size totals.
    """

    def __init__(
        self,
        directory: Path,
        clock: Callable[[], float] = time.time,
        event_sink: EventSink | None = None,
    ) -> None:
        self._directory = Path(directory)
        self._clock = clock
        self._event_sink = event_sink
        self._ensure_directory()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, file_name: str) -> Path:
        return self._directory / file_name

    def read(self, file_name: str, ttl_seconds: float) -> bytes | None:
        """Return the bytes for ``file_name``, or None if missing or expired."""
        path = self.path_for(file_name)
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot stat cache file %s: %s", path, e)
            return None

        now = self._clock()
        if now - mtime > ttl_seconds:
            self.delete(file_name)
            self._emit(EventType.EXPIRED, file_name, detail=f"age {now - mtime:.1f}s")
            return None

        try:
            data = path.read_bytes()
        except OSError as e:
            logger.warning("Cannot read cache file %s: %s", path, e)
            return None

        self._touch(path, now)
        return data

    def write(self, file_name: str, data: bytes) -> bool:
        """Atomically write ``data`` and stamp it as just touched.

        Returns False (and logs) on failure; never raises.
        """
        path = self.path_for(file_name)
        tmp_path: str | None = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=_TEMP_PREFIX)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_path, _FILE_MODE)
            os.replace(tmp_path, path)
            tmp_path = None
            now = self._clock()
            os.utime(path, (now, now))
        except OSError as e:
            logger.warning("Cache write failed for %s: %s", path, e)
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            self._emit(EventType.WRITE_FAILED, file_name, detail=str(e))
            return False
        return True

    def delete(self, file_name: str) -> bool:
        """Delete a file. Missing files are not an error; returns True if removed."""
        path = self.path_for(file_name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Cache delete failed for %s: %s", path, e)
            self._emit(EventType.DELETE_FAILED, file_name, detail=str(e))
            return False
        return True

    def list_with_timestamps(self) -> list[DiskFileInfo]:
        """All non-hidden regular files directly in the directory, unordered."""
        result: list[DiskFileInfo] = []
        try:
            entries = list(os.scandir(self._directory))
        except FileNotFoundError:
            return result
        except OSError as e:
            logger.warning("Cannot list cache directory %s: %s", self._directory, e)
            return result

        for entry in entries:
            if entry.name.startswith("."):
                continue
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                st = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            result.append(
                DiskFileInfo(name=entry.name, size=st.st_size, last_touched=st.st_mtime)
            )
        return result

    def total_size(self) -> int:
        return sum(info.size for info in self.list_with_timestamps())

    @property
    def entry_count(self) -> int:
        return len(self.list_with_timestamps())

    def clear_all(self) -> None:
        """Remove the namespace directory entirely and recreate it empty."""
        try:
            shutil.rmtree(self._directory)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Cannot remove cache directory %s: %s", self._directory, e)
            self._emit(EventType.DELETE_FAILED, "", detail=str(e))
        self._ensure_directory()

    def _touch(self, path: Path, now: float) -> None:
        try:
            os.utime(path, (now, now))
        except OSError as e:
            logger.warning("Cannot update timestamp of %s: %s", path, e)

    def _ensure_directory(self) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create cache directory %s: %s", self._directory, e)

    def _emit(self, event_type: EventType, file_name: str, detail: str = "") -> None:
        if self._event_sink is not None:
            self._event_sink(
                CacheEvent(event_type=event_type, file_name=file_name, detail=detail)
            )
