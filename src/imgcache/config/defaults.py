"""Package-level default configuration values."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from imgcache.types import DEFAULT_MAX_DISK_BYTES, DEFAULT_NAMESPACE, DEFAULT_TIME_TO_LIVE

# Default cache settings
DEFAULT_MEMORY_MAX_BYTES = 64 * 1024 * 1024
DEFAULT_JPEG_QUALITY: float | None = None

# Default fetch settings
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_FETCH_RETRIES = 3

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def default_cache_root() -> Path:
    """Platform cache directory: ``$XDG_CACHE_HOME`` or ``~/.cache``."""
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".cache"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "time_to_live": float(DEFAULT_TIME_TO_LIVE),
        "max_disk_bytes": DEFAULT_MAX_DISK_BYTES,
        "namespace": DEFAULT_NAMESPACE,
        "memory_max_bytes": DEFAULT_MEMORY_MAX_BYTES,
        "cache_root": None,
        "jpeg_quality": DEFAULT_JPEG_QUALITY,
        "fetch_timeout": DEFAULT_FETCH_TIMEOUT,
        "fetch_retries": DEFAULT_FETCH_RETRIES,
        "log_level": DEFAULT_LOG_LEVEL,
    }
