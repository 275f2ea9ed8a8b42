"""Top-level entry points: shared_cache(), create_cache(), create_loader()."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from imgcache.cache.manager import ImageCache
from imgcache.config.hierarchy import build_cache_config, load_config_hierarchy
from imgcache.fetch import HttpFetcher
from imgcache.loader import CachedImageLoader

logger = logging.getLogger(__name__)

_shared: ImageCache | None = None
_shared_lock = threading.Lock()


def create_cache(**overrides: Any) -> ImageCache:
    """Build an ImageCache from the configuration hierarchy.

    Keyword overrides take precedence over files and environment variables.
    """
    settings = load_config_hierarchy(**overrides)
    cache_root = settings.get("cache_root")
    return ImageCache(
        config=build_cache_config(settings),
        cache_root=Path(cache_root).expanduser() if cache_root else None,
        memory_max_bytes=settings["memory_max_bytes"],
    )


def shared_cache() -> ImageCache:
    """Process-wide default cache, created on first use."""
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = create_cache()
            logger.debug("Created shared image cache at %s", _shared.directory)
        return _shared


def reset_shared_cache() -> None:
    """Forget the shared instance so the next call rebuilds it."""
    global _shared
    with _shared_lock:
        _shared = None


def create_loader(cache: ImageCache | None = None, **overrides: Any) -> CachedImageLoader:
    """Build a loader over ``cache`` (default: the shared cache) with an HTTP fetcher."""
    settings = load_config_hierarchy(**overrides)
    fetcher = HttpFetcher(
        timeout=settings["fetch_timeout"],
        max_attempts=settings["fetch_retries"],
    )
    return CachedImageLoader(cache or shared_cache(), fetcher, quality=settings["jpeg_quality"])
