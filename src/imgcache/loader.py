"""Cache-then-fetch loader for async callers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from imgcache.cache.manager import ImageCache
from imgcache.errors.exceptions import CodecError, FetchError
from imgcache.fetch import Fetcher

logger = logging.getLogger(__name__)


class CachedImageLoader:
    """Resolves a URL to a blob from the cache, fetching and storing on a miss.

    Cache calls run in a worker thread so file I/O never blocks the event
    loop, and the cache lock is never held while a download is in flight.
    Concurrent loads of the same URL share one fetch. A caller that stops
    waiting (cancels) does not cancel the shared fetch; its result is still
    cached.
    """

    def __init__(
        self, cache: ImageCache, fetcher: Fetcher, quality: float | None = None
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._quality = quality
        self._inflight: dict[str, asyncio.Task[Any | None]] = {}

    @property
    def cache(self) -> ImageCache:
        return self._cache

    async def load(self, url: str | None, quality: float | None = None) -> Any | None:
        """Return the blob for ``url``, or None if it cannot be obtained."""
        if not url:
            return None
        if quality is None:
            quality = self._quality

        task = self._inflight.get(url)
        if task is None:
            task = asyncio.ensure_future(self._load(url, quality))
            self._inflight[url] = task
            task.add_done_callback(lambda _t, u=url: self._inflight.pop(u, None))
        return await asyncio.shield(task)

    async def _load(self, url: str, quality: float | None) -> Any | None:
        cached = await asyncio.to_thread(self._cache.get, url)
        if cached is not None:
            return cached

        try:
            data = await self._fetcher.fetch(url)
        except FetchError as e:
            logger.warning("Image load failed for %s: %s", url, e)
            return None

        try:
            blob = self._cache.codec.decode(data)
        except CodecError as e:
            logger.warning("Downloaded data for %s is not a valid image: %s", url, e)
            return None

        await asyncio.to_thread(self._cache.put, url, blob, None, quality)
        return blob

    async def close(self) -> None:
        close = getattr(self._fetcher, "close", None)
        if close is not None:
            await close()
