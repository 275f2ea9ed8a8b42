"""Tests for the cache-then-fetch loader."""

import asyncio

import httpx
import pytest
from PIL import Image

from imgcache.cache.manager import ImageCache
from imgcache.errors.exceptions import TerminalFetchError
from imgcache.events import EventType
from imgcache.fetch import HttpFetcher
from imgcache.loader import CachedImageLoader
from imgcache.types import CacheConfig

URL = "https://example.com/a.png"


class FakeFetcher:
    def __init__(self, payload: bytes = b"payload", error: Exception | None = None, delay: float = 0):
        self.payload = payload
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.closed = False

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload

    async def close(self) -> None:
        self.closed = True


class TestCachedImageLoader:
    async def test_miss_fetches_and_stores(self, raw_cache):
        fetcher = FakeFetcher(b"fresh")
        loader = CachedImageLoader(raw_cache, fetcher)

        assert await loader.load(URL) == b"fresh"
        assert fetcher.calls == [URL]
        assert raw_cache.contains(URL)

    async def test_hit_skips_fetch(self, raw_cache):
        raw_cache.put(URL, b"cached")
        fetcher = FakeFetcher(b"fresh")
        loader = CachedImageLoader(raw_cache, fetcher)

        assert await loader.load(URL) == b"cached"
        assert fetcher.calls == []

    async def test_second_load_served_from_cache(self, raw_cache, event_log):
        fetcher = FakeFetcher(b"fresh")
        loader = CachedImageLoader(raw_cache, fetcher)

        await loader.load(URL)
        assert await loader.load(URL) == b"fresh"
        assert len(fetcher.calls) == 1
        assert event_log.query_by_type(EventType.MEMORY_HIT)

    async def test_fetch_failure_returns_none(self, raw_cache):
        fetcher = FakeFetcher(error=TerminalFetchError("HTTP 404", url=URL, http_status=404))
        loader = CachedImageLoader(raw_cache, fetcher)

        assert await loader.load(URL) is None
        assert not raw_cache.contains(URL)

    async def test_undecodable_payload_returns_none(self, tmp_path, clock):
        cache = ImageCache(
            config=CacheConfig(namespace="img"), cache_root=tmp_path, clock=clock
        )
        loader = CachedImageLoader(cache, FakeFetcher(b"not an image"))

        assert await loader.load(URL) is None
        assert not cache.contains(URL)

    async def test_decodes_images(self, tmp_path, clock, sample_image_bytes):
        cache = ImageCache(
            config=CacheConfig(namespace="img"), cache_root=tmp_path, clock=clock
        )
        loader = CachedImageLoader(cache, FakeFetcher(sample_image_bytes))

        image = await loader.load(URL)
        assert isinstance(image, Image.Image)
        assert image.size == (4, 3)
        assert (cache.directory / "https%3A%2F%2Fexample.com%2Fa.png.png").exists()

    async def test_redirect_loop_returns_none(self, raw_cache):
        def handler(request):
            return httpx.Response(302, headers={"Location": str(request.url)})

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), follow_redirects=True
        )
        loader = CachedImageLoader(raw_cache, HttpFetcher(client=client))

        assert await loader.load(URL) is None
        assert not raw_cache.contains(URL)
        await client.aclose()

    @pytest.mark.parametrize("url", [None, ""])
    async def test_empty_url(self, raw_cache, url):
        fetcher = FakeFetcher()
        loader = CachedImageLoader(raw_cache, fetcher)
        assert await loader.load(url) is None
        assert fetcher.calls == []

    async def test_concurrent_loads_share_one_fetch(self, raw_cache):
        fetcher = FakeFetcher(b"shared", delay=0.05)
        loader = CachedImageLoader(raw_cache, fetcher)

        results = await asyncio.gather(*(loader.load(URL) for _ in range(5)))

        assert results == [b"shared"] * 5
        assert fetcher.calls == [URL]

    async def test_cancelled_caller_does_not_cancel_fetch(self, raw_cache):
        fetcher = FakeFetcher(b"late", delay=0.05)
        loader = CachedImageLoader(raw_cache, fetcher)

        waiter = asyncio.ensure_future(loader.load(URL))
        await asyncio.sleep(0.01)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert await loader.load(URL) == b"late"
        assert fetcher.calls == [URL]

    async def test_close_closes_fetcher(self, raw_cache):
        fetcher = FakeFetcher()
        loader = CachedImageLoader(raw_cache, fetcher)
        await loader.close()
        assert fetcher.closed
