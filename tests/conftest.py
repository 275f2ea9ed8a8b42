import io

import pytest
from PIL import Image

from imgcache.cache.manager import ImageCache
from imgcache.codec import RawBytesCodec
from imgcache.events import EventLog
from imgcache.types import CacheConfig


class FakeClock:
    """Manually advanced wall clock (seconds since the epoch)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def raw_cache(tmp_path, clock, event_log):
    """ImageCache storing opaque bytes under tmp_path, driven by a fake clock."""
    return ImageCache(
        config=CacheConfig(time_to_live=60, max_disk_bytes=1_000_000, namespace="t"),
        cache_root=tmp_path,
        codec=RawBytesCodec(),
        event_sink=event_log,
        clock=clock,
    )


@pytest.fixture
def sample_image():
    """A small RGB image with a few distinct pixels."""
    img = Image.new("RGB", (4, 3), color=(255, 255, 255))
    img.putpixel((0, 0), (255, 0, 0))
    img.putpixel((3, 2), (0, 0, 255))
    return img


@pytest.fixture
def sample_image_bytes(sample_image):
    """PNG encoding of sample_image."""
    buf = io.BytesIO()
    sample_image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Keep user config files and IMGCACHE_* variables out of the test."""
    monkeypatch.setattr(
        "imgcache.config.hierarchy._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"
    )
    monkeypatch.chdir(tmp_path)
    for name in (
        "IMGCACHE_TTL",
        "IMGCACHE_TIME_TO_LIVE",
        "IMGCACHE_MAX_DISK_BYTES",
        "IMGCACHE_NAMESPACE",
        "IMGCACHE_MEMORY_MAX_BYTES",
        "IMGCACHE_CACHE_ROOT",
        "IMGCACHE_JPEG_QUALITY",
        "IMGCACHE_FETCH_TIMEOUT",
        "IMGCACHE_FETCH_RETRIES",
        "IMGCACHE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
