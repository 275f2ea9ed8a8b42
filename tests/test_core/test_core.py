"""Tests for top-level entry points."""

import pytest

from imgcache.core import create_cache, create_loader, reset_shared_cache, shared_cache
from imgcache.fetch import HttpFetcher

pytestmark = pytest.mark.usefixtures("isolated_config")


@pytest.fixture(autouse=True)
def _fresh_shared_cache():
    reset_shared_cache()
    yield
    reset_shared_cache()


class TestCreateCache:
    def test_overrides(self, tmp_path):
        cache = create_cache(cache_root=str(tmp_path), namespace="Thumbs", time_to_live=30)
        assert cache.directory == tmp_path / "Thumbs"
        assert cache.directory.is_dir()
        assert cache.config.time_to_live == 30

    def test_project_config(self, tmp_path):
        (tmp_path / "imgcache.yaml").write_text(
            f"cache_root: {tmp_path / 'root'}\nnamespace: FromFile\n"
        )
        cache = create_cache()
        assert cache.directory == tmp_path / "root" / "FromFile"

    def test_env_cache_root(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMGCACHE_CACHE_ROOT", str(tmp_path / "env"))
        cache = create_cache()
        assert cache.directory == tmp_path / "env" / "ImageCache"

    def test_bad_env_values_fall_back_per_key(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMGCACHE_MEMORY_MAX_BYTES", "64MiB")
        monkeypatch.setenv("IMGCACHE_TTL", "1d")
        cache = create_cache(cache_root=str(tmp_path), namespace="Avatars")
        assert cache.directory == tmp_path / "Avatars"
        assert cache.config.time_to_live == 7 * 24 * 60 * 60
        assert cache._l1.max_cost_bytes == 64 * 1024 * 1024


class TestSharedCache:
    def test_singleton(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMGCACHE_CACHE_ROOT", str(tmp_path))
        assert shared_cache() is shared_cache()

    def test_reset(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMGCACHE_CACHE_ROOT", str(tmp_path))
        first = shared_cache()
        reset_shared_cache()
        assert shared_cache() is not first


class TestCreateLoader:
    async def test_uses_given_cache(self, tmp_path):
        cache = create_cache(cache_root=str(tmp_path))
        loader = create_loader(cache, fetch_retries=5)
        try:
            assert loader.cache is cache
            assert isinstance(loader._fetcher, HttpFetcher)
            assert loader._fetcher._max_attempts == 5
        finally:
            await loader.close()

    async def test_defaults_to_shared_cache(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMGCACHE_CACHE_ROOT", str(tmp_path))
        loader = create_loader()
        try:
            assert loader.cache is shared_cache()
        finally:
            await loader.close()

    async def test_jpeg_quality_setting(self, tmp_path):
        loader = create_loader(create_cache(cache_root=str(tmp_path)), jpeg_quality=0.5)
        try:
            assert loader._quality == 0.5
        finally:
            await loader.close()
