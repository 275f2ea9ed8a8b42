"""Tests for CacheConfig validation and report models."""

import pytest
from pydantic import ValidationError

from imgcache.types import CacheConfig, MaintenanceReport


class TestCacheConfig:
    def test_defaults(self):
        config = CacheConfig()
        assert config.time_to_live == 7 * 24 * 60 * 60
        assert config.max_disk_bytes == 200 * 1024 * 1024
        assert config.namespace == "ImageCache"

    def test_zero_values_allowed(self):
        config = CacheConfig(time_to_live=0, max_disk_bytes=0)
        assert config.time_to_live == 0
        assert config.max_disk_bytes == 0

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValidationError):
            CacheConfig(time_to_live=-1)

    def test_negative_budget_rejected(self):
        with pytest.raises(ValidationError):
            CacheConfig(max_disk_bytes=-1)

    @pytest.mark.parametrize("namespace", ["", ".", "..", "a/b", "a\\b"])
    def test_bad_namespace_rejected(self, namespace):
        with pytest.raises(ValidationError):
            CacheConfig(namespace=namespace)


class TestMaintenanceReport:
    def test_removed_files(self):
        report = MaintenanceReport(expired_files=2, evicted_files=3)
        assert report.removed_files == 5
        assert report.removed == []
