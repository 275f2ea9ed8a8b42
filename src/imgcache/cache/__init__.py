"""Cache subsystem: two-tier (memory + disk) with key-derived file names."""

from imgcache.cache.disk import DiskCache
from imgcache.cache.eviction import run_maintenance
from imgcache.cache.keys import encode_file_name, extension_hint_for
from imgcache.cache.manager import ImageCache
from imgcache.cache.memory import MemoryCache
from imgcache.cache.stats import CacheStats

__all__ = [
    "ImageCache",
    "MemoryCache",
    "DiskCache",
    "CacheStats",
    "run_maintenance",
    "encode_file_name",
    "extension_hint_for",
]
