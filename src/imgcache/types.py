"""Shared Pydantic models for imgcache."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Config models ──

DEFAULT_TIME_TO_LIVE = 7 * 24 * 60 * 60  # seven days
DEFAULT_MAX_DISK_BYTES = 200 * 1024 * 1024
DEFAULT_NAMESPACE = "ImageCache"


class CacheConfig(BaseModel):
    """Runtime-adjustable cache settings.

    Changes only affect operations issued after ``ImageCache.reconfigure``;
    files already on disk are never rewritten.
    """

    time_to_live: float = Field(default=DEFAULT_TIME_TO_LIVE, ge=0)
    max_disk_bytes: int = Field(default=DEFAULT_MAX_DISK_BYTES, ge=0)
    namespace: str = DEFAULT_NAMESPACE

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        return _validate_namespace(value)


class ResolvedSettings(BaseModel):
    """Every setting the configuration hierarchy knows, after validation.

    Fields have no defaults: the hierarchy always starts from the package
    defaults and substitutes them for any value that fails validation.
    """

    model_config = ConfigDict(extra="ignore")

    time_to_live: float = Field(ge=0)
    max_disk_bytes: int = Field(ge=0)
    namespace: str
    memory_max_bytes: int = Field(ge=0)
    cache_root: str | None
    jpeg_quality: Annotated[float, Field(ge=0, le=1)] | None
    fetch_timeout: float = Field(gt=0)
    fetch_retries: int = Field(ge=1)
    log_level: str

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        return _validate_namespace(value)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {value!r}")
        return level

    def cache_config(self) -> CacheConfig:
        return CacheConfig(
            time_to_live=self.time_to_live,
            max_disk_bytes=self.max_disk_bytes,
            namespace=self.namespace,
        )


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _validate_namespace(value: str) -> str:
    if not value or value in (".", ".."):
        raise ValueError("namespace must be a non-empty directory name")
    if "/" in value or "\\" in value:
        raise ValueError(f"namespace must not contain path separators: {value!r}")
    return value


# ── Runtime models ──


class DiskFileInfo(BaseModel):
    """A single file in the disk tier, as seen by the eviction engine."""

    name: str
    size: int = 0
    last_touched: float = 0.0


class MaintenanceReport(BaseModel):
    """Outcome of one expire-then-size maintenance pass."""

    expired_files: int = 0
    expired_bytes: int = 0
    evicted_files: int = 0
    evicted_bytes: int = 0
    final_size: int = 0
    removed: list[str] = Field(default_factory=list)

    @property
    def removed_files(self) -> int:
        return self.expired_files + self.evicted_files
