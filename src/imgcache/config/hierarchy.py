"""Layered settings for imgcache.

Sources, lowest priority first:
  defaults     package defaults
  global       ~/.imgcache/config.yaml
  project      imgcache.yaml in the working directory or its nearest ancestor
  environment  IMGCACHE_* variables
  arguments    keyword overrides passed by the caller (None means unset)

Values are validated one key at a time. An invalid value is logged with the
source it came from and replaced by the package default for that key only.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from imgcache.config.defaults import get_defaults
from imgcache.types import CacheConfig, ResolvedSettings

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".imgcache" / "config.yaml"
_PROJECT_CONFIG_NAME = "imgcache.yaml"

_ENV_PREFIX = "IMGCACHE_"
# Environment names that differ from the upper-cased setting name
_ENV_ALIASES = {"IMGCACHE_TTL": "time_to_live"}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Merge every source and return the validated settings as a flat dict."""
    merged: dict[str, Any] = {}
    origin: dict[str, str] = {}
    for source, values in _layers(runtime_overrides):
        for key, value in values.items():
            merged[key] = value
            origin[key] = source
    return resolve_settings(merged, origin).model_dump()


def resolve_settings(
    values: Mapping[str, Any], origin: Mapping[str, str] | None = None
) -> ResolvedSettings:
    """Validate ``values`` over the package defaults, key by key."""
    defaults = get_defaults()
    candidate = {**defaults, **values}
    try:
        return ResolvedSettings.model_validate(candidate)
    except ValidationError as e:
        rejected = {str(err["loc"][0]) for err in e.errors() if err["loc"]}

    for key in sorted(rejected):
        source = (origin or {}).get(key, "settings")
        logger.warning(
            "Ignoring invalid %s=%r from %s; using default %r",
            key,
            candidate.get(key),
            source,
            defaults.get(key),
        )
        candidate[key] = defaults.get(key)
    return ResolvedSettings.model_validate(candidate)


def build_cache_config(settings: Mapping[str, Any]) -> CacheConfig:
    """The ``CacheConfig`` part of a settings dict; invalid keys fall back to defaults."""
    return resolve_settings(settings).cache_config()


def _layers(runtime_overrides: Mapping[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    yield "defaults", get_defaults()
    yield str(_GLOBAL_CONFIG_PATH), _load_yaml_config(_GLOBAL_CONFIG_PATH) or {}
    project_path = _find_project_config()
    if project_path is not None:
        yield str(project_path), _load_yaml_config(project_path) or {}
    yield "environment", _load_env_vars()
    yield "arguments", {k: v for k, v in runtime_overrides.items() if v is not None}


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Parse a YAML mapping; missing, unreadable or non-mapping files give None."""
    if not path.is_file():
        return None
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring", path)
        return None
    return data


def _find_project_config() -> Path | None:
    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / _PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _load_env_vars() -> dict[str, str]:
    """Raw IMGCACHE_* strings keyed by setting name; conversion happens in validation."""
    names = {_ENV_PREFIX + key.upper(): key for key in get_defaults()}
    names.update(_ENV_ALIASES)
    return {key: os.environ[env] for env, key in names.items() if env in os.environ}
