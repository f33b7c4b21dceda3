"""Configuration hierarchy — layered sources merged into one mapping.

Later layers win:
  1. Package defaults
  2. User config       (~/.siena/config.yaml)
  3. Project config    (siena.yaml in the cwd or the nearest parent)
  4. Environment       (SIENA_<KEY>, e.g. SIENA_MAX_WIDTH=1280)
  5. Runtime arguments (None means "not given")

Values are merged as read; :class:`SienaConfig` does the type coercion, so an
environment string like ``"1280"`` becomes an int there.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from siena.config.defaults import get_defaults
from siena.config.schema import SienaConfig

logger = logging.getLogger(__name__)

USER_CONFIG_PATH = Path.home() / ".siena" / "config.yaml"
PROJECT_CONFIG_NAME = "siena.yaml"
ENV_PREFIX = "SIENA_"

# Settings that are mappings and cannot come from a single env string
_NOT_FROM_ENV = {"quality"}
_LIST_KEYS = {"formats"}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Merge every layer over the package defaults and return the raw mapping."""
    merged = get_defaults()
    for source, values in _layers(runtime_overrides):
        if not values:
            continue
        unknown = sorted(set(values) - set(merged))
        if unknown:
            logger.warning("Ignoring unknown config keys from %s: %s", source, ", ".join(unknown))
        logger.debug("Config keys from %s: %s", source, ", ".join(sorted(values)))
        merged.update(values)
    return merged


def load_config(**runtime_overrides: Any) -> SienaConfig:
    """Merge all layers and validate them into a :class:`SienaConfig`."""
    return SienaConfig.from_mapping(load_config_hierarchy(**runtime_overrides))


def find_project_config(start: Path | None = None) -> Path | None:
    """Return the nearest ``siena.yaml`` at or above ``start`` (default: cwd)."""
    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _layers(runtime_overrides: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    yield str(USER_CONFIG_PATH), _read_yaml(USER_CONFIG_PATH)
    project = find_project_config()
    if project is not None:
        yield str(project), _read_yaml(project)
    yield "environment", _read_env()
    yield "arguments", {k: v for k, v in runtime_overrides.items() if v is not None}


def _read_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in ``path``; empty when the file is absent or unusable."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring", path)
        return {}
    return data


def _read_env() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key in get_defaults():
        if key in _NOT_FROM_ENV:
            continue
        raw = os.environ.get(ENV_PREFIX + key.upper())
        if raw is not None:
            values[key] = _env_value(key, raw)
    return values


def _env_value(key: str, raw: str) -> Any:
    if key in _LIST_KEYS:
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw.strip()
