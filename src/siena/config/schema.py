"""Pydantic model for pipeline configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from siena.config import defaults
from siena.errors.exceptions import ConfigError
from siena.types import CANONICAL_FORMAT, GcScope, ImageFormat, Loading


class SienaConfig(BaseModel):
    """Settings fixed for the lifetime of one pipeline instance."""

    output_dir: str = defaults.DEFAULT_OUTPUT_DIR
    cache_dir_name: str = defaults.DEFAULT_CACHE_DIR_NAME
    loading: Loading = Loading(defaults.DEFAULT_LOADING)
    formats: list[ImageFormat] = Field(
        default_factory=lambda: [ImageFormat(f) for f in defaults.DEFAULT_FORMATS]
    )
    max_width: int = Field(default=defaults.DEFAULT_MAX_WIDTH, gt=0)
    quality: dict[ImageFormat, int] = Field(
        default_factory=lambda: {ImageFormat(k): v for k, v in defaults.DEFAULT_QUALITY.items()}
    )
    gc_scope: GcScope = GcScope(defaults.DEFAULT_GC_SCOPE)
    fetch_timeout: float | None = defaults.DEFAULT_FETCH_TIMEOUT
    max_workers: int = Field(default=defaults.DEFAULT_MAX_WORKERS, gt=0)
    log_level: str = defaults.DEFAULT_LOG_LEVEL

    @field_validator("formats")
    @classmethod
    def _additional_formats_only(cls, value: list[ImageFormat]) -> list[ImageFormat]:
        """jpg is always generated; drop it and duplicates, keep order."""
        seen: list[ImageFormat] = []
        for fmt in value:
            if fmt != CANONICAL_FORMAT and fmt not in seen:
                seen.append(fmt)
        return seen

    @field_validator("cache_dir_name")
    @classmethod
    def _plain_dir_name(cls, value: str) -> str:
        name = value.strip("/")
        if not name or "/" in name:
            raise ValueError(f"cache_dir_name must be a single directory name, got {value!r}")
        return name

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SienaConfig:
        """Build a config from a merged mapping, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.model_fields}
        try:
            return cls(**known)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"]) or None
            raise ConfigError(f"Invalid configuration: {e}", key=key) from e

    def cache_dir(self, build_root: Path) -> Path:
        """Absolute location of the variant cache for a build rooted at ``build_root``."""
        return build_root / self.output_dir / self.cache_dir_name
