"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Output layout
DEFAULT_OUTPUT_DIR = "public"
DEFAULT_CACHE_DIR_NAME = ".siena"

# Markup
DEFAULT_LOADING = "lazy"
DEFAULT_FORMATS = ["webp", "avif"]

# Generation
DEFAULT_MAX_WIDTH = 1920
DEFAULT_QUALITY = {"jpg": 80, "webp": 80, "avif": 50}

# Cache lifecycle
DEFAULT_GC_SCOPE = "session"

# Network / concurrency
DEFAULT_FETCH_TIMEOUT = None
DEFAULT_MAX_WORKERS = 5

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "output_dir": DEFAULT_OUTPUT_DIR,
        "cache_dir_name": DEFAULT_CACHE_DIR_NAME,
        "loading": DEFAULT_LOADING,
        "formats": list(DEFAULT_FORMATS),
        "max_width": DEFAULT_MAX_WIDTH,
        "quality": dict(DEFAULT_QUALITY),
        "gc_scope": DEFAULT_GC_SCOPE,
        "fetch_timeout": DEFAULT_FETCH_TIMEOUT,
        "max_workers": DEFAULT_MAX_WORKERS,
        "log_level": DEFAULT_LOG_LEVEL,
    }
