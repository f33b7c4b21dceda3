"""Custom exception hierarchy for siena."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class SienaError(Exception):
    """Base exception for all siena errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class ResolutionError(SienaError):
    """An image reference could not be turned into bytes.

    Examples: local file missing or unreadable, remote fetch failed or timed out.
    """

    def __init__(
        self,
        message: str = "",
        src: str = "",
        http_status: int | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.src = src
        self.http_status = http_status
        self.original = original


class GenerationError(SienaError):
    """Resizing or encoding a variant failed."""

    def __init__(
        self,
        message: str = "",
        image_hash: str = "",
        image_format: str = "",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.image_hash = image_hash
        self.image_format = image_format
        self.original = original


class DocumentError(SienaError):
    """Error isolated to a single document; other documents continue."""

    def __init__(
        self,
        message: str = "",
        document_path: Path | None = None,
        inner: SienaError | None = None,
    ) -> None:
        super().__init__(message)
        self.document_path = document_path
        self.inner = inner


class ConfigError(SienaError):
    """Invalid configuration value."""

    def __init__(self, message: str = "", key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
