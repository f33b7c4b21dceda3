"""Shared Pydantic models for siena."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

# ── Enums ──


class ImageFormat(StrEnum):
    JPG = "jpg"
    WEBP = "webp"
    AVIF = "avif"


CANONICAL_FORMAT = ImageFormat.JPG


class GcScope(StrEnum):
    SESSION = "session"
    PER_DOCUMENT = "per_document"


class Loading(StrEnum):
    LAZY = "lazy"
    EAGER = "eager"


# ── Runtime models ──


class ImageReference(BaseModel):
    src: str
    alt: str | None = None
    document_path: Path | None = None


class RawImage(BaseModel):
    """Raw bytes of a resolved image plus its probed intrinsic size."""

    data: bytes
    width: int | None = None
    height: int | None = None

    @property
    def is_decodable(self) -> bool:
        return bool(self.width) and self.width > 0


class VariantFile(BaseModel):
    image_hash: str
    format: ImageFormat
    width: int
    height: int

    @property
    def file_name(self) -> str:
        return f"{self.image_hash}.{self.format.value}"


class DocumentContext(BaseModel):
    """Per-pass state handed down the tree walk."""

    build_root: Path
    document_path: Path | None = None
    referenced: set[str] = Field(default_factory=set)


class DocumentResult(BaseModel):
    document_path: Path | None = None
    images_rewritten: int = 0
    images_skipped: int = 0
    hashes: set[str] = Field(default_factory=set)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class GcReport(BaseModel):
    deleted: list[str] = Field(default_factory=list)
    removed_hashes: set[str] = Field(default_factory=set)
    failures: dict[str, str] = Field(default_factory=dict)


class BuildReport(BaseModel):
    documents: list[DocumentResult] = Field(default_factory=list)
    gc: GcReport | None = None

    @property
    def failed(self) -> list[DocumentResult]:
        return [d for d in self.documents if d.failed]

    @property
    def images_rewritten(self) -> int:
        return sum(d.images_rewritten for d in self.documents)
