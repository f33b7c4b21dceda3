"""Cache statistics models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from siena.cache.keys import hash_from_filename


class CacheStats(BaseModel):
    """Counters for one pipeline instance."""

    hits: int = 0
    misses: int = 0
    variants_written: int = 0
    variants_reused: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class DirectoryStats(BaseModel):
    """What is currently on disk in a cache directory."""

    files: int = 0
    hashes: int = 0
    size_mb: float = 0.0
    per_format: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def scan(cls, cache_dir: Path) -> DirectoryStats:
        if not cache_dir.is_dir():
            return cls()
        files = 0
        size = 0
        hashes: set[str] = set()
        per_format: dict[str, int] = {}
        for path in cache_dir.iterdir():
            if not path.is_file():
                continue
            files += 1
            size += path.stat().st_size
            hashes.add(hash_from_filename(path.name))
            suffix = path.suffix.lstrip(".") or "-"
            per_format[suffix] = per_format.get(suffix, 0) + 1
        return cls(
            files=files,
            hashes=len(hashes),
            size_mb=size / (1024 * 1024),
            per_format=dict(sorted(per_format.items())),
        )
