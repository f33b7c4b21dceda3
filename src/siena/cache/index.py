"""Cache index — in-memory set of hashes with variants on disk."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from siena.cache.keys import hash_from_filename

logger = logging.getLogger(__name__)


class CacheIndex:
    """Set of content hashes believed to have a ``<hash>.jpg`` in the cache directory.

    The directory listing is the source of truth; the index is a snapshot of
    it taken by :meth:`load` or :meth:`reset` and extended by :meth:`record`
    as variants are generated. Only the garbage collector removes entries.
    """

    def __init__(self, cache_dir: Path, hashes: set[str] | None = None) -> None:
        self._cache_dir = cache_dir
        self._hashes: set[str] = set(hashes or ())

    @classmethod
    def load(cls, cache_dir: Path) -> CacheIndex:
        """Scan ``cache_dir`` and build an index from the file names found."""
        index = cls(cache_dir)
        index.reset()
        return index

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def hashes(self) -> frozenset[str]:
        return frozenset(self._hashes)

    def contains(self, image_hash: str) -> bool:
        return image_hash in self._hashes

    def record(self, image_hash: str) -> None:
        """Mark a hash as present after its variants were written."""
        self._hashes.add(image_hash)

    def discard(self, image_hash: str) -> None:
        self._hashes.discard(image_hash)

    def reset(self) -> None:
        """Drop the in-memory state and re-scan the cache directory."""
        self._hashes = _scan(self._cache_dir)
        logger.debug("Loaded %d cached hashes from %s", len(self._hashes), self._cache_dir)

    def __contains__(self, image_hash: object) -> bool:
        return image_hash in self._hashes

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._hashes))

    def __len__(self) -> int:
        return len(self._hashes)


def _scan(cache_dir: Path) -> set[str]:
    if not cache_dir.is_dir():
        return set()
    hashes: set[str] = set()
    for path in cache_dir.iterdir():
        if not path.is_file():
            continue
        image_hash = hash_from_filename(path.name)
        if image_hash:
            hashes.add(image_hash)
    return hashes
