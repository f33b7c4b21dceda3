"""Variant generation — get-or-create resized, re-encoded copies of an image."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Iterable
from pathlib import Path

from siena.cache.index import CacheIndex
from siena.cache.stats import CacheStats
from siena.errors.exceptions import GenerationError
from siena.images.codec import ImageCodec, PillowCodec
from siena.types import CANONICAL_FORMAT, ImageFormat, RawImage, VariantFile

logger = logging.getLogger(__name__)

DEFAULT_MAX_WIDTH = 1920


class VariantGenerator:
    """Writes ``<hash>.<format>`` files into the cache directory on demand.

    The jpg variant is canonical: its dimensions are probed on a cache hit
    and reused for every other format, since all formats come from the same
    resize and not every format can be probed.

    Work on one hash is serialised by a per-hash lock, so concurrent
    references to identical bytes produce one write per format; the later
    ones find the hash in the index and take the cache-read path.
    """

    def __init__(
        self,
        cache_dir: Path,
        index: CacheIndex,
        codec: ImageCodec | None = None,
        max_width: int = DEFAULT_MAX_WIDTH,
        stats: CacheStats | None = None,
    ) -> None:
        self._cache_dir = cache_dir
        self._index = index
        self._codec = codec or PillowCodec()
        self._max_width = max_width
        self._stats = stats or CacheStats()
        self._in_flight: dict[str, asyncio.Lock] = {}
        self._waiting: dict[str, int] = {}

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def codec(self) -> ImageCodec:
        return self._codec

    def target_width(self, intrinsic_width: int) -> int:
        """Never upscale, never exceed ``max_width``."""
        return min(intrinsic_width, self._max_width)

    def variant_path(self, image_hash: str, image_format: ImageFormat) -> Path:
        return self._cache_dir / f"{image_hash}.{image_format.value}"

    async def generate_set(
        self,
        image: RawImage,
        image_hash: str,
        formats: Iterable[ImageFormat],
    ) -> list[VariantFile]:
        """Get or create the jpg variant, then each additional format in order.

        The hash is recorded in the index only once every variant exists.
        """
        async with self._hash_lock(image_hash):
            canonical = await self.get_or_create_variant(image, image_hash, CANONICAL_FORMAT)
            variants = [canonical]
            for image_format in formats:
                if image_format == CANONICAL_FORMAT:
                    continue
                variants.append(
                    await self.get_or_create_variant(image, image_hash, image_format, canonical)
                )
            self._index.record(image_hash)
        return variants

    async def get_or_create_variant(
        self,
        image: RawImage,
        image_hash: str,
        image_format: ImageFormat,
        canonical: VariantFile | None = None,
    ) -> VariantFile:
        """Return metadata for one variant, writing the file only on a miss."""
        if not image.is_decodable:
            raise ValueError(f"Image {image_hash} has no usable width")

        if image_format == CANONICAL_FORMAT:
            if self._index.contains(image_hash):
                existing = await asyncio.to_thread(self._read_existing, image_hash)
                if existing is not None:
                    self._stats.hits += 1
                    return existing
            self._stats.misses += 1
            width, height = await self._encode(image, image_hash, image_format)
            return VariantFile(
                image_hash=image_hash, format=image_format, width=width, height=height
            )

        if canonical is None:
            raise ValueError(f"{image_format.value} variant needs the canonical jpg variant")

        path = self.variant_path(image_hash, image_format)
        if self._index.contains(image_hash) and path.is_file():
            self._stats.variants_reused += 1
        else:
            await self._encode(image, image_hash, image_format)
        return VariantFile(
            image_hash=image_hash,
            format=image_format,
            width=canonical.width,
            height=canonical.height,
        )

    def _read_existing(self, image_hash: str) -> VariantFile | None:
        path = self.variant_path(image_hash, CANONICAL_FORMAT)
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.debug("Cached %s unreadable, regenerating: %s", path.name, e)
            return None
        size = self._codec.probe(data)
        if size is None:
            logger.debug("Cached %s has no usable size, regenerating", path.name)
            return None
        return VariantFile(
            image_hash=image_hash, format=CANONICAL_FORMAT, width=size[0], height=size[1]
        )

    async def _encode(
        self,
        image: RawImage,
        image_hash: str,
        image_format: ImageFormat,
    ) -> tuple[int, int]:
        path = self.variant_path(image_hash, image_format)
        width = self.target_width(image.width or 0)
        try:
            size = await asyncio.to_thread(
                self._codec.encode, image.data, width, image_format, path
            )
        except Exception as e:
            raise GenerationError(
                f"Failed to generate {path.name}: {e}",
                image_hash=image_hash,
                image_format=image_format.value,
                original=e,
            ) from e
        self._stats.variants_written += 1
        logger.debug("Wrote %s (%dx%d)", path.name, size[0], size[1])
        return size

    @contextlib.asynccontextmanager
    async def _hash_lock(self, image_hash: str) -> AsyncIterator[None]:
        """Hold the lock for ``image_hash``; it is dropped once no task holds or awaits it."""
        lock = self._in_flight.get(image_hash)
        if lock is None:
            lock = asyncio.Lock()
            self._in_flight[image_hash] = lock
        self._waiting[image_hash] = self._waiting.get(image_hash, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiting[image_hash] -= 1
            if not self._waiting[image_hash]:
                del self._waiting[image_hash]
                del self._in_flight[image_hash]
