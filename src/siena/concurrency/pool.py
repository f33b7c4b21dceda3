"""Bounded async pool for processing many documents concurrently."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from siena.types import DocumentResult

logger = logging.getLogger(__name__)


class ConcurrencyPool:
    """Runs one coroutine per document, at most ``max_workers`` at a time.

    A document that raises yields a failed :class:`DocumentResult`; the
    other documents in the batch are unaffected.
    """

    def __init__(self, max_workers: int = 5) -> None:
        self._max_workers = max_workers

    @property
    def max_workers(self) -> int:
        return self._max_workers

    async def process_batch(
        self,
        process_fn: Callable[..., Awaitable[DocumentResult]],
        document_paths: list[Path],
        **kwargs: object,
    ) -> list[DocumentResult]:
        """Process a batch of documents concurrently.

        Args:
            process_fn: Async callable(path, **kwargs) -> DocumentResult.
            document_paths: Documents to process.
            **kwargs: Additional args passed to process_fn.

        Returns one DocumentResult per document, in input order.
        """
        semaphore = asyncio.Semaphore(self._max_workers)

        async def worker(path: Path) -> DocumentResult:
            async with semaphore:
                return await process_fn(path, **kwargs)

        results = await asyncio.gather(
            *(worker(p) for p in document_paths), return_exceptions=True
        )

        final: list[DocumentResult] = []
        for path, result in zip(document_paths, results, strict=True):
            if isinstance(result, Exception):
                logger.error("Document %s failed: %s", path, result)
                final.append(DocumentResult(document_path=path, error=str(result)))
            else:
                final.append(result)
        return final
