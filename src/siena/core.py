"""Top-level entry points: the Siena pipeline and build()."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path
from types import TracebackType

import httpx

from siena.cache.gc import collect_garbage
from siena.cache.index import CacheIndex
from siena.cache.stats import CacheStats
from siena.concurrency.pool import ConcurrencyPool
from siena.config.schema import SienaConfig
from siena.errors.exceptions import DocumentError, SienaError
from siena.images.codec import ImageCodec, PillowCodec
from siena.images.resolver import ImageResolver
from siena.images.variants import VariantGenerator
from siena.tree.html import parse_html, render_html
from siena.tree.nodes import Root, find_images
from siena.tree.walker import TreeWalker
from siena.types import BuildReport, DocumentContext, DocumentResult, GcReport, GcScope

logger = logging.getLogger(__name__)


class Siena:
    """Responsive-image pipeline with full lifecycle control.

    One instance owns one cache directory and one cache index. A session
    is opened with :meth:`begin_session` (creates the directory and scans
    it), documents are passed through :meth:`process_document`, and
    :meth:`end_session` garbage-collects variants no document referenced.

    With ``gc_scope=per_document`` the index is re-scanned before and
    collected after every document, against that document's hashes only.
    That keeps the cache minimal for single-document hosts but deletes
    variants other documents of the same build still need, so it is only
    safe when each build processes exactly one document. :meth:`build` runs
    documents one at a time in this scope.
    """

    def __init__(
        self,
        build_root: str | Path,
        config: SienaConfig | None = None,
        codec: ImageCodec | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._build_root = Path(build_root)
        self._config = config or SienaConfig()
        self._cache_dir = self._config.cache_dir(self._build_root)
        self._index = CacheIndex(self._cache_dir)
        self._stats = CacheStats()
        self._resolver = ImageResolver(client=http_client, timeout=self._config.fetch_timeout)
        self._generator = VariantGenerator(
            self._cache_dir,
            self._index,
            codec=codec or PillowCodec(quality=self._config.quality),
            max_width=self._config.max_width,
            stats=self._stats,
        )
        self._walker = TreeWalker(
            self._resolver,
            self._generator,
            cache_dir_name=self._config.cache_dir_name,
            loading=self._config.loading,
            formats=self._config.formats,
        )
        self._session_referenced: set[str] = set()
        self._session_open = False

    @property
    def config(self) -> SienaConfig:
        return self._config

    @property
    def build_root(self) -> Path:
        return self._build_root

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def index(self) -> CacheIndex:
        return self._index

    @property
    def stats(self) -> CacheStats:
        return self._stats

    # ── Session lifecycle ──

    def begin_session(self) -> None:
        """Create the cache directory if needed and load the index from it."""
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        self._index.reset()
        self._session_referenced = set()
        self._session_open = True
        logger.info("Session started: %d cached images in %s", len(self._index), self._cache_dir)

    def end_session(self) -> GcReport | None:
        """Close the session; in session scope, collect unreferenced variants."""
        self._session_open = False
        if self._config.gc_scope != GcScope.SESSION:
            return None
        return collect_garbage(self._cache_dir, self._index, self._session_referenced)

    async def close(self) -> None:
        await self._resolver.close()

    async def __aenter__(self) -> Siena:
        self.begin_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.end_session()
        finally:
            await self.close()

    # ── Documents ──

    async def process_document(
        self,
        tree: Root,
        document_path: str | Path | None = None,
        build_root: str | Path | None = None,
    ) -> DocumentResult:
        """Rewrite every eligible image in ``tree`` in place.

        ``document_path`` is the file the tree was rendered from; without it
        local images cannot be resolved and are left alone. ``build_root``
        defaults to the instance's root and only affects path resolution.

        Raises :class:`DocumentError` if an image cannot be resolved or a
        variant cannot be generated.
        """
        if not self._session_open:
            self.begin_session()
        per_document = self._config.gc_scope == GcScope.PER_DOCUMENT
        if per_document:
            self._index.reset()

        doc_path = Path(document_path) if document_path is not None else None
        context = DocumentContext(
            build_root=Path(build_root) if build_root is not None else self._build_root,
            document_path=doc_path,
        )
        candidates = _count_candidates(tree)

        try:
            await self._walker.walk(tree, context)
        except SienaError as e:
            raise DocumentError(
                f"Processing {doc_path or '<document>'} failed: {e.message}",
                document_path=doc_path,
                inner=e,
            ) from e
        finally:
            self._session_referenced |= context.referenced

        skipped = _count_candidates(tree)
        result = DocumentResult(
            document_path=doc_path,
            images_rewritten=candidates - skipped,
            images_skipped=skipped,
            hashes=set(context.referenced),
        )
        if per_document:
            collect_garbage(self._cache_dir, self._index, context.referenced)
        logger.debug(
            "Processed %s: %d rewritten, %d skipped",
            doc_path or "<document>",
            result.images_rewritten,
            result.images_skipped,
        )
        return result

    async def process_html_file(self, path: str | Path) -> DocumentResult:
        """Parse an HTML file, rewrite its images, and write it back if anything changed."""
        path = Path(path)
        source = await asyncio.to_thread(path.read_text, encoding="utf-8")
        tree = parse_html(source)
        result = await self.process_document(tree, document_path=path)
        if result.images_rewritten:
            await asyncio.to_thread(path.write_text, render_html(tree), encoding="utf-8")
        return result

    async def build(self, paths: Iterable[str | Path]) -> BuildReport:
        """Process HTML files (or directories of them) as one session."""
        documents = find_html_documents(paths, exclude=self._cache_dir)
        self.begin_session()
        workers = self._config.max_workers
        if self._config.gc_scope == GcScope.PER_DOCUMENT:
            # Each document collects against its own hashes only
            workers = 1
            if len(documents) > 1:
                logger.warning(
                    "gc_scope=per_document with %d documents: running them one at a time; "
                    "each one deletes variants that only other documents use",
                    len(documents),
                )
        pool = ConcurrencyPool(max_workers=workers)
        results = await pool.process_batch(self.process_html_file, documents)
        report = BuildReport(documents=results)
        if report.failed:
            # A failed document may reference variants it never reached
            self._session_open = False
            logger.warning(
                "Skipping garbage collection: %d documents failed", len(report.failed)
            )
        else:
            report.gc = self.end_session()
        return report


def find_html_documents(paths: Iterable[str | Path], exclude: Path | None = None) -> list[Path]:
    """Expand directories to the ``*.html`` files below them, sorted and de-duplicated."""
    found: dict[Path, None] = {}
    excluded = exclude.resolve() if exclude is not None else None
    for raw in paths:
        path = Path(raw)
        candidates = sorted(path.rglob("*.html")) if path.is_dir() else [path]
        for candidate in candidates:
            resolved = candidate.resolve()
            if excluded is not None and excluded in resolved.parents:
                continue
            found.setdefault(candidate, None)
    return list(found)


def _count_candidates(tree: Root) -> int:
    return sum(1 for img in find_images(tree) if img.src and not img.processed)


# ── Module-level convenience functions ──


def build(
    build_root: str | Path,
    paths: Iterable[str | Path],
    config: SienaConfig | None = None,
) -> BuildReport:
    """Rewrite images in HTML files under ``build_root`` (sync wrapper)."""
    siena = Siena(build_root, config=config)

    async def _run() -> BuildReport:
        try:
            return await siena.build(paths)
        finally:
            await siena.close()

    return asyncio.run(_run())
