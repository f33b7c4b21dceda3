"""Garbage collection of variants whose hash is no longer referenced."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from siena.cache.index import CacheIndex
from siena.types import GcReport

logger = logging.getLogger(__name__)


def collect_garbage(
    cache_dir: Path,
    index: CacheIndex,
    referenced: Iterable[str],
) -> GcReport:
    """Delete every variant for hashes in ``index`` but not in ``referenced``.

    All ``<hash>.*`` files go together and the hash leaves the index.
    A file that cannot be deleted is logged and reported; the pass goes on.
    """
    keep = set(referenced)
    report = GcReport()
    stale = sorted(h for h in index.hashes if h not in keep)
    if not stale:
        return report

    files = sorted(cache_dir.iterdir()) if cache_dir.is_dir() else []
    for image_hash in stale:
        prefix = f"{image_hash}."
        for path in (p for p in files if p.name.startswith(prefix)):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Failed to delete stale variant %s: %s", path, e)
                report.failures[path.name] = str(e)
                continue
            report.deleted.append(path.name)
        index.discard(image_hash)
        report.removed_hashes.add(image_hash)

    logger.info(
        "Garbage collected %d hashes (%d files) from %s",
        len(report.removed_hashes),
        len(report.deleted),
        cache_dir,
    )
    return report
