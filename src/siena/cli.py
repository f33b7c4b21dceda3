"""Click CLI for siena — rewrite images in built HTML into responsive pictures."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from siena.config.hierarchy import load_config
from siena.errors.exceptions import SienaError
from siena.types import BuildReport, GcScope, Loading

console = Console()
error_console = Console(stderr=True)


_VERBOSITY_LEVELS = {1: logging.INFO, 2: logging.DEBUG}


def _setup_logging(verbosity: int, configured_level: str = "WARNING") -> None:
    """-v / -vv win over the configured ``log_level``."""
    level = _VERBOSITY_LEVELS.get(
        min(verbosity, 2),
        logging.getLevelNamesMapping().get(configured_level.upper(), logging.WARNING),
    )
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


_root_option = click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Build root; the cache lives in <root>/<output-dir>/<cache-dir-name>.",
)
_output_dir_option = click.option(
    "--output-dir", type=str, default=None, help="Output directory under the build root."
)


@click.group()
@click.version_option(package_name="siena")
def cli() -> None:
    """siena — responsive, cached <picture> markup for rendered markdown."""


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@_root_option
@_output_dir_option
@click.option(
    "--loading",
    type=click.Choice([item.value for item in Loading]),
    default=None,
    help="Value of the img loading attribute.",
)
@click.option(
    "--gc-scope",
    type=click.Choice([item.value for item in GcScope]),
    default=None,
    help=(
        "When stale variants are garbage-collected. per_document processes documents"
        " one at a time and deletes variants that only other documents use."
    ),
)
@click.option("--workers", type=int, default=None, help="Documents processed concurrently.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def build(
    paths: tuple[Path, ...],
    root: Path,
    output_dir: str | None,
    loading: str | None,
    gc_scope: str | None,
    workers: int | None,
    verbose: int,
) -> None:
    """Rewrite <img> tags in HTML files (or directories of them) in place."""
    from siena.core import Siena

    try:
        config = load_config(
            output_dir=output_dir,
            loading=loading,
            gc_scope=gc_scope,
            max_workers=workers,
        )
    except SienaError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    _setup_logging(verbose, config.log_level)

    siena = Siena(root, config=config)

    async def _run() -> BuildReport:
        try:
            return await siena.build(paths)
        finally:
            await siena.close()

    try:
        report = asyncio.run(_run())
    except SienaError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    for failed in report.failed:
        error_console.print(f"[red]Failed:[/red] {failed.document_path}: {failed.error}")

    console.print(
        f"[green]Processed {len(report.documents)} documents, "
        f"rewrote {report.images_rewritten} images.[/green]"
    )
    if report.gc is not None and report.gc.deleted:
        console.print(f"Removed {len(report.gc.deleted)} stale variant files.")
    if verbose >= 1:
        _print_summary(report, siena.stats.hits, siena.stats.misses)
    if report.failed:
        sys.exit(1)


def _print_summary(report: BuildReport, hits: int, misses: int) -> None:
    """Print a build summary."""
    error_console.print()
    table = Table(title="Build Summary", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Documents", str(len(report.documents)))
    table.add_row("Failed", str(len(report.failed)))
    table.add_row("Images rewritten", str(report.images_rewritten))
    table.add_row("Cache hits", str(hits))
    table.add_row("Cache misses", str(misses))
    if report.gc is not None:
        table.add_row("Stale hashes removed", str(len(report.gc.removed_hashes)))

    error_console.print(table)


@cli.group()
def cache() -> None:
    """Cache management commands."""


@cache.command("stats")
@_root_option
@_output_dir_option
def cache_stats(root: Path, output_dir: str | None) -> None:
    """Show what is in the variant cache."""
    from siena.cache.stats import DirectoryStats

    try:
        config = load_config(output_dir=output_dir)
        cache_dir = config.cache_dir(root)
        stats = DirectoryStats.scan(cache_dir)
    except (SienaError, OSError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Directory", str(cache_dir))
    table.add_row("Images", str(stats.hashes))
    table.add_row("Files", str(stats.files))
    table.add_row("Size (MB)", f"{stats.size_mb:.1f}")
    for fmt, count in stats.per_format.items():
        table.add_row(f"  {fmt}", str(count))

    console.print(table)


@cache.command("clear")
@_root_option
@_output_dir_option
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
def cache_clear(root: Path, output_dir: str | None) -> None:
    """Delete every generated variant."""
    removed = 0
    try:
        config = load_config(output_dir=output_dir)
        cache_dir = config.cache_dir(root)
        if cache_dir.is_dir():
            for path in sorted(cache_dir.iterdir()):
                if path.is_file():
                    path.unlink()
                    removed += 1
    except (SienaError, OSError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        if removed:
            error_console.print(f"Removed {removed} files before the error.")
        sys.exit(1)
    console.print(f"[green]Cache cleared ({removed} files).[/green]")


def main() -> None:
    """Entry point for the CLI."""
    cli()
