"""
CLI commands for working with the variant cache.

Provides ``pictorium cache get`` (fetch one variant, filling the cache on a
miss), ``pictorium cache flush`` (invalidate) and ``pictorium cache warm``
(pre-fill many files).
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from pictorium.container import container
from pictorium.exceptions import (
    EXIT_CODE_GENERAL_ERROR,
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_INVALID_ARGS,
    EXIT_CODE_NOT_FOUND,
)
from pictorium.models.images import WarmResult
from pictorium.models.results import Err, FailureKind
from pictorium.services.cache_fill import CacheFillPipeline

console = Console()

T = TypeVar("T")

app = typer.Typer(
    name="cache",
    help="Fetch, flush and warm cached image variants.",
    no_args_is_help=True,
)

_NOT_FOUND_KINDS = {FailureKind.UNKNOWN_VARIANT, FailureKind.NOT_FOUND}


def _build_pipeline() -> CacheFillPipeline:
    """Return the application's cache-fill pipeline."""
    return container.pipeline


def _exit_code_for(err: Err) -> int:
    if err.kind in _NOT_FOUND_KINDS:
        return EXIT_CODE_NOT_FOUND
    if err.kind is FailureKind.INVALID_FILENAME:
        return EXIT_CODE_INVALID_ARGS
    return EXIT_CODE_GENERAL_ERROR


def _run(coro_factory: Callable[[], Coroutine[Any, Any, T]]) -> T:
    try:
        return asyncio.run(coro_factory())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


@app.command(name="get")
def get(
    variant: str = typer.Argument(..., help="Variant name, e.g. thumbnail"),
    reference: str = typer.Argument(..., help="Image path at the origin"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the image bytes to this file",
    ),
) -> None:
    """
    Serve one variant, filling the cache if needed.

    Examples:
        pictorium cache get thumbnail products/1234.jpg
        pictorium cache get crop products/1234.jpg -o crop.jpg
    """
    pipeline = _build_pipeline()

    async def _get() -> None:
        try:
            result = await pipeline.get(variant, reference)
        finally:
            await pipeline.close()

        if isinstance(result, Err):
            console.print(f"[red]Error: {result.message}[/red] ({result.kind.value})")
            raise typer.Exit(code=_exit_code_for(result))

        image = result.value
        if output is not None:
            output.write_bytes(image.content)

        table = Table(title="Cached Image", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Variant", image.variant.name)
        table.add_row("Key", image.key)
        table.add_row("Cache", image.cache_status.value)
        table.add_row("Media type", image.media_type)
        table.add_row("Size", f"{image.size_bytes:,} bytes")
        if output is not None:
            table.add_row("Written to", str(output))
        console.print(table)

    _run(_get)


# ---------------------------------------------------------------------------
# flush
# ---------------------------------------------------------------------------


@app.command(name="flush")
def flush(
    variant: str = typer.Argument(..., help="Variant name; the canonical name flushes all"),
    reference: str = typer.Argument(..., help="Image path at the origin"),
) -> None:
    """
    Delete cached forms of an image.

    Flushing the canonical variant (``original``) deletes every variant of
    the image. Deletion failures are reported but never abort the command.

    Examples:
        pictorium cache flush thumbnail products/1234.jpg
        pictorium cache flush original products/1234.jpg
    """
    pipeline = _build_pipeline()

    async def _flush() -> None:
        try:
            report = await pipeline.flush(variant, reference)
        finally:
            await pipeline.close()

        for key in report.deleted:
            console.print(f"[green]✓[/green] {key}")
        for key in report.failed:
            console.print(f"[yellow]![/yellow] {key} (delete failed)")
        if not report.deleted and not report.failed:
            console.print("[yellow]Nothing to flush[/yellow]")

        if not report.ok:
            raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)

    _run(_flush)


# ---------------------------------------------------------------------------
# warm
# ---------------------------------------------------------------------------


def _read_references(from_file: Path) -> list[str]:
    lines = from_file.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


@app.command(name="warm")
def warm(
    references: Optional[List[str]] = typer.Argument(
        None, help="Image paths at the origin"
    ),
    from_file: Optional[Path] = typer.Option(
        None,
        "--from-file",
        "-f",
        help="Read image paths from a file, one per line",
        exists=True,
        dir_okay=False,
    ),
    variants: Optional[List[str]] = typer.Option(
        None,
        "--variant",
        "-V",
        help="Variant to warm (repeatable; default: all)",
    ),
) -> None:
    """
    Pre-fill the cache for many images.

    The canonical variant is filled first for each image so every other
    variant derives from the cached original.

    Examples:
        pictorium cache warm products/1.jpg products/2.jpg
        pictorium cache warm -f refs.txt -V thumbnail -V crop
    """
    refs = list(references or [])
    if from_file is not None:
        refs.extend(_read_references(from_file))
    if not refs:
        console.print("[red]Error: no image paths given[/red]")
        raise typer.Exit(code=EXIT_CODE_INVALID_ARGS)

    pipeline = _build_pipeline()

    unknown = [v for v in (variants or []) if not pipeline.catalog.supports(v)]
    if unknown:
        console.print(
            f"[red]Error: unknown variant(s): {', '.join(unknown)}. "
            f"Available: {', '.join(pipeline.catalog.names)}[/red]"
        )
        raise typer.Exit(code=EXIT_CODE_INVALID_ARGS)

    async def _warm() -> WarmResult:
        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                progress.add_task(f"Warming {len(refs)} image(s)...", total=None)
                return await pipeline.warm(refs, variants or None)
        finally:
            await pipeline.close()

    result = _run(_warm)
    _display_summary(result)

    if result.failed:
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)


def _display_summary(result: WarmResult) -> None:
    """Print a summary table and any failures."""
    table = Table(title="Cache Warming Summary")
    table.add_column("Filled", justify="right", style="green")
    table.add_column("Cached", justify="right", style="cyan")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Total", justify="right")
    table.add_row(
        str(result.filled), str(result.hits), str(result.failed), str(result.total)
    )
    console.print(table)

    for entry, message in result.failures.items():
        console.print(f"  [red]✗[/red] {entry}: {message}")
