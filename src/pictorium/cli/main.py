"""
Main CLI entry point for pictorium.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pictorium import __version__
from pictorium.cli.commands.api import api_app
from pictorium.cli.commands.cache import app as cache_app
from pictorium.config.settings import settings
from pictorium.container import container
from pictorium.utils.log_setup import configure_logging

console = Console()

app = typer.Typer(
    name="pictorium",
    help="On-demand image variant cache",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Add subcommands
app.add_typer(cache_app, name="cache", help="Cache commands")
app.add_typer(api_app, name="api", help="API server commands")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel(
            f"[bold blue]pictorium[/bold blue] v{__version__}",
            title="Version",
            border_style="blue",
        )
    )


@app.command()
def variants() -> None:
    """List the registered image variants."""
    catalog = container.catalog

    table = Table(title="Variants")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Mode")
    table.add_column("Encoding")
    table.add_column("Quality", justify="right")
    table.add_column("Fill")

    for name in catalog.names:
        definition = catalog.lookup(name)
        size = (
            "[dim]original[/dim]"
            if definition.is_passthrough
            else f"{definition.width}x{definition.height}"
        )
        table.add_row(
            definition.name,
            size,
            definition.scale_mode.value,
            definition.encoding.value,
            str(definition.quality),
            definition.fill_color_hex,
        )

    console.print(table)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Log at DEBUG level"
    ),
) -> None:
    """
    pictorium - On-demand image variant cache.

    Serves pre-defined variants of origin images, deriving and storing each
    variant on first request.
    """
    if version:
        console.print(f"pictorium v{__version__}")
        raise typer.Exit(code=0)

    configure_logging(
        "DEBUG" if verbose else settings.log_level,
        logs_dir=settings.logs_dir,
        log_to_file=settings.log_to_file,
    )

    if ctx.invoked_subcommand is None:
        console.print(
            "[yellow]Use 'pictorium --help' for available commands[/yellow]"
        )
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
