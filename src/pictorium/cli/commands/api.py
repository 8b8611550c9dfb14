"""``pictorium api`` commands: run the HTTP front end under uvicorn."""

from __future__ import annotations

from typing import Any

import typer

from pictorium.config.settings import settings

APP_PATH = "pictorium.api.main:app"
PRODUCTION_WORKERS = 2

api_app = typer.Typer(
    name="api",
    help="Serve the image variant API",
    no_args_is_help=True,
)


@api_app.command()
def start(
    host: str = typer.Option("127.0.0.1", "--host", help="Address to listen on"),
    port: int = typer.Option(8000, "--port", "-p", help="TCP port to listen on"),
    production: bool = typer.Option(
        False, "--production", help="Use worker processes instead of auto-reload"
    ),
) -> None:
    """
    Serve the API.

    By default the server reloads on source changes and logs at info (debug
    when DEBUG is set). With --production it forks worker
    processes and only logs warnings.

    Examples:
        pictorium api start --port 3000
        pictorium api start --host 0.0.0.0 --production
    """
    import uvicorn

    options: dict[str, Any] = {"host": host, "port": port}
    if production:
        options.update(workers=PRODUCTION_WORKERS, log_level="warning")
    else:
        options.update(reload=True, log_level="debug" if settings.debug else "info")

    uvicorn.run(APP_PATH, **options)
