"""
Logging configuration.

Installs handlers on the ``pictorium`` logger with a format that carries
the current request ID (``-`` outside API requests).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pictorium.api.middleware.request_id import RequestIdFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
LOG_FILE_NAME = "pictorium.log"

_HANDLER_MARKER = "_pictorium_handler"


def configure_logging(
    level: str = "INFO",
    *,
    logs_dir: Optional[Path] = None,
    log_to_file: bool = False,
) -> logging.Logger:
    """Configure the ``pictorium`` logger.

    Safe to call repeatedly: handlers installed by an earlier call are
    replaced rather than duplicated.

    Parameters
    ----------
    level : str
        Log level name, e.g. ``"INFO"``.
    logs_dir : Path, optional
        Directory for the log file when *log_to_file* is set.
    log_to_file : bool
        Also write to ``<logs_dir>/pictorium.log``.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    root = logging.getLogger("pictorium")
    root.setLevel(level.upper())

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_to_file and logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(logs_dir / LOG_FILE_NAME, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        setattr(handler, _HANDLER_MARKER, True)
        root.addHandler(handler)

    return root
