"""
Diagnostic side channel for cache-fill failures.

Every failed ``get`` is reported here before the ``Err`` is returned to the
caller, giving operators one place to watch for origin outages, corrupt
originals and store problems.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pictorium.models.results import Err, FailureKind

DIAGNOSTICS_LOGGER_NAME = "pictorium.diagnostics"


class DiagnosticEvent(BaseModel):
    """One reported failure.

    Attributes
    ----------
    variant : str
        Requested variant name.
    filename : str
        Requested filename.
    kind : FailureKind
        Failure category.
    message : str
        Human-readable description.
    occurred_at : datetime
        UTC time the failure was reported.
    """

    model_config = ConfigDict(frozen=True)

    variant: str
    filename: str
    kind: FailureKind
    message: str
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_err(
        cls, err: Err, *, variant: str, filename: str
    ) -> "DiagnosticEvent":
        """Build an event from a failed result."""
        return cls(variant=variant, filename=filename, kind=err.kind, message=err.message)


class DiagnosticSink(ABC):
    """Receives failure events from the pipeline. Must not raise."""

    @abstractmethod
    def report(self, event: DiagnosticEvent) -> None:
        """Record *event*."""
        pass


class LoggingDiagnosticSink(DiagnosticSink):
    """Writes events to the ``pictorium.diagnostics`` logger.

    Client faults (unknown variant, invalid filename) are logged at INFO,
    everything else at ERROR.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(DIAGNOSTICS_LOGGER_NAME)

    def report(self, event: DiagnosticEvent) -> None:
        level = logging.INFO if event.kind.is_client_error else logging.ERROR
        self._logger.log(
            level,
            "cache fill failed: variant=%s filename=%s kind=%s: %s",
            event.variant,
            event.filename,
            event.kind.value,
            event.message,
        )
