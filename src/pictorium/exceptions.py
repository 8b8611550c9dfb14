"""
Custom exceptions for the pictorium application.

This module defines domain-specific exceptions mirroring the cache-fill
failure taxonomy, the API layer exceptions rendered as RFC 7807 problem
details, and the CLI exit codes.
"""

from __future__ import annotations

from typing import Any

from pictorium.api.schemas.responses import (
    ERROR_TITLES,
    ErrorCode,
    get_error_type_uri,
)
from pictorium.models.results import Err, FailureKind


class PictoriumError(Exception):
    """Base exception for all pictorium errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize PictoriumError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        """
        self.message = message
        super().__init__(message)


# =============================================================================
# Cache-fill Exceptions
# =============================================================================


class CacheFillError(PictoriumError):
    """
    Base exception for cache-fill failures.

    The pipeline itself returns ``Err`` values; these exceptions are raised
    by the pure helpers (catalog lookup, key derivation) and converted to
    ``Err`` at the pipeline boundary using ``kind``.

    Attributes
    ----------
    message : str
        Human-readable error message.
    kind : FailureKind
        The failure category this exception represents.
    """

    kind: FailureKind = FailureKind.IO_FAILURE


class UnknownVariantError(CacheFillError):
    """
    Exception raised when a variant name is not in the catalog.

    Attributes
    ----------
    variant_name : str
        The name that was looked up.

    Examples
    --------
    >>> try:
    ...     catalog.lookup("huge")
    ... except UnknownVariantError as e:
    ...     print(f"No predefined type: {e.variant_name}")
    """

    kind = FailureKind.UNKNOWN_VARIANT

    def __init__(self, variant_name: str) -> None:
        """
        Initialize UnknownVariantError.

        Parameters
        ----------
        variant_name : str
            The variant name that is not registered.
        """
        self.variant_name = variant_name
        super().__init__(f"No predefined type: {variant_name}")


class InvalidFilenameError(CacheFillError):
    """
    Exception raised when a filename cannot be mapped to a storage key.

    Raised for empty names, path-traversal segments (``..``), backslashes
    and control characters.

    Attributes
    ----------
    filename : str
        The rejected filename.
    reason : str
        Why the filename was rejected.
    """

    kind = FailureKind.INVALID_FILENAME

    def __init__(self, filename: str, reason: str) -> None:
        """
        Initialize InvalidFilenameError.

        Parameters
        ----------
        filename : str
            The rejected filename.
        reason : str
            Why the filename was rejected.
        """
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid filename {filename!r}: {reason}")


# =============================================================================
# API Layer Exceptions
# =============================================================================


class APIError(PictoriumError):
    """Base class for errors a route raises to produce a problem response.

    Subclasses fix ``status_code`` and the :class:`ErrorCode` reported to
    clients; the registered exception handler renders them.

    Attributes
    ----------
    message : str
        Becomes the problem ``detail``.
    details : dict[str, Any] | None
        Extra context kept for logging.
    """

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.details = details
        super().__init__(message)

    @property
    def error_code(self) -> ErrorCode:
        """The :class:`ErrorCode` for this error."""
        return self.code

    def to_problem_detail(self, instance: str, request_id: str) -> dict[str, Any]:
        """Render as a problem document.

        Parameters
        ----------
        instance : str
            Request path the error occurred on.
        request_id : str
            Correlation ID of the request.

        Returns
        -------
        dict[str, Any]
            Fields of :class:`~pictorium.api.schemas.responses.ProblemDetail`.
        """
        return {
            "type": get_error_type_uri(self.code),
            "title": ERROR_TITLES.get(self.code, "Error"),
            "status": self.status_code,
            "detail": self.message,
            "instance": instance,
            "code": self.code.value,
            "request_id": request_id,
        }


class NotFoundError(APIError):
    """An unknown variant, or an image the origin does not have (404).

    Examples
    --------
    >>> str(NotFoundError("Variant", "huge"))
    "Variant 'huge' not found"
    """

    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource_type: str, identifier: str, hint: str | None = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        message = f"{resource_type} '{identifier}' not found"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(
            message, details={"resource_type": resource_type, "identifier": identifier}
        )


class BadRequestError(APIError):
    """A reference that cannot name a cached image (400)."""

    status_code = 400
    code = ErrorCode.BAD_REQUEST


class ExternalServiceError(APIError):
    """The origin or the blob store failed (502)."""

    status_code = 502
    code = ErrorCode.EXTERNAL_SERVICE_ERROR


class ServiceUnavailableError(APIError):
    """A variant could not be encoded or durably stored (503)."""

    status_code = 503
    code = ErrorCode.SERVICE_UNAVAILABLE


def api_error_for(err: Err, *, variant_name: str, filename: str) -> APIError:
    """Map a failed pipeline result to the API exception to raise.

    Client faults become 4xx, infrastructure faults 5xx.

    Parameters
    ----------
    err : Err
        The failed pipeline result.
    variant_name : str
        Requested variant name (for the error detail).
    filename : str
        Requested filename (for the error detail).

    Returns
    -------
    APIError
        The exception to raise from the route.
    """
    details = {"variant": variant_name, "reference": filename, "reason": err.kind.value}

    if err.kind is FailureKind.UNKNOWN_VARIANT:
        return NotFoundError(resource_type="Variant", identifier=variant_name)
    if err.kind is FailureKind.NOT_FOUND:
        return NotFoundError(
            resource_type="Image",
            identifier=filename,
            hint="Image not found on source",
        )
    if err.kind is FailureKind.INVALID_FILENAME:
        return BadRequestError(message=err.message, details=details)
    if err.kind in (
        FailureKind.UPSTREAM_UNAVAILABLE,
        FailureKind.IO_FAILURE,
        FailureKind.DECODE_ERROR,
    ):
        return ExternalServiceError(message=err.message, details=details)
    return ServiceUnavailableError(message=err.message, details=details)


# Exit codes for CLI integration
EXIT_CODE_SUCCESS = 0
EXIT_CODE_GENERAL_ERROR = 1
EXIT_CODE_INVALID_ARGS = 2
EXIT_CODE_NOT_FOUND = 3
EXIT_CODE_INTERRUPTED = 130  # Standard Unix signal interrupt exit code
