"""JSON envelopes and RFC 7807 problem documents returned by the API.

Successful JSON endpoints wrap their payload as ``{"data": ...}``. Failures
are answered with ``application/problem+json`` bodies whose ``code`` is one
of :class:`ErrorCode`.
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse


class ErrorCode(str, Enum):
    """Machine-readable error codes.

    ``NOT_FOUND`` (404) covers both unknown variants and images missing at
    the origin; ``BAD_REQUEST`` (400) an unusable reference;
    ``VALIDATION_ERROR`` (422) malformed query or path parameters.
    ``EXTERNAL_SERVICE_ERROR`` (502) means the origin or the blob store
    failed, ``SERVICE_UNAVAILABLE`` (503) that a variant could not be
    encoded or stored, ``INTERNAL_ERROR`` (500) anything unexpected.
    """

    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


ERROR_TYPE_BASE = "https://api.pictorium.dev/errors"

ERROR_TITLES: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "Resource Not Found",
    ErrorCode.BAD_REQUEST: "Bad Request",
    ErrorCode.VALIDATION_ERROR: "Validation Error",
    ErrorCode.INTERNAL_ERROR: "Internal Server Error",
    ErrorCode.EXTERNAL_SERVICE_ERROR: "External Service Error",
    ErrorCode.SERVICE_UNAVAILABLE: "Service Unavailable",
}


def get_error_type_uri(code: ErrorCode) -> str:
    """``type`` URI of the problem document for *code*.

    Examples
    --------
    >>> get_error_type_uri(ErrorCode.BAD_REQUEST)
    'https://api.pictorium.dev/errors/BAD_REQUEST'
    """
    return f"{ERROR_TYPE_BASE}/{code.value}"


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """``{"data": ...}`` envelope for JSON endpoints."""

    model_config = ConfigDict(strict=True)

    data: T


class ProblemDetail(BaseModel):
    """Problem document for a failed request.

    Besides the RFC 7807 members (``type``, ``title``, ``status``,
    ``detail``, ``instance``) every document carries the ``code`` from
    :class:`ErrorCode` and the ``request_id`` echoed in ``X-Request-ID``.
    """

    type: str = Field(..., examples=["https://api.pictorium.dev/errors/NOT_FOUND"])
    title: str
    status: int = Field(..., ge=400, le=599)
    detail: str = Field(..., examples=["Variant 'huge' not found"])
    instance: str = Field(..., examples=["/image/show/huge"])
    code: str
    request_id: str


class FieldError(BaseModel):
    """One invalid request parameter."""

    loc: list[str | int]  # e.g. ["query", "reference"]
    msg: str
    type: str


class ValidationProblemDetail(ProblemDetail):
    """Problem document for a 422, listing each invalid parameter."""

    errors: list[FieldError]


class ProblemJSONResponse(JSONResponse):
    """JSON response sent as ``application/problem+json``."""

    media_type = "application/problem+json"
