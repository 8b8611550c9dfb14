"""Problem-document rendering for every failure the API can produce.

Three handlers are installed: one for :class:`~pictorium.exceptions.APIError`
raised by routes, one for FastAPI's parameter validation, and a catch-all.
All of them answer ``application/problem+json`` (RFC 7807) carrying the
request's correlation ID.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from pictorium.api.middleware.request_id import get_request_id
from pictorium.api.schemas.responses import (
    ERROR_TITLES,
    ErrorCode,
    FieldError,
    ProblemDetail,
    ProblemJSONResponse,
    ValidationProblemDetail,
    get_error_type_uri,
)
from pictorium.exceptions import APIError, ExternalServiceError

logger = logging.getLogger(__name__)

MAX_DETAIL_LENGTH = 4096
TRUNCATION_SUFFIX = "... (truncated)"

GENERIC_UPSTREAM_DETAIL = "External service unavailable"
GENERIC_INTERNAL_DETAIL = "An unexpected error occurred"


def _truncate_detail(detail: str) -> str:
    """Cap *detail* at ``MAX_DETAIL_LENGTH`` characters, suffix included."""
    if len(detail) > MAX_DETAIL_LENGTH:
        keep = MAX_DETAIL_LENGTH - len(TRUNCATION_SUFFIX)
        return detail[:keep] + TRUNCATION_SUFFIX
    return detail


def _correlation_id(request: Request) -> str:
    # The context variable is already reset when Starlette's outermost
    # error middleware calls the catch-all, so fall back to request.state.
    bound = get_request_id() or getattr(request.state, "request_id", None)
    return str(bound) if bound else "-"


def _problem_fields(request: Request, code: ErrorCode, status: int, detail: str) -> dict:
    return {
        "type": get_error_type_uri(code),
        "title": ERROR_TITLES.get(code, "Error"),
        "status": status,
        "detail": _truncate_detail(detail),
        "instance": str(request.url.path),
        "code": code.value,
        "request_id": _correlation_id(request),
    }


def _problem_response(
    request: Request, code: ErrorCode, status: int, detail: str
) -> ProblemJSONResponse:
    problem = ProblemDetail(**_problem_fields(request, code, status, detail))
    return ProblemJSONResponse(content=problem.model_dump(), status_code=status)


async def api_error_handler(request: Request, exc: APIError) -> ProblemJSONResponse:
    """Render an :class:`APIError` with its own status and message.

    Origin and blob store failures are logged in full but reported to the
    client with a fixed detail.
    """
    detail = exc.message
    if isinstance(exc, ExternalServiceError):
        logger.error("Upstream failure on %s: %s (%s)", request.url.path, exc.message, exc.details)
        detail = GENERIC_UPSTREAM_DETAIL
    return _problem_response(request, exc.error_code, exc.status_code, detail)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> ProblemJSONResponse:
    """Render invalid parameters as a 422 listing each offending field."""
    code = ErrorCode.VALIDATION_ERROR
    problem = ValidationProblemDetail(
        **_problem_fields(request, code, 422, "Request validation failed"),
        errors=[
            FieldError(
                loc=list(item.get("loc", ())),
                msg=item.get("msg", ""),
                type=item.get("type", ""),
            )
            for item in exc.errors()
        ],
    )
    return ProblemJSONResponse(content=problem.model_dump(), status_code=422)


async def generic_error_handler(
    request: Request, exc: Exception
) -> ProblemJSONResponse:
    """Log an unexpected exception with its traceback and answer 500."""
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return _problem_response(request, ErrorCode.INTERNAL_ERROR, 500, GENERIC_INTERNAL_DETAIL)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the problem-document handlers on *app*."""
    app.add_exception_handler(APIError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_error_handler)
