"""API schema exports."""

from pictorium.api.schemas.responses import (
    ApiResponse,
    ErrorCode,
    FieldError,
    ProblemDetail,
    ProblemJSONResponse,
    ValidationProblemDetail,
)

__all__ = [
    "ApiResponse",
    "ErrorCode",
    "FieldError",
    "ProblemDetail",
    "ProblemJSONResponse",
    "ValidationProblemDetail",
]
