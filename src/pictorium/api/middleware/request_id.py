"""Correlation IDs for API requests.

Each request is tagged with the client's ``X-Request-ID`` when it is usable,
or a fresh UUID otherwise. The tag lives in a context variable for the
duration of the request so that problem documents and log lines emitted
while serving it can quote it, and it is returned on the response header.
"""

from __future__ import annotations

import contextvars
import logging
import re
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from starlette.middleware.base import RequestResponseEndpoint

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

# Visible ASCII only; no spaces or control characters.
_VISIBLE_ASCII = re.compile(r"[\x21-\x7e]+")

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default=""
)


def get_request_id() -> str:
    """ID of the request being served, ``""`` when called outside one."""
    return request_id_var.get()


def _sanitize_request_id(header_value: str | None) -> str:
    """Turn a raw ``X-Request-ID`` header into the ID used for the request.

    Parameters
    ----------
    header_value : str | None
        Header as received, or None when the client sent none.

    Returns
    -------
    str
        The header cut to ``MAX_REQUEST_ID_LENGTH`` characters, or a new
        UUID4 when the header is absent or contains anything other than
        visible ASCII.
    """
    if not header_value:
        return str(uuid.uuid4())
    if _VISIBLE_ASCII.fullmatch(header_value) is None:
        logger.warning("Ignoring unprintable %s header", REQUEST_ID_HEADER)
        return str(uuid.uuid4())
    return header_value[:MAX_REQUEST_ID_LENGTH]


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Binds a request ID for each request and returns it to the client."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = _sanitize_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestIdFilter(logging.Filter):
    """Stamps ``record.request_id`` so formats can use ``%(request_id)s``.

    Records logged outside a request get ``"-"``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True
