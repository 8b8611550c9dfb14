"""Unit tests for the request ID middleware and logging filter."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from pictorium.api.middleware.request_id import (
    MAX_REQUEST_ID_LENGTH,
    RequestIdFilter,
    RequestIdMiddleware,
    _sanitize_request_id,
    get_request_id,
    request_id_var,
)


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class TestSanitizeRequestId:
    """Tests for _sanitize_request_id."""

    def test_keeps_valid_id(self) -> None:
        """Test a printable ID is kept."""
        assert _sanitize_request_id("abc-123") == "abc-123"

    @pytest.mark.parametrize("value", [None, "", "has space", "tab\there", "ünï"])
    def test_replaces_missing_or_unprintable(self, value) -> None:
        """Test missing or unprintable IDs are replaced by a UUID."""
        assert _is_uuid(_sanitize_request_id(value))

    def test_truncates_long_ids(self) -> None:
        """Test IDs longer than the limit are truncated."""
        assert _sanitize_request_id("a" * 500) == "a" * MAX_REQUEST_ID_LENGTH


class TestRequestIdFilter:
    """Tests for RequestIdFilter."""

    def test_default_placeholder(self) -> None:
        """Test records outside a request get '-'."""
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "-"

    def test_current_request_id(self) -> None:
        """Test records inside a request get its ID."""
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        token = request_id_var.set("rid-9")
        try:
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "rid-9"


class TestRequestIdMiddleware:
    """Tests for RequestIdMiddleware on a small app."""

    @pytest.fixture
    def id_app(self) -> FastAPI:
        test_app = FastAPI()
        test_app.add_middleware(RequestIdMiddleware)

        @test_app.get("/echo")
        async def echo() -> dict[str, str]:
            return {"request_id": get_request_id()}

        return test_app

    async def test_echoes_supplied_id(self, id_app: FastAPI) -> None:
        """Test a supplied ID is visible to handlers and echoed back."""
        transport = ASGITransport(app=id_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/echo", headers={"X-Request-ID": "given-id"})

        assert response.headers["x-request-id"] == "given-id"
        assert response.json() == {"request_id": "given-id"}

    async def test_generates_id(self, id_app: FastAPI) -> None:
        """Test an ID is generated when none is supplied."""
        transport = ASGITransport(app=id_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/echo")

        assert _is_uuid(response.headers["x-request-id"])
        assert response.json()["request_id"] == response.headers["x-request-id"]
        assert get_request_id() == ""
