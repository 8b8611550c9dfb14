"""
Tests for OriginClient.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest

from pictorium.models.results import Err, FailureKind, Ok
from pictorium.services.origin_client import OriginClient

# CRITICAL: This line ensures async tests work with coverage
pytestmark = pytest.mark.asyncio

ROOT = "http://origin.test/images/"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
async def make_client() -> AsyncGenerator[Callable[..., OriginClient], None]:
    """Factory for OriginClients backed by a MockTransport handler."""
    http_clients: list[httpx.AsyncClient] = []

    def _make(handler: Handler, max_bytes: int = 1024) -> OriginClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        http_clients.append(http)
        return OriginClient(ROOT, client=http, max_bytes=max_bytes)

    yield _make
    for http in http_clients:
        await http.aclose()


class TestOriginUrls:
    """Tests for URL construction."""

    async def test_trailing_slash_is_stripped(self) -> None:
        """Test the root URL is normalised."""
        client = OriginClient(ROOT)
        try:
            assert client.root_url == "http://origin.test/images"
            assert client.url_for("a/b.jpg") == "http://origin.test/images/a/b.jpg"
            assert client.url_for("/b.jpg") == "http://origin.test/images/b.jpg"
        finally:
            await client.aclose()

    async def test_special_characters_are_escaped(self) -> None:
        """Test spaces and '?' are percent-encoded but '/' is kept."""
        client = OriginClient(ROOT)
        try:
            assert (
                client.url_for("dir/my file?.jpg")
                == "http://origin.test/images/dir/my%20file%3F.jpg"
            )
        finally:
            await client.aclose()


class TestOriginFetch:
    """Tests for OriginClient.fetch outcomes."""

    async def test_success(self, make_client) -> None:
        """Test a 200 response returns the body."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, content=b"image-bytes")

        result = await make_client(handler).fetch("dir/a.jpg")

        assert result == Ok(b"image-bytes")
        assert seen == ["http://origin.test/images/dir/a.jpg"]

    async def test_encoded_filename_is_not_encoded_twice(self, make_client) -> None:
        """Test an already percent-encoded name reaches the origin unchanged."""
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path)
            return httpx.Response(200, content=b"image-bytes")

        client = make_client(handler)
        result = await client.fetch("a%20b.jpg")

        assert result == Ok(b"image-bytes")
        assert client.url_for("a%20b.jpg") == "http://origin.test/images/a%20b.jpg"
        assert seen == [b"/images/a%20b.jpg"]

    @pytest.mark.parametrize("status", [404, 410, 500, 502, 503])
    async def test_missing_statuses_are_not_found(self, make_client, status: int) -> None:
        """Test 404, 410 and 5xx map to NOT_FOUND."""
        result = await make_client(lambda _: httpx.Response(status)).fetch("a.jpg")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.NOT_FOUND
        assert result.message.startswith("Image not found on source")
        assert str(status) in result.message

    @pytest.mark.parametrize("status", [301, 400, 401, 403, 429])
    async def test_other_statuses_are_unavailable(self, make_client, status: int) -> None:
        """Test other non-2xx statuses map to UPSTREAM_UNAVAILABLE."""
        result = await make_client(lambda _: httpx.Response(status)).fetch("a.jpg")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.UPSTREAM_UNAVAILABLE

    async def test_empty_body_is_not_found(self, make_client) -> None:
        """Test a 200 with no body is treated as missing."""
        result = await make_client(lambda _: httpx.Response(200, content=b"")).fetch(
            "a.jpg"
        )

        assert isinstance(result, Err)
        assert result.kind is FailureKind.NOT_FOUND

    async def test_oversized_body(self, make_client) -> None:
        """Test bodies over max_bytes are refused."""
        client = make_client(
            lambda _: httpx.Response(200, content=b"x" * 2048), max_bytes=1024
        )

        result = await client.fetch("a.jpg")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.UPSTREAM_UNAVAILABLE
        assert "1024" in result.message

    async def test_body_at_limit_is_accepted(self, make_client) -> None:
        """Test a body of exactly max_bytes is accepted."""
        client = make_client(
            lambda _: httpx.Response(200, content=b"x" * 1024), max_bytes=1024
        )

        assert await client.fetch("a.jpg") == Ok(b"x" * 1024)

    async def test_timeout(self, make_client) -> None:
        """Test a timeout maps to UPSTREAM_UNAVAILABLE."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = await make_client(handler).fetch("a.jpg")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.UPSTREAM_UNAVAILABLE
        assert "Timeout" in result.message
        assert isinstance(result.cause, httpx.TimeoutException)

    async def test_connection_error(self, make_client) -> None:
        """Test transport errors map to UPSTREAM_UNAVAILABLE."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await make_client(handler).fetch("a.jpg")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.UPSTREAM_UNAVAILABLE


class TestOriginClose:
    """Tests for client ownership on close."""

    async def test_supplied_client_is_not_closed(self) -> None:
        """Test aclose leaves a caller-supplied client open."""
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda _: httpx.Response(200, content=b"x"))
        )
        client = OriginClient(ROOT, client=http)

        await client.aclose()

        assert not http.is_closed
        await http.aclose()

    async def test_own_client_is_closed(self) -> None:
        """Test aclose closes a client the OriginClient created."""
        client = OriginClient(ROOT)

        await client.aclose()

        assert client._client.is_closed
