"""
Origin client.

Fetches original image bytes from the upstream content source over HTTP.
One attempt per call, bounded by a timeout; retries are left to callers.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from pictorium.models.results import Err, FailureKind, Ok, Result

logger = logging.getLogger(__name__)

# Statuses the origin uses for "this image does not exist"
_MISSING_STATUSES = frozenset({404, 410})

_NOT_FOUND_MESSAGE = "Image not found on source"


class OriginClient:
    """HTTP client for the upstream image source.

    Parameters
    ----------
    root_url : str
        Base URL; images are requested at ``root_url + "/" + filename``.
    timeout : float
        Total request timeout in seconds.
    max_bytes : int
        Largest accepted response body.
    client : httpx.AsyncClient, optional
        Client to use instead of creating one (tests pass one with a
        ``MockTransport``). A supplied client is not closed by
        :meth:`aclose`.
    """

    def __init__(
        self,
        root_url: str,
        *,
        timeout: float = 10.0,
        max_bytes: int = 20 * 1024 * 1024,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._root_url = root_url.rstrip("/")
        self._max_bytes = max_bytes
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
        )

    @property
    def root_url(self) -> str:
        """Base URL of the origin."""
        return self._root_url

    def url_for(self, filename: str) -> str:
        """Origin URL for *filename*.

        Characters that cannot appear in a URL path are escaped. ``/`` and
        existing ``%XX`` escapes are passed through, so an already encoded
        name is requested as given.
        """
        return f"{self._root_url}/{quote(filename.lstrip('/'), safe='/%')}"

    async def fetch(self, filename: str) -> Result[bytes]:
        """Download the original bytes of *filename*.

        Returns
        -------
        Result[bytes]
            ``Ok(bytes)`` on a 2xx response with a non-empty body.
            ``Err(NOT_FOUND)`` for 404, 410, any 5xx, or an empty body.
            ``Err(UPSTREAM_UNAVAILABLE)`` for transport errors, timeouts,
            other non-2xx statuses and oversized bodies.
        """
        url = self.url_for(filename)
        try:
            async with self._client.stream("GET", url) as response:
                status_code = response.status_code

                if status_code in _MISSING_STATUSES or status_code >= 500:
                    logger.info("Origin returned %d for %s", status_code, url)
                    return Err(
                        FailureKind.NOT_FOUND,
                        f"{_NOT_FOUND_MESSAGE} (HTTP {status_code})",
                    )
                if not 200 <= status_code < 300:
                    logger.warning("Unexpected status %d from origin for %s", status_code, url)
                    return Err(
                        FailureKind.UPSTREAM_UNAVAILABLE,
                        f"Unexpected status {status_code} from origin",
                    )

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self._max_bytes:
                        logger.warning(
                            "Origin image exceeds %d bytes: %s", self._max_bytes, url
                        )
                        return Err(
                            FailureKind.UPSTREAM_UNAVAILABLE,
                            f"Image larger than {self._max_bytes} bytes",
                        )
        except httpx.TimeoutException as exc:
            logger.warning("Timeout fetching image: %s", url)
            return Err(FailureKind.UPSTREAM_UNAVAILABLE, f"Timeout fetching {url}", exc)
        except httpx.HTTPError as exc:
            logger.warning("HTTP error fetching image %s: %s", url, exc)
            return Err(
                FailureKind.UPSTREAM_UNAVAILABLE, f"HTTP error fetching {url}: {exc}", exc
            )

        if not body:
            logger.info("Origin returned an empty body for %s", url)
            return Err(FailureKind.NOT_FOUND, f"{_NOT_FOUND_MESSAGE} (empty body)")

        logger.debug("Fetched %s (%d bytes)", url, len(body))
        return Ok(bytes(body))

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
