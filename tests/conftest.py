"""
Pytest configuration and fixtures for pictorium tests.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from io import BytesIO
from typing import Optional
from unittest.mock import MagicMock

import httpx
import pytest
from PIL import Image

from pictorium.config.settings import Settings
from pictorium.models.enums import ImageEncoding, ScaleMode
from pictorium.models.variant import VariantDefinition
from pictorium.services.blob_store import InMemoryBlobStore
from pictorium.services.cache_fill import CacheFillPipeline
from pictorium.services.diagnostics import DiagnosticEvent, DiagnosticSink
from pictorium.services.origin_client import OriginClient
from pictorium.services.path_strategy import ShardedPathStrategy
from pictorium.services.resizer import Resizer
from pictorium.services.variant_catalog import VariantCatalog

ORIGIN_ROOT = "http://origin.test/images"


def make_image_bytes(
    width: int,
    height: int,
    color: tuple[int, int, int] = (0, 128, 255),
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-colour image."""
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeOrigin:
    """In-process origin served through ``httpx.MockTransport``.

    ``images`` maps filename to bytes; ``statuses`` forces a status code for
    a filename; ``requests`` records every requested path.
    """

    def __init__(self) -> None:
        self.images: dict[str, bytes] = {}
        self.statuses: dict[str, int] = {}
        self.requests: list[str] = []
        self.error: Optional[Exception] = None
        self.http = httpx.AsyncClient(transport=httpx.MockTransport(self._handle))
        self.client = OriginClient(ORIGIN_ROOT, client=self.http, max_bytes=1024 * 1024)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        prefix = "/images/"
        filename = request.url.path[len(prefix):]
        self.requests.append(filename)
        if self.error is not None:
            raise self.error
        if filename in self.statuses:
            return httpx.Response(self.statuses[filename])
        if filename not in self.images:
            return httpx.Response(404)
        return httpx.Response(
            200, content=self.images[filename], headers={"Content-Type": "image/png"}
        )


class RecordingSink(DiagnosticSink):
    """Diagnostic sink that keeps every event."""

    def __init__(self) -> None:
        self.events: list[DiagnosticEvent] = []

    def report(self, event: DiagnosticEvent) -> None:
        self.events.append(event)


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    """Factory for encoded test images."""
    return make_image_bytes


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at temporary directories and the memory store."""
    return Settings(
        storage_backend="memory",
        storage_dir=tmp_path / "cache",
        logs_dir=tmp_path / "logs",
        origin_root_url=ORIGIN_ROOT,
    )


@pytest.fixture
def catalog() -> VariantCatalog:
    """Small catalog with one variant per scale mode."""
    return VariantCatalog(
        [
            VariantDefinition(name="original", quality=100),
            VariantDefinition(
                name="thumbnail", width=100, height=100, scale_mode=ScaleMode.CROP
            ),
            VariantDefinition(
                name="fill",
                width=100,
                height=100,
                fill_color=(255, 0, 0),
                scale_mode=ScaleMode.FILL,
                encoding=ImageEncoding.PNG,
            ),
            VariantDefinition(
                name="skew-high", width=300, height=100, scale_mode=ScaleMode.SKEW
            ),
        ]
    )


@pytest.fixture
def memory_store() -> InMemoryBlobStore:
    """Empty in-memory blob store."""
    return InMemoryBlobStore()


@pytest.fixture
async def fake_origin() -> AsyncGenerator[FakeOrigin, None]:
    """Fake origin with no images."""
    origin = FakeOrigin()
    yield origin
    await origin.http.aclose()


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Diagnostic sink that records events."""
    return RecordingSink()


@pytest.fixture
def resizer_spy() -> MagicMock:
    """Real resizer wrapped so calls can be counted."""
    return MagicMock(wraps=Resizer())


@pytest.fixture
def pipeline(
    catalog: VariantCatalog,
    memory_store: InMemoryBlobStore,
    fake_origin: FakeOrigin,
    resizer_spy: MagicMock,
    recording_sink: RecordingSink,
) -> CacheFillPipeline:
    """Pipeline wired to in-memory fakes."""
    return CacheFillPipeline(
        catalog=catalog,
        path_strategy=ShardedPathStrategy(),
        store=memory_store,
        origin=fake_origin.client,
        resizer=resizer_spy,
        diagnostics=recording_sink,
    )
