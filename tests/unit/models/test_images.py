"""
Tests for served-image models and media type detection.
"""

from __future__ import annotations

import pytest

from pictorium.models.enums import CacheStatus, ImageEncoding
from pictorium.models.images import CachedImage, FlushReport, detect_media_type
from pictorium.models.variant import VariantDefinition


class TestDetectMediaType:
    """Tests for magic-byte detection."""

    @pytest.mark.parametrize(
        "data,expected",
        [
            (b"\xff\xd8\xff\xe0rest", "image/jpeg"),
            (b"\x89PNG\r\n\x1a\nrest", "image/png"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
            (b"GIF89a....", "image/gif"),
        ],
    )
    def test_known_formats(self, data: bytes, expected: str) -> None:
        """Test recognised signatures."""
        assert detect_media_type(data) == expected

    def test_unknown_uses_default(self) -> None:
        """Test unrecognised bytes fall back to the default."""
        assert detect_media_type(b"hello") == "image/jpeg"
        assert detect_media_type(b"", default="application/octet-stream") == (
            "application/octet-stream"
        )


class TestCachedImage:
    """Tests for CachedImage."""

    def test_media_type_prefers_payload(self, image_factory) -> None:
        """Test the payload signature wins over the variant encoding."""
        variant = VariantDefinition(name="thumb", width=10, height=10, encoding=ImageEncoding.JPG)
        image = CachedImage(
            content=image_factory(5, 5, fmt="PNG"),
            key="thumb/x.png",
            variant=variant,
            cache_status=CacheStatus.HIT,
        )
        assert image.media_type == "image/png"
        assert image.size_bytes == len(image.content)

    def test_media_type_falls_back_to_encoding(self) -> None:
        """Test unknown payloads report the variant's media type."""
        variant = VariantDefinition(name="thumb", width=10, height=10, encoding=ImageEncoding.WEBP)
        image = CachedImage(
            content=b"????", key="k", variant=variant, cache_status=CacheStatus.MISS
        )
        assert image.media_type == "image/webp"


class TestFlushReport:
    """Tests for FlushReport."""

    def test_ok_when_nothing_failed(self) -> None:
        """Test ok reflects failed deletions."""
        assert FlushReport(variant="v", filename="f", deleted=["a"]).ok is True
        assert FlushReport(variant="v", filename="f", failed=["a"]).ok is False
