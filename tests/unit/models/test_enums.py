"""
Tests for pictorium enums and result types.
"""

from __future__ import annotations

from pictorium.models.enums import CacheStatus, ImageEncoding, ScaleMode
from pictorium.models.results import Err, FailureKind, Ok


class TestScaleMode:
    """Tests for ScaleMode enum."""

    def test_enum_values_exist(self) -> None:
        """Test that all expected enum values exist."""
        assert ScaleMode.CROP.value == "crop"
        assert ScaleMode.FILL.value == "fill"
        assert ScaleMode.SKEW.value == "skew"

    def test_enum_is_str_subclass(self) -> None:
        """Test that enum members compare equal to their values."""
        assert ScaleMode("crop") is ScaleMode.CROP
        assert ScaleMode.CROP == "crop"


class TestImageEncoding:
    """Tests for ImageEncoding enum."""

    def test_pillow_format(self) -> None:
        """Test each encoding maps to a Pillow format name."""
        assert ImageEncoding.JPG.pillow_format == "JPEG"
        assert ImageEncoding.PNG.pillow_format == "PNG"
        assert ImageEncoding.WEBP.pillow_format == "WEBP"

    def test_media_type(self) -> None:
        """Test each encoding maps to a MIME type."""
        assert ImageEncoding.JPG.media_type == "image/jpeg"
        assert ImageEncoding.PNG.media_type == "image/png"
        assert ImageEncoding.WEBP.media_type == "image/webp"


class TestCacheStatus:
    """Tests for CacheStatus enum."""

    def test_values_match_header(self) -> None:
        """Test values are the X-Cache header values."""
        assert CacheStatus.HIT.value == "HIT"
        assert CacheStatus.MISS.value == "MISS"


class TestResults:
    """Tests for Ok/Err values."""

    def test_client_error_kinds(self) -> None:
        """Test only request faults are client errors."""
        client = {kind for kind in FailureKind if kind.is_client_error}
        assert client == {FailureKind.UNKNOWN_VARIANT, FailureKind.INVALID_FILENAME}

    def test_err_str_and_equality_ignore_cause(self) -> None:
        """Test Err formats as 'kind: message' and ignores cause in equality."""
        a = Err(FailureKind.NOT_FOUND, "gone", ValueError("x"))
        b = Err(FailureKind.NOT_FOUND, "gone")

        assert str(a) == "not_found: gone"
        assert a == b

    def test_ok_wraps_value(self) -> None:
        """Test Ok carries its value."""
        assert Ok(b"data").value == b"data"
        assert Ok(None) == Ok(None)
