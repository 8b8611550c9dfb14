"""
Unit tests for cache CLI commands.

Covers ``pictorium cache get``, ``flush`` and ``warm``: output, exit codes
and argument handling, with the pipeline replaced by a mock.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from pictorium.cli.commands import cache as cache_module
from pictorium.models.enums import CacheStatus
from pictorium.models.images import CachedImage, FlushReport, WarmResult
from pictorium.models.results import Err, FailureKind, Ok
from pictorium.services.variant_catalog import VariantCatalog

# Create test apps that wrap each command
test_get_app = typer.Typer()
test_get_app.command(name="get")(cache_module.get)

test_flush_app = typer.Typer()
test_flush_app.command(name="flush")(cache_module.flush)

test_warm_app = typer.Typer()
test_warm_app.command(name="warm")(cache_module.warm)

runner = CliRunner()


# ═══════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def mock_pipeline():
    """Create a mock CacheFillPipeline over the default catalog."""
    pipeline = MagicMock()
    pipeline.catalog = VariantCatalog.default()
    pipeline.close = AsyncMock()
    return pipeline


@pytest.fixture
def cached_image(image_factory) -> CachedImage:
    """A thumbnail fresh from the pipeline."""
    return CachedImage(
        content=image_factory(100, 100, fmt="JPEG"),
        key="thumbnail/prod/ucts/products%2F1234.jpg",
        variant=VariantCatalog.default().lookup("thumbnail"),
        cache_status=CacheStatus.MISS,
    )


@pytest.fixture
def patched(mock_pipeline):
    """Patch the pipeline factory used by the commands."""
    with patch.object(cache_module, "_build_pipeline", return_value=mock_pipeline):
        yield mock_pipeline


# ═══════════════════════════════════════════════════════════════════════════
# get
# ═══════════════════════════════════════════════════════════════════════════


class TestGetCommand:
    """Tests for the get command."""

    def test_get_prints_summary(self, patched, cached_image) -> None:
        """Test a successful get prints the key and cache status."""
        patched.get = AsyncMock(return_value=Ok(cached_image))

        result = runner.invoke(test_get_app, ["thumbnail", "products/1234.jpg"])

        assert result.exit_code == 0
        assert "MISS" in result.stdout
        assert "image/jpeg" in result.stdout
        patched.get.assert_awaited_once_with("thumbnail", "products/1234.jpg")
        patched.close.assert_awaited_once()

    def test_get_writes_output_file(self, patched, cached_image, tmp_path: Path) -> None:
        """Test --output writes the image bytes."""
        patched.get = AsyncMock(return_value=Ok(cached_image))
        target = tmp_path / "thumb.jpg"

        result = runner.invoke(
            test_get_app, ["thumbnail", "products/1234.jpg", "--output", str(target)]
        )

        assert result.exit_code == 0
        assert target.read_bytes() == cached_image.content

    @pytest.mark.parametrize(
        "kind,exit_code",
        [
            (FailureKind.NOT_FOUND, 3),
            (FailureKind.UNKNOWN_VARIANT, 3),
            (FailureKind.INVALID_FILENAME, 2),
            (FailureKind.UPSTREAM_UNAVAILABLE, 1),
            (FailureKind.STORE_VERIFICATION_FAILED, 1),
        ],
    )
    def test_get_failure_exit_codes(self, patched, kind: FailureKind, exit_code: int) -> None:
        """Test failures map to distinct exit codes."""
        patched.get = AsyncMock(return_value=Err(kind, "nope"))

        result = runner.invoke(test_get_app, ["thumbnail", "a.jpg"])

        assert result.exit_code == exit_code
        assert "Error: nope" in result.stdout
        patched.close.assert_awaited_once()

    def test_get_interrupted(self, patched) -> None:
        """Test Ctrl-C exits with 130."""
        patched.get = AsyncMock(side_effect=KeyboardInterrupt)

        result = runner.invoke(test_get_app, ["thumbnail", "a.jpg"])

        assert result.exit_code == 130
        assert "Interrupted" in result.stdout


# ═══════════════════════════════════════════════════════════════════════════
# flush
# ═══════════════════════════════════════════════════════════════════════════


class TestFlushCommand:
    """Tests for the flush command."""

    def test_flush_lists_deleted_keys(self, patched) -> None:
        """Test deleted keys are printed."""
        patched.flush = AsyncMock(
            return_value=FlushReport(
                variant="original", filename="a.jpg", deleted=["original/a.jpg", "crop/a.jpg"]
            )
        )

        result = runner.invoke(test_flush_app, ["original", "a.jpg"])

        assert result.exit_code == 0
        assert "original/a.jpg" in result.stdout
        assert "crop/a.jpg" in result.stdout

    def test_flush_nothing(self, patched) -> None:
        """Test an empty report says there was nothing to flush."""
        patched.flush = AsyncMock(return_value=FlushReport(variant="huge", filename="a.jpg"))

        result = runner.invoke(test_flush_app, ["huge", "a.jpg"])

        assert result.exit_code == 0
        assert "Nothing to flush" in result.stdout

    def test_flush_partial_failure(self, patched) -> None:
        """Test a failed deletion is reported with exit code 1."""
        patched.flush = AsyncMock(
            return_value=FlushReport(
                variant="original",
                filename="a.jpg",
                deleted=["original/a.jpg"],
                failed=["crop/a.jpg"],
            )
        )

        result = runner.invoke(test_flush_app, ["original", "a.jpg"])

        assert result.exit_code == 1
        assert "delete failed" in result.stdout


# ═══════════════════════════════════════════════════════════════════════════
# warm
# ═══════════════════════════════════════════════════════════════════════════


class TestWarmCommand:
    """Tests for the warm command."""

    def test_warm_success(self, patched) -> None:
        """Test a clean warm prints the summary table."""
        patched.warm = AsyncMock(return_value=WarmResult(filled=6, hits=6, total=12))

        result = runner.invoke(test_warm_app, ["a.jpg", "b.jpg"])

        assert result.exit_code == 0
        assert "Cache Warming Summary" in result.stdout
        patched.warm.assert_awaited_once_with(["a.jpg", "b.jpg"], None)
        patched.close.assert_awaited_once()

    def test_warm_with_variants_and_file(self, patched, tmp_path: Path) -> None:
        """Test references from a file and repeated --variant options."""
        refs = tmp_path / "refs.txt"
        refs.write_text("# products\nc.jpg\n\n d.jpg \n", encoding="utf-8")
        patched.warm = AsyncMock(return_value=WarmResult(filled=3, total=3))

        result = runner.invoke(
            test_warm_app,
            ["a.jpg", "--from-file", str(refs), "-V", "thumbnail", "-V", "CROP"],
        )

        assert result.exit_code == 0
        patched.warm.assert_awaited_once_with(
            ["a.jpg", "c.jpg", "d.jpg"], ["thumbnail", "CROP"]
        )

    def test_warm_without_references(self, patched) -> None:
        """Test warm with nothing to do is an argument error."""
        result = runner.invoke(test_warm_app, [])

        assert result.exit_code == 2
        assert "no image paths" in result.stdout

    def test_warm_unknown_variant(self, patched) -> None:
        """Test unknown variants are rejected before any work."""
        patched.warm = AsyncMock()

        result = runner.invoke(test_warm_app, ["a.jpg", "-V", "huge"])

        assert result.exit_code == 2
        assert "huge" in result.stdout
        patched.warm.assert_not_called()

    def test_warm_failures_exit_1(self, patched) -> None:
        """Test failures are listed and give exit code 1."""
        patched.warm = AsyncMock(
            return_value=WarmResult(
                filled=1,
                failed=1,
                total=2,
                failures={"thumbnail/b.jpg": "not_found: Image not found on source"},
            )
        )

        result = runner.invoke(test_warm_app, ["a.jpg", "b.jpg"])

        assert result.exit_code == 1
        assert "thumbnail/b.jpg" in result.stdout
