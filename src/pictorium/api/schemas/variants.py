"""Variant and cache maintenance response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from pictorium.api.schemas.responses import ApiResponse
from pictorium.models.images import FlushReport
from pictorium.models.variant import VariantDefinition


class VariantItem(BaseModel):
    """A variant as exposed by the API."""

    model_config = ConfigDict(strict=True)

    name: str
    width: int
    height: int
    quality: int
    fill_color: str  # "#rrggbb"
    encoding: str
    scale_mode: str
    canonical: bool

    @classmethod
    def from_definition(cls, definition: VariantDefinition) -> "VariantItem":
        """Build the API view of a variant definition."""
        return cls(
            name=definition.name,
            width=definition.width,
            height=definition.height,
            quality=definition.quality,
            fill_color=definition.fill_color_hex,
            encoding=definition.encoding.value,
            scale_mode=definition.scale_mode.value,
            canonical=definition.is_passthrough,
        )


class VariantListResponse(ApiResponse[list[VariantItem]]):
    """Response for the variant listing endpoint."""

    pass


class FlushResult(BaseModel):
    """Outcome of a flush request."""

    model_config = ConfigDict(strict=True)

    variant: str
    reference: str
    deleted: list[str]
    failed: list[str]

    @classmethod
    def from_report(cls, report: FlushReport) -> "FlushResult":
        """Build the API view of a flush report."""
        return cls(
            variant=report.variant,
            reference=report.filename,
            deleted=list(report.deleted),
            failed=list(report.failed),
        )


class FlushResponse(ApiResponse[FlushResult]):
    """Response for the flush endpoint."""

    pass
