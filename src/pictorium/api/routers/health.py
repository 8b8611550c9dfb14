"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from pictorium import __version__
from pictorium.api.deps import get_pipeline
from pictorium.api.schemas.responses import ApiResponse
from pictorium.config.settings import settings
from pictorium.services.cache_fill import CacheFillPipeline


class HealthStatus(BaseModel):
    """Application health status."""

    model_config = ConfigDict(strict=True)

    status: str  # "healthy"
    version: str
    storage_backend: str  # "s3", "filesystem", "memory"
    variant_count: int
    timestamp: datetime


class HealthResponse(ApiResponse[HealthStatus]):
    """Response for health check endpoint."""

    pass


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    pipeline: CacheFillPipeline = Depends(get_pipeline),
) -> HealthResponse:
    """
    Health check endpoint.

    Reports the application version, the configured storage backend and the
    number of registered variants. Does not touch the origin or the store.
    """
    health_data = HealthStatus(
        status="healthy",
        version=__version__,
        storage_backend=settings.storage_backend,
        variant_count=len(pipeline.catalog),
        timestamp=datetime.now(timezone.utc),
    )
    return HealthResponse(data=health_data)
