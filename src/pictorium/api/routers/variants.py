"""Variant catalog endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pictorium.api.deps import get_pipeline
from pictorium.api.schemas.variants import VariantItem, VariantListResponse
from pictorium.services.cache_fill import CacheFillPipeline

router = APIRouter()


@router.get("/variants", response_model=VariantListResponse)
async def list_variants(
    pipeline: CacheFillPipeline = Depends(get_pipeline),
) -> VariantListResponse:
    """List the registered variants in registration order."""
    catalog = pipeline.catalog
    return VariantListResponse(
        data=[VariantItem.from_definition(catalog.lookup(name)) for name in catalog.names]
    )
