"""Image endpoints.

- GET /image/show/{variant}?reference=<file> : serve a variant, filling the
  cache on first request
- GET /image/show/{variant}/{seo_name}?reference=<file> : same; the
  ``seo_name`` segment is ignored and only makes URLs readable
- DELETE /image/flush/{variant}?reference=<file> : invalidate cached forms
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path, Query
from starlette.responses import Response

from pictorium.api.deps import get_pipeline
from pictorium.api.schemas.variants import FlushResponse, FlushResult
from pictorium.exceptions import api_error_for
from pictorium.models.results import Err
from pictorium.services.cache_fill import CacheFillPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])

# Stored variants never change until flushed
_CACHE_CONTROL = "public, max-age=604800, immutable"  # 7 days

_IMAGE_RESPONSES: dict[int | str, dict[str, object]] = {
    200: {
        "content": {"image/jpeg": {}, "image/png": {}, "image/webp": {}},
        "description": "The variant image",
    },
    400: {"description": "Invalid reference"},
    404: {"description": "Unknown variant or image not found on source"},
    502: {"description": "Origin or store failure"},
    503: {"description": "Image could not be produced or stored"},
}


async def _serve(pipeline: CacheFillPipeline, variant: str, reference: str) -> Response:
    result = await pipeline.get(variant, reference)
    if isinstance(result, Err):
        raise api_error_for(result, variant_name=variant, filename=reference)

    image = result.value
    return Response(
        content=image.content,
        media_type=image.media_type,
        headers={
            "Cache-Control": _CACHE_CONTROL,
            "X-Cache": image.cache_status.value,
        },
    )


@router.get(
    "/image/show/{variant}",
    responses=_IMAGE_RESPONSES,
    response_class=Response,
)
async def show_image(
    variant: str = Path(..., description="Variant name (case-insensitive)"),
    reference: str = Query(..., min_length=1, description="Image path at the origin"),
    pipeline: CacheFillPipeline = Depends(get_pipeline),
) -> Response:
    """Serve the *variant* form of the image at *reference*.

    Returns
    -------
    Response
        Image bytes with Content-Type detected from the payload,
        Cache-Control and ``X-Cache: HIT|MISS`` headers.
    """
    return await _serve(pipeline, variant, reference)


@router.get(
    "/image/show/{variant}/{seo_name}",
    responses=_IMAGE_RESPONSES,
    response_class=Response,
)
async def show_image_with_seo_name(
    variant: str = Path(..., description="Variant name (case-insensitive)"),
    seo_name: str = Path(..., description="Free-form name, ignored"),
    reference: str = Query(..., min_length=1, description="Image path at the origin"),
    pipeline: CacheFillPipeline = Depends(get_pipeline),
) -> Response:
    """Serve an image; identical to ``/image/show/{variant}``."""
    return await _serve(pipeline, variant, reference)


@router.delete("/image/flush/{variant}", response_model=FlushResponse)
async def flush_image(
    variant: str = Path(..., description="Variant name (case-insensitive)"),
    reference: str = Query(..., min_length=1, description="Image path at the origin"),
    pipeline: CacheFillPipeline = Depends(get_pipeline),
) -> FlushResponse:
    """Delete cached forms of *reference*.

    Flushing the canonical variant removes every variant of the image.
    Always answers 200; keys whose deletion failed are listed in
    ``failed``.
    """
    report = await pipeline.flush(variant, reference)
    return FlushResponse(data=FlushResult.from_report(report))
