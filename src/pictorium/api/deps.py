"""FastAPI dependencies for API endpoints."""

from pictorium.container import container
from pictorium.services.cache_fill import CacheFillPipeline


def get_pipeline() -> CacheFillPipeline:
    """
    Dependency for the cache-fill pipeline.

    Returns the container's singleton so in-flight fills are shared across
    requests. Tests override this with ``app.dependency_overrides``.

    Returns
    -------
    CacheFillPipeline
        The application's pipeline.
    """
    return container.pipeline
