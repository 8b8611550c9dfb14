"""FastAPI application for pictorium."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from pictorium import __version__
from pictorium.api.exception_handlers import register_exception_handlers
from pictorium.api.middleware import RequestIdMiddleware
from pictorium.api.routers import health, images, variants
from pictorium.config.settings import settings
from pictorium.container import container
from pictorium.utils.log_setup import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup and release clients on shutdown."""
    configure_logging(
        settings.log_level,
        logs_dir=settings.logs_dir,
        log_to_file=settings.log_to_file,
    )
    logger.info(
        "Starting %s %s (storage=%s, origin=%s)",
        settings.app_name,
        __version__,
        settings.storage_backend,
        settings.origin_root_url,
    )
    yield
    await container.aclose()


app = FastAPI(
    title="Pictorium API",
    description="On-demand image variant cache",
    version=__version__,
    lifespan=lifespan,
)


def _status_log_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def _peer(request: Request) -> str:
    """Originating client address, honouring the first X-Forwarded-For hop."""
    hops = request.headers.get("x-forwarded-for", "")
    first_hop = hops.split(",", 1)[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


@app.middleware("http")
async def access_log(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Log one line per request with its status, cache outcome and latency."""
    started = time.perf_counter()
    logger.debug("%s %s from %s", request.method, request.url.path, _peer(request))

    response = await call_next(request)

    logger.log(
        _status_log_level(response.status_code),
        "%s %s -> %d cache=%s in %.3fs",
        request.method,
        request.url.path,
        response.status_code,
        response.headers.get("X-Cache", "-"),
        time.perf_counter() - started,
    )
    return response


# Registered after access_log so it runs first and the ID is bound for its records
app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)

app.include_router(images.router)
app.include_router(variants.router, prefix="/api/v1", tags=["variants"])
app.include_router(health.router, prefix="/api/v1", tags=["health"])
