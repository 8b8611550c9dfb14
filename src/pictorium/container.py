"""
Dependency Injection Container for pictorium.

This module provides a centralized container for the services the API and
CLI share. Each service is a lazily built singleton:

    >>> from pictorium.container import container
    >>> pipeline = container.pipeline  # Cached
    >>> same_pipeline = container.pipeline  # Same instance

Design Principles
-----------------
- Service singletons are cached via @cached_property (lazy initialization)
- Construction is driven by :class:`~pictorium.config.settings.Settings`
- Container can be reset for testing isolation
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import Optional

from pictorium.config.settings import Settings
from pictorium.config.settings import settings as default_settings
from pictorium.services.blob_store import (
    FilesystemBlobStore,
    InMemoryBlobStore,
    S3BlobStore,
)
from pictorium.services.cache_fill import CacheFillPipeline
from pictorium.services.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from pictorium.services.interfaces.blob_store_interface import BlobStore
from pictorium.services.origin_client import OriginClient
from pictorium.services.path_strategy import PathStrategy, ShardedPathStrategy
from pictorium.services.resizer import Resizer
from pictorium.services.variant_catalog import VariantCatalog

logger = logging.getLogger(__name__)


class Container:
    """
    Dependency injection container for pictorium.

    Parameters
    ----------
    settings : Settings, optional
        Settings to build services from (default: the global settings).

    Examples
    --------
    Using in tests with a custom configuration:

        >>> container = Container(Settings(storage_backend="memory"))
        >>> isinstance(container.blob_store, InMemoryBlobStore)
        True
        >>> container.reset()
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or default_settings

    @property
    def settings(self) -> Settings:
        """Settings the services are built from."""
        return self._settings

    # -------------------------------------------------------------------------
    # Singleton Services
    # -------------------------------------------------------------------------

    @cached_property
    def catalog(self) -> VariantCatalog:
        """
        Get the variant catalog.

        Loaded from ``variants_file`` when configured, otherwise the
        built-in table.
        """
        if self._settings.variants_file is not None:
            return VariantCatalog.from_yaml(self._settings.variants_file)
        return VariantCatalog.default()

    @cached_property
    def path_strategy(self) -> PathStrategy:
        """Get the storage key strategy."""
        return ShardedPathStrategy()

    @cached_property
    def blob_store(self) -> BlobStore:
        """
        Get the configured blob store backend.

        Returns
        -------
        BlobStore
            ``S3BlobStore``, ``FilesystemBlobStore`` or ``InMemoryBlobStore``
            depending on ``storage_backend``.
        """
        backend = self._settings.storage_backend
        logger.debug("Creating %s blob store", backend)
        if backend == "s3":
            return S3BlobStore(
                self._settings.s3_bucket,
                region=self._settings.s3_region,
                endpoint_url=self._settings.s3_endpoint_url,
                access_key_id=self._settings.s3_access_key_id,
                secret_access_key=self._settings.s3_secret_access_key,
                connect_timeout=self._settings.s3_connect_timeout,
                read_timeout=self._settings.s3_read_timeout,
            )
        if backend == "filesystem":
            return FilesystemBlobStore(self._settings.storage_dir)
        return InMemoryBlobStore()

    @cached_property
    def origin_client(self) -> OriginClient:
        """Get the origin HTTP client."""
        return OriginClient(
            self._settings.origin_root_url,
            timeout=self._settings.origin_timeout,
            max_bytes=self._settings.origin_max_bytes,
        )

    @cached_property
    def resizer(self) -> Resizer:
        """Get the image resizer."""
        return Resizer()

    @cached_property
    def diagnostics(self) -> DiagnosticSink:
        """Get the diagnostic sink for cache-fill failures."""
        return LoggingDiagnosticSink()

    @cached_property
    def pipeline(self) -> CacheFillPipeline:
        """
        Get the cache-fill pipeline wired to the other singletons.

        This service is cached using @cached_property, so repeated access
        returns the same instance and in-flight fills are shared.
        """
        return CacheFillPipeline(
            catalog=self.catalog,
            path_strategy=self.path_strategy,
            store=self.blob_store,
            origin=self.origin_client,
            resizer=self.resizer,
            diagnostics=self.diagnostics,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close network clients held by already-built singletons."""
        if "pipeline" in self.__dict__:
            await self.pipeline.close()
            return
        if "origin_client" in self.__dict__:
            await self.origin_client.aclose()
        if "blob_store" in self.__dict__:
            await self.blob_store.close()

    def reset(self) -> None:
        """
        Reset the container by clearing all cached singleton instances.

        This method is primarily for testing purposes, allowing tests to
        inject mocks and then restore the container to a clean state.
        It clears all @cached_property values from the instance __dict__.
        """
        properties_to_clear = [
            "catalog",
            "path_strategy",
            "blob_store",
            "origin_client",
            "resizer",
            "diagnostics",
            "pipeline",
        ]
        for prop in properties_to_clear:
            self.__dict__.pop(prop, None)


# Global container instance
container = Container()
