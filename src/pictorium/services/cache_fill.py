"""
Cache-fill pipeline.

Serves variant images out of the blob store, filling the store on a miss:

    CHECK_VARIANT -> CHECK_CACHE -> HIT: return
                                  -> MISS: OBTAIN_SOURCE -> DERIVE
                                           -> WRITE_BACK -> VERIFY -> return

The canonical (passthrough) variant is obtained from the origin. Every other
variant is derived from the canonical bytes, which are themselves obtained
by running the pipeline for the canonical variant, so the original is
always cached before anything is derived from it.

Concurrent misses on the same storage key share one fill.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Optional

from pictorium.exceptions import InvalidFilenameError, UnknownVariantError
from pictorium.models.enums import CacheStatus
from pictorium.models.images import CachedImage, FlushReport, WarmResult
from pictorium.models.results import Err, FailureKind, Ok, Result
from pictorium.models.variant import VariantDefinition
from pictorium.services.diagnostics import (
    DiagnosticEvent,
    DiagnosticSink,
    LoggingDiagnosticSink,
)
from pictorium.services.interfaces.blob_store_interface import BlobStore
from pictorium.services.origin_client import OriginClient
from pictorium.services.path_strategy import PathStrategy
from pictorium.services.resizer import Resizer
from pictorium.services.variant_catalog import VariantCatalog

logger = logging.getLogger(__name__)

# A derived variant recurses once, into the canonical variant, which never recurses.
_MAX_DEPTH = 1


class CacheFillPipeline:
    """Get-or-derive-or-fetch front end to the variant cache.

    Parameters
    ----------
    catalog : VariantCatalog
        Registered variants.
    path_strategy : PathStrategy
        Storage key derivation.
    store : BlobStore
        Backing store for cached bytes.
    origin : OriginClient
        Source of canonical images.
    resizer : Resizer
        Derives variants from canonical bytes.
    diagnostics : DiagnosticSink, optional
        Receives every failed ``get``; defaults to logging.
    warm_concurrency : int
        Filenames warmed in parallel by :meth:`warm`.
    """

    def __init__(
        self,
        catalog: VariantCatalog,
        path_strategy: PathStrategy,
        store: BlobStore,
        origin: OriginClient,
        resizer: Resizer,
        diagnostics: Optional[DiagnosticSink] = None,
        warm_concurrency: int = 4,
    ) -> None:
        self._catalog = catalog
        self._paths = path_strategy
        self._store = store
        self._origin = origin
        self._resizer = resizer
        self._diagnostics = diagnostics or LoggingDiagnosticSink()
        self._warm_concurrency = max(1, warm_concurrency)
        self._in_flight: dict[str, asyncio.Task[Result[CachedImage]]] = {}

    @property
    def catalog(self) -> VariantCatalog:
        """The variant catalog this pipeline serves."""
        return self._catalog

    # ------------------------------------------------------------------
    # get
    # ------------------------------------------------------------------

    async def get(self, variant_name: str, filename: str) -> Result[CachedImage]:
        """Return the *variant_name* form of *filename*, filling the cache on a miss.

        Parameters
        ----------
        variant_name : str
            Variant to serve (case-insensitive).
        filename : str
            Logical filename at the origin.

        Returns
        -------
        Result[CachedImage]
            ``Ok`` with the bytes and whether they were a cache hit, or
            ``Err`` describing why the image cannot be served. Every ``Err``
            is reported to the diagnostic sink first.
        """
        result = await self._get(variant_name, filename, depth=0)
        if isinstance(result, Err):
            self._report(result, variant_name, filename)
        return result

    async def _get(
        self, variant_name: str, filename: str, *, depth: int
    ) -> Result[CachedImage]:
        # CHECK_VARIANT
        try:
            definition = self._catalog.lookup(variant_name)
        except UnknownVariantError as exc:
            return Err(exc.kind, exc.message)

        try:
            key = self._paths.key_for(definition.name, filename)
        except InvalidFilenameError as exc:
            return Err(exc.kind, exc.message)

        # CHECK_CACHE
        cached = await self._store.get(key)
        if isinstance(cached, Ok):
            logger.debug("Cache hit: %s", key)
            return Ok(
                CachedImage(
                    content=cached.value,
                    key=key,
                    variant=definition,
                    cache_status=CacheStatus.HIT,
                )
            )
        if cached.kind is not FailureKind.NOT_FOUND:
            return cached

        logger.debug("Cache miss: %s", key)
        return await self._single_flight(
            key, lambda: self._fill(definition, filename, key, depth=depth)
        )

    async def _single_flight(
        self,
        key: str,
        factory: Callable[[], Awaitable[Result[CachedImage]]],
    ) -> Result[CachedImage]:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._in_flight[key] = task
            task.add_done_callback(lambda done, k=key: self._forget(k, done))
        else:
            logger.debug("Joining in-flight fill for %s", key)
        # Shielded so one cancelled caller does not cancel the fill for the rest.
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[Result[CachedImage]]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Every waiter may have been cancelled; mark the exception as retrieved.
        if not task.cancelled() and task.exception() is not None:
            logger.error("Fill for %s raised", key, exc_info=task.exception())

    async def _fill(
        self, definition: VariantDefinition, filename: str, key: str, *, depth: int
    ) -> Result[CachedImage]:
        # OBTAIN_SOURCE
        source = await self._obtain_source(definition, filename, depth=depth)
        if isinstance(source, Err):
            return source

        # DERIVE
        if definition.is_passthrough:
            derived = source.value
        else:
            resized = await asyncio.to_thread(
                self._resizer.derive, definition, source.value
            )
            if isinstance(resized, Err):
                return resized
            derived = resized.value

        # WRITE_BACK
        written = await self._store.put(key, derived)
        if isinstance(written, Err):
            return Err(
                FailureKind.STORE_WRITE_FAILED,
                f"Failed to store {key}: {written.message}",
                written.cause,
            )

        # VERIFY
        readback = await self._store.get(key)
        if isinstance(readback, Err):
            return Err(
                FailureKind.STORE_VERIFICATION_FAILED,
                f"Could not re-read {key} after writing: {readback.message}",
                readback.cause,
            )
        if readback.value != derived:
            return Err(
                FailureKind.STORE_VERIFICATION_FAILED,
                f"Stored bytes for {key} differ from the written bytes "
                f"({len(readback.value)} != {len(derived)} bytes)",
            )

        logger.info("Filled %s (%d bytes)", key, len(derived))
        return Ok(
            CachedImage(
                content=derived,
                key=key,
                variant=definition,
                cache_status=CacheStatus.MISS,
            )
        )

    async def _obtain_source(
        self, definition: VariantDefinition, filename: str, *, depth: int
    ) -> Result[bytes]:
        if definition.is_passthrough:
            return await self._origin.fetch(filename)

        if depth >= _MAX_DEPTH:
            raise RuntimeError(
                f"Variant '{definition.name}' requested a canonical fill at depth {depth}"
            )
        canonical = await self._get(self._catalog.canonical.name, filename, depth=depth + 1)
        if isinstance(canonical, Err):
            return canonical
        return Ok(canonical.value.content)

    def _report(self, err: Err, variant_name: str, filename: str) -> None:
        event = DiagnosticEvent.from_err(err, variant=variant_name, filename=filename)
        try:
            self._diagnostics.report(event)
        except Exception:
            logger.exception("Diagnostic sink failed for %s/%s", variant_name, filename)

    # ------------------------------------------------------------------
    # flush
    # ------------------------------------------------------------------

    async def flush(self, variant_name: str, filename: str) -> FlushReport:
        """Delete cached forms of *filename*. Never raises.

        Flushing the canonical variant deletes the entry of every registered
        variant, since all of them derive from it. Flushing any other variant
        deletes only that variant's entry.

        Returns
        -------
        FlushReport
            Keys deleted and keys whose deletion failed. Empty when the
            variant is unknown or the filename is invalid.
        """
        try:
            definition = self._catalog.lookup(variant_name)
        except UnknownVariantError as exc:
            logger.warning("Flush ignored: %s", exc.message)
            return FlushReport(variant=variant_name, filename=filename)

        if definition.is_passthrough:
            targets = [self._catalog.lookup(name) for name in self._catalog.names]
        else:
            targets = [definition]

        deleted: list[str] = []
        failed: list[str] = []
        for target in targets:
            try:
                key = self._paths.key_for(target.name, filename)
            except InvalidFilenameError as exc:
                logger.warning("Flush ignored: %s", exc.message)
                return FlushReport(variant=variant_name, filename=filename)

            try:
                result = await self._store.delete(key)
            except Exception as exc:
                logger.error("Unexpected error deleting %s", key, exc_info=True)
                result = Err(FailureKind.IO_FAILURE, str(exc), exc)

            if isinstance(result, Err):
                logger.warning("Failed to delete %s: %s", key, result.message)
                failed.append(key)
            else:
                deleted.append(key)

        logger.info(
            "Flushed %s/%s: %d deleted, %d failed",
            definition.name,
            filename,
            len(deleted),
            len(failed),
        )
        return FlushReport(
            variant=definition.name, filename=filename, deleted=deleted, failed=failed
        )

    # ------------------------------------------------------------------
    # warm
    # ------------------------------------------------------------------

    async def warm(
        self,
        filenames: Iterable[str],
        variant_names: Optional[Sequence[str]] = None,
    ) -> WarmResult:
        """Pre-fill the cache for every (variant, filename) pair.

        Parameters
        ----------
        filenames : Iterable[str]
            Files to warm.
        variant_names : Sequence[str], optional
            Variants to warm; defaults to every registered variant. The
            canonical variant is always processed first for each file.

        Returns
        -------
        WarmResult
            Counts of hits, fills and failures.
        """
        names = list(variant_names) if variant_names else list(self._catalog.names)
        canonical_name = self._catalog.canonical.name
        names.sort(key=lambda n: n.strip().lower() != canonical_name)

        result = WarmResult()
        semaphore = asyncio.Semaphore(self._warm_concurrency)

        async def _warm_file(filename: str) -> None:
            async with semaphore:
                for name in names:
                    outcome = await self.get(name, filename)
                    result.total += 1
                    if isinstance(outcome, Err):
                        result.failed += 1
                        result.failures[f"{name}/{filename}"] = str(outcome)
                    elif outcome.value.cache_status is CacheStatus.HIT:
                        result.hits += 1
                    else:
                        result.filled += 1

        await asyncio.gather(*(_warm_file(f) for f in filenames))
        logger.info(
            "Warm complete: %d filled, %d hits, %d failed (of %d)",
            result.filled,
            result.hits,
            result.failed,
            result.total,
        )
        return result

    async def close(self) -> None:
        """Close the origin client and blob store."""
        await self._origin.aclose()
        await self._store.close()
