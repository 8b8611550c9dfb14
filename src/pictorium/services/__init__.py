"""
Services module for pictorium.

Contains the variant catalog, storage key derivation, blob store backends,
origin client, resizer and the cache-fill pipeline that ties them together.
"""

from __future__ import annotations

from pictorium.services.blob_store import (
    FilesystemBlobStore,
    InMemoryBlobStore,
    S3BlobStore,
)
from pictorium.services.cache_fill import CacheFillPipeline
from pictorium.services.diagnostics import (
    DiagnosticEvent,
    DiagnosticSink,
    LoggingDiagnosticSink,
)
from pictorium.services.origin_client import OriginClient
from pictorium.services.path_strategy import PathStrategy, ShardedPathStrategy
from pictorium.services.resizer import Resizer
from pictorium.services.variant_catalog import VariantCatalog

__all__: list[str] = [
    "CacheFillPipeline",
    "DiagnosticEvent",
    "DiagnosticSink",
    "FilesystemBlobStore",
    "InMemoryBlobStore",
    "LoggingDiagnosticSink",
    "OriginClient",
    "PathStrategy",
    "Resizer",
    "S3BlobStore",
    "ShardedPathStrategy",
    "VariantCatalog",
]
