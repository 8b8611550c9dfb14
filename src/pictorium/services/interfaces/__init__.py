"""
Service interfaces (ABCs) for the pictorium application.

These abstract base classes define contracts for service implementations,
enabling dependency injection, testing with fakes, and swappable backends.
"""

from .blob_store_interface import BlobStore, content_md5

__all__ = [
    "BlobStore",
    "content_md5",
]
