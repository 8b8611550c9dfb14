"""
Abstract Base Class for blob stores.

This interface defines the contract for the persistent key/value store that
holds cached variant bytes, enabling:
- Swappable backends (S3, local filesystem, in-memory)
- Testability via fake implementations that inject failures
"""

from __future__ import annotations

import base64
import hashlib
from abc import ABC, abstractmethod

from ...models.results import Result


def content_md5(data: bytes) -> str:
    """Base64-encoded MD5 digest of *data*, as used by ``Content-MD5``.

    Examples
    --------
    >>> content_md5(b"")
    '1B2M2Y8AsgTpgAmY7PhCfg=='
    """
    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")


class BlobStore(ABC):
    """
    Abstract interface for the cache's backing store.

    Every method reports failure through its return value rather than by
    raising, so the cache-fill pipeline can treat a miss and an I/O error
    differently.

    Examples
    --------
    >>> class NullStore(BlobStore):
    ...     async def get(self, key: str) -> Result[bytes]:
    ...         return Err(FailureKind.NOT_FOUND, key)
    """

    @abstractmethod
    async def get(self, key: str) -> Result[bytes]:
        """
        Read the bytes stored under *key*.

        Returns
        -------
        Result[bytes]
            ``Ok(bytes)`` if present, ``Err(NOT_FOUND)`` if absent, or
            ``Err(IO_FAILURE)`` on transport or permission failure.
        """
        pass

    @abstractmethod
    async def put(self, key: str, data: bytes) -> Result[None]:
        """
        Store *data* under *key*, replacing any previous value.

        Implementations send an MD5 checksum of *data* (see
        :func:`content_md5`) so the store can reject corrupted uploads.

        Returns
        -------
        Result[None]
            ``Ok(None)`` on success, ``Err(IO_FAILURE)`` otherwise.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> Result[None]:
        """
        Remove *key*. Deleting an absent key succeeds.

        Returns
        -------
        Result[None]
            ``Ok(None)`` on success, ``Err(IO_FAILURE)`` otherwise.
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the store."""
        return None
