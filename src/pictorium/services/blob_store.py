"""
Blob store backends.

Three implementations of :class:`BlobStore`:

- ``S3BlobStore``: the production backend (boto3, blocking calls run in a
  worker thread with bounded connect/read timeouts).
- ``FilesystemBlobStore``: keys mapped to files under a root directory,
  written atomically via temp file and rename.
- ``InMemoryBlobStore``: a dict, for development and tests.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from pictorium.models.results import Err, FailureKind, Ok, Result
from pictorium.services.interfaces.blob_store_interface import BlobStore, content_md5

logger = logging.getLogger(__name__)

_S3_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


# ---------------------------------------------------------------------------
# S3
# ---------------------------------------------------------------------------


class S3BlobStore(BlobStore):
    """Blob store backed by an S3 (or S3-compatible) bucket.

    Parameters
    ----------
    bucket : str
        Bucket holding the cache.
    region : str | None
        AWS region name.
    endpoint_url : str | None
        Custom endpoint for S3-compatible services (MinIO, LocalStack).
    access_key_id, secret_access_key : str | None
        Explicit credentials; when empty the default boto3 chain is used.
    connect_timeout, read_timeout : float
        Socket timeouts in seconds.
    client : Any, optional
        Pre-built boto3 S3 client (used by tests).
    """

    def __init__(
        self,
        bucket: str,
        *,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        if client is None:
            session = boto3.session.Session()
            client_args: dict[str, Optional[str]] = {
                "endpoint_url": endpoint_url,
                "region_name": region,
                "aws_access_key_id": access_key_id,
                "aws_secret_access_key": secret_access_key,
            }
            client = session.client(
                "s3",
                config=Config(
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
                **{k: v for k, v in client_args.items() if v},
            )
        self._client = client

    @property
    def bucket(self) -> str:
        """Name of the backing bucket."""
        return self._bucket

    @staticmethod
    def _error_code(exc: ClientError) -> str:
        return str(exc.response.get("Error", {}).get("Code", ""))

    async def get(self, key: str) -> Result[bytes]:
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self._bucket, Key=key
            )
            body = response["Body"]
            data: bytes = await asyncio.to_thread(body.read)
        except ClientError as exc:
            if self._error_code(exc) in _S3_MISSING_CODES:
                return Err(FailureKind.NOT_FOUND, f"No object at {key}")
            logger.warning("S3 get failed for %s: %s", key, exc)
            return Err(FailureKind.IO_FAILURE, f"S3 get failed for {key}: {exc}", exc)
        except BotoCoreError as exc:
            logger.warning("S3 get failed for %s: %s", key, exc)
            return Err(FailureKind.IO_FAILURE, f"S3 get failed for {key}: {exc}", exc)
        return Ok(data)

    async def put(self, key: str, data: bytes) -> Result[None]:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentMD5=content_md5(data),
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning("S3 put failed for %s: %s", key, exc)
            return Err(FailureKind.IO_FAILURE, f"S3 put failed for {key}: {exc}", exc)
        logger.debug("Stored s3://%s/%s (%d bytes)", self._bucket, key, len(data))
        return Ok(None)

    async def delete(self, key: str) -> Result[None]:
        try:
            await asyncio.to_thread(
                self._client.delete_object, Bucket=self._bucket, Key=key
            )
        except ClientError as exc:
            if self._error_code(exc) in _S3_MISSING_CODES:
                return Ok(None)
            logger.warning("S3 delete failed for %s: %s", key, exc)
            return Err(FailureKind.IO_FAILURE, f"S3 delete failed for {key}: {exc}", exc)
        except BotoCoreError as exc:
            logger.warning("S3 delete failed for %s: %s", key, exc)
            return Err(FailureKind.IO_FAILURE, f"S3 delete failed for {key}: {exc}", exc)
        return Ok(None)

    async def close(self) -> None:
        await asyncio.to_thread(self._client.close)


# ---------------------------------------------------------------------------
# Local filesystem
# ---------------------------------------------------------------------------


class FilesystemBlobStore(BlobStore):
    """Blob store that keeps each key as a file under *root*.

    Writes go to a hidden temp file beside the target, are checked against
    their MD5 digest, then renamed into place, so readers never observe a
    partially written file.
    """

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()

    @property
    def root(self) -> Path:
        """Directory holding the cached files."""
        return self._root

    def _path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if path == self._root or self._root not in path.parents:
            raise ValueError(f"Key escapes the store root: {key!r}")
        return path

    async def get(self, key: str) -> Result[bytes]:
        try:
            path = self._path_for(key)
        except ValueError as exc:
            return Err(FailureKind.IO_FAILURE, str(exc), exc)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return Err(FailureKind.NOT_FOUND, f"No file at {key}")
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            return Err(FailureKind.IO_FAILURE, f"Failed to read {key}: {exc}", exc)
        return Ok(data)

    async def put(self, key: str, data: bytes) -> Result[None]:
        try:
            path = self._path_for(key)
        except ValueError as exc:
            return Err(FailureKind.IO_FAILURE, str(exc), exc)
        try:
            await asyncio.to_thread(self._write_atomic, path, data, content_md5(data))
        except OSError as exc:
            logger.error("Disk error writing %s", path, exc_info=True)
            return Err(FailureKind.IO_FAILURE, f"Failed to write {key}: {exc}", exc)
        logger.debug("Stored %s (%d bytes)", path, len(data))
        return Ok(None)

    @staticmethod
    def _write_atomic(path: Path, data: bytes, expected_md5: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp.{uuid4()}")
        try:
            tmp_path.write_bytes(data)
            written = tmp_path.read_bytes()
            if content_md5(written) != expected_md5:
                raise OSError(f"Checksum mismatch writing {path}")
            tmp_path.replace(path)
        finally:
            tmp_path.unlink(missing_ok=True)

    async def delete(self, key: str) -> Result[None]:
        try:
            path = self._path_for(key)
        except ValueError as exc:
            return Err(FailureKind.IO_FAILURE, str(exc), exc)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", path, exc)
            return Err(FailureKind.IO_FAILURE, f"Failed to delete {key}: {exc}", exc)
        return Ok(None)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryBlobStore(BlobStore):
    """Dict-backed blob store. Contents are lost when the process exits."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None) -> None:
        self._blobs: dict[str, bytes] = dict(initial or {})
        self._checksums: dict[str, str] = {
            key: hashlib.md5(value).hexdigest() for key, value in self._blobs.items()
        }

    async def get(self, key: str) -> Result[bytes]:
        data = self._blobs.get(key)
        if data is None:
            return Err(FailureKind.NOT_FOUND, f"No blob at {key}")
        return Ok(data)

    async def put(self, key: str, data: bytes) -> Result[None]:
        self._blobs[key] = bytes(data)
        self._checksums[key] = hashlib.md5(data).hexdigest()
        return Ok(None)

    async def delete(self, key: str) -> Result[None]:
        self._blobs.pop(key, None)
        self._checksums.pop(key, None)
        return Ok(None)

    def checksum(self, key: str) -> Optional[str]:
        """Hex MD5 recorded for *key* at write time, if present."""
        return self._checksums.get(key)

    def keys(self) -> list[str]:
        """Stored keys in insertion order."""
        return list(self._blobs)

    def __len__(self) -> int:
        return len(self._blobs)

    def __contains__(self, key: object) -> bool:
        return key in self._blobs
