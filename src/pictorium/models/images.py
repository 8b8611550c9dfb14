"""
Models describing served images and cache maintenance outcomes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .enums import CacheStatus
from .variant import VariantDefinition

_JPEG_MAGIC = b"\xff\xd8"
_PNG_MAGIC = b"\x89PNG"
_GIF_MAGIC = (b"GIF87a", b"GIF89a")


def detect_media_type(data: bytes, default: str = "image/jpeg") -> str:
    """Detect an image MIME type from its magic bytes.

    Parameters
    ----------
    data : bytes
        Image payload (only the first 12 bytes are inspected).
    default : str
        MIME type returned when the format is not recognised.

    Returns
    -------
    str
        ``image/jpeg``, ``image/png``, ``image/webp``, ``image/gif`` or
        *default*.
    """
    header = data[:12]
    if header[:2] == _JPEG_MAGIC:
        return "image/jpeg"
    if header[:4] == _PNG_MAGIC:
        return "image/png"
    if header[:4] == b"RIFF" and header[8:12] == b"WEBP":
        return "image/webp"
    if header[:6] in _GIF_MAGIC:
        return "image/gif"
    return default


class CachedImage(BaseModel):
    """An image served by the pipeline.

    Attributes
    ----------
    content : bytes
        Image payload exactly as stored.
    key : str
        Storage key the payload lives under.
    variant : VariantDefinition
        Variant the payload belongs to.
    cache_status : CacheStatus
        ``HIT`` when served from the store, ``MISS`` when just filled.
    """

    model_config = ConfigDict(frozen=True)

    content: bytes
    key: str
    variant: VariantDefinition
    cache_status: CacheStatus

    @property
    def media_type(self) -> str:
        """MIME type detected from the payload."""
        return detect_media_type(self.content, default=self.variant.encoding.media_type)

    @property
    def size_bytes(self) -> int:
        """Payload size in bytes."""
        return len(self.content)


class FlushReport(BaseModel):
    """Outcome of a best-effort flush.

    Attributes
    ----------
    variant : str
        Variant name the flush was requested for.
    filename : str
        Logical filename that was flushed.
    deleted : list[str]
        Storage keys deleted (or already absent).
    failed : list[str]
        Storage keys whose deletion failed.
    """

    variant: str
    filename: str
    deleted: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every deletion succeeded."""
        return not self.failed


class WarmResult(BaseModel):
    """Result of a cache-warming operation.

    Attributes
    ----------
    filled : int
        Number of entries derived and written.
    hits : int
        Number of entries already cached.
    failed : int
        Number of entries that could not be filled.
    total : int
        Total number of (variant, filename) pairs processed.
    failures : dict[str, str]
        ``"variant/filename"`` mapped to the failure message.
    """

    filled: int = 0
    hits: int = 0
    failed: int = 0
    total: int = 0
    failures: dict[str, str] = Field(default_factory=dict)
