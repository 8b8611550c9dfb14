"""
Enums for pictorium models.

Defines enumeration types used across the application for consistent
type safety and validation.
"""

from __future__ import annotations

from enum import Enum


class ScaleMode(str, Enum):
    """How a source image is fitted into a variant's box."""

    CROP = "crop"  # fill the box exactly, crop the overflow
    FILL = "fill"  # fit inside the box, pad margins with the fill colour
    SKEW = "skew"  # stretch to the box, ignoring aspect ratio


class ImageEncoding(str, Enum):
    """Output encodings supported for derived variants."""

    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"

    @property
    def pillow_format(self) -> str:
        """Format name understood by ``PIL.Image.save``."""
        return {
            ImageEncoding.JPG: "JPEG",
            ImageEncoding.PNG: "PNG",
            ImageEncoding.WEBP: "WEBP",
        }[self]

    @property
    def media_type(self) -> str:
        """MIME type of images produced with this encoding."""
        return {
            ImageEncoding.JPG: "image/jpeg",
            ImageEncoding.PNG: "image/png",
            ImageEncoding.WEBP: "image/webp",
        }[self]


class CacheStatus(str, Enum):
    """Whether a served image came from the store or was just filled."""

    HIT = "HIT"
    MISS = "MISS"
