"""
Data models module for pictorium.

Defines the variant definitions, typed pipeline results and the values
returned to callers.
"""

from __future__ import annotations

from .enums import CacheStatus, ImageEncoding, ScaleMode
from .images import CachedImage, FlushReport, WarmResult, detect_media_type
from .results import Err, FailureKind, Ok, Result
from .variant import VariantDefinition, parse_color

__all__ = [
    # Enums
    "CacheStatus",
    "ImageEncoding",
    "ScaleMode",
    # Variants
    "VariantDefinition",
    "parse_color",
    # Results
    "Err",
    "FailureKind",
    "Ok",
    "Result",
    # Images
    "CachedImage",
    "FlushReport",
    "WarmResult",
    "detect_media_type",
]
