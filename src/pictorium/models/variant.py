"""
Variant definition model.

A variant is a named, fixed image-derivation policy: target dimensions,
encoder quality, fill colour, output encoding and scale mode.
"""

from __future__ import annotations

import re
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import ImageEncoding, ScaleMode

RGB = Tuple[int, int, int]

_VARIANT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")
_HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def parse_color(value: Any) -> RGB:
    """Parse ``#rrggbb``, ``#rgb`` or a 3-item sequence into an RGB triple.

    Parameters
    ----------
    value : Any
        Hex colour string or sequence of three integers in ``0..255``.

    Returns
    -------
    tuple[int, int, int]
        The parsed colour.

    Raises
    ------
    ValueError
        If the value is not a recognisable colour.

    Examples
    --------
    >>> parse_color("#ff0000")
    (255, 0, 0)
    >>> parse_color("#fff")
    (255, 255, 255)
    """
    if isinstance(value, str):
        match = _HEX_COLOR_PATTERN.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid colour: {value!r}")
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    try:
        channels = tuple(int(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid colour: {value!r}") from exc
    if len(channels) != 3 or any(not 0 <= c <= 255 for c in channels):
        raise ValueError(f"Invalid colour: {value!r}")
    return (channels[0], channels[1], channels[2])


class VariantDefinition(BaseModel):
    """Immutable description of one image variant.

    A width and height of ``0`` marks the passthrough variant: its stored
    bytes are the untouched upstream image and nothing is resized. Exactly
    one such variant (the canonical variant) exists in a catalog.

    Attributes
    ----------
    name : str
        Case-insensitive identifier, stored lower-case.
    width : int
        Target width in pixels (``0`` for passthrough).
    height : int
        Target height in pixels (``0`` for passthrough).
    quality : int
        Encoder quality, 0-100.
    fill_color : tuple[int, int, int]
        RGB used to paint unfilled area under ``ScaleMode.FILL``.
    encoding : ImageEncoding
        Output image format.
    scale_mode : ScaleMode
        How the source is fitted into the target box.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=64)
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    quality: int = Field(default=90, ge=0, le=100)
    fill_color: RGB = Field(default=(255, 255, 255))
    encoding: ImageEncoding = Field(default=ImageEncoding.JPG)
    scale_mode: ScaleMode = Field(default=ScaleMode.FILL)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v: Any) -> Any:
        """Lower-case and validate the variant name."""
        if not isinstance(v, str):
            return v
        name = v.strip().lower()
        if not _VARIANT_NAME_PATTERN.match(name):
            raise ValueError(
                f"Invalid variant name {v!r}: use lower-case letters, digits, "
                "'-' and '_'"
            )
        return name

    @field_validator("fill_color", mode="before")
    @classmethod
    def validate_fill_color(cls, v: Any) -> RGB:
        """Accept hex strings as well as RGB sequences."""
        return parse_color(v)

    @field_validator("encoding", "scale_mode", mode="before")
    @classmethod
    def lower_enum_values(cls, v: Any) -> Any:
        """Allow upper-case enum values such as ``"JPG"`` or ``"CROP"``."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def check_dimensions(self) -> "VariantDefinition":
        """Both dimensions must be zero (passthrough) or both positive."""
        if (self.width == 0) != (self.height == 0):
            raise ValueError(
                f"Variant '{self.name}': width and height must both be 0 "
                "(passthrough) or both be positive"
            )
        return self

    @property
    def is_passthrough(self) -> bool:
        """True for the zero-dimension variant that stores the untouched source."""
        return self.width == 0 or self.height == 0

    @property
    def fill_color_hex(self) -> str:
        """Fill colour formatted as ``#rrggbb``."""
        r, g, b = self.fill_color
        return f"#{r:02x}{g:02x}{b:02x}"
