"""
Image resizer.

Derives a variant image from the canonical (original) bytes: decode, scale
according to the variant's scale mode, crop or pad to the exact target box,
then re-encode.

The scaling rules:

- CROP scales so the image covers the target box, then crops the centre.
- FILL scales so the image fits inside the target box, then pads the rest
  with the variant's fill colour, centred.
- SKEW stretches the image to exactly the target box.
"""

from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from pictorium.models.enums import ScaleMode
from pictorium.models.results import Err, FailureKind, Ok, Result
from pictorium.models.variant import VariantDefinition

logger = logging.getLogger(__name__)

_RESAMPLE = Image.Resampling.LANCZOS


def scaled_size(
    source_width: int,
    source_height: int,
    target_width: int,
    target_height: int,
    scale_mode: ScaleMode,
) -> tuple[int, int]:
    """Size the source is scaled to before cropping or padding.

    Parameters
    ----------
    source_width, source_height : int
        Dimensions of the decoded original.
    target_width, target_height : int
        Dimensions of the variant.
    scale_mode : ScaleMode
        How the source is fitted into the target.

    Returns
    -------
    tuple[int, int]
        The intermediate ``(width, height)``. For CROP it covers the target,
        for FILL it fits inside it, for SKEW it equals it.

    Examples
    --------
    >>> scaled_size(400, 200, 100, 100, ScaleMode.CROP)
    (200, 100)
    >>> scaled_size(400, 200, 100, 100, ScaleMode.FILL)
    (100, 50)
    """
    if scale_mode is ScaleMode.SKEW:
        return target_width, target_height

    target_wider = target_width / target_height >= source_width / source_height
    match_width = target_wider if scale_mode is ScaleMode.CROP else not target_wider

    if match_width:
        return target_width, max(1, source_height * target_width // source_width)
    return max(1, source_width * target_height // source_height), target_height


class Resizer:
    """Produces variant bytes from canonical bytes.

    Pure and stateless; safe to call from worker threads.
    """

    def derive(self, definition: VariantDefinition, original: bytes) -> Result[bytes]:
        """Derive the *definition* variant from *original*.

        Parameters
        ----------
        definition : VariantDefinition
            Target variant. Must not be the passthrough variant.
        original : bytes
            Encoded canonical image.

        Returns
        -------
        Result[bytes]
            ``Ok(bytes)`` with an image of exactly ``width x height`` in the
            variant's encoding, ``Err(DECODE_ERROR)`` if *original* cannot be
            decoded, ``Err(ENCODE_ERROR)`` if re-encoding fails.

        Raises
        ------
        ValueError
            If *definition* is the passthrough variant.
        """
        if definition.is_passthrough:
            raise ValueError(
                f"Variant '{definition.name}' is a passthrough variant and is never resized"
            )

        try:
            with Image.open(BytesIO(original)) as source:
                image = source.convert("RGB")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            logger.warning("Cannot decode image for variant %s: %s", definition.name, exc)
            return Err(FailureKind.DECODE_ERROR, f"Cannot decode image: {exc}", exc)

        target = self._fit(image, definition)

        buffer = BytesIO()
        try:
            target.save(buffer, **self._save_options(definition))
        except (OSError, ValueError, KeyError) as exc:
            logger.warning("Cannot encode variant %s: %s", definition.name, exc)
            return Err(FailureKind.ENCODE_ERROR, f"Cannot encode image: {exc}", exc)
        return Ok(buffer.getvalue())

    @staticmethod
    def _fit(image: Image.Image, definition: VariantDefinition) -> Image.Image:
        width, height = definition.width, definition.height
        scaled_width, scaled_height = scaled_size(
            image.width, image.height, width, height, definition.scale_mode
        )
        scaled = image.resize((scaled_width, scaled_height), _RESAMPLE)

        if definition.scale_mode is ScaleMode.SKEW:
            return scaled

        dx = abs(scaled_width - width) // 2
        dy = abs(scaled_height - height) // 2

        if definition.scale_mode is ScaleMode.CROP:
            return scaled.crop((dx, dy, dx + width, dy + height))

        canvas = Image.new("RGB", (width, height), definition.fill_color)
        canvas.paste(scaled, (dx, dy))
        return canvas

    @staticmethod
    def _save_options(definition: VariantDefinition) -> dict[str, object]:
        options: dict[str, object] = {"format": definition.encoding.pillow_format}
        if definition.encoding.pillow_format in ("JPEG", "WEBP"):
            options["quality"] = definition.quality
        return options
