"""
Variant catalog.

Holds the fixed table of image variants the service can produce. The table
is built once at startup, validated, and then only ever read: lookups go
through a read-only mapping shared by reference with every request.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml
from pydantic import ValidationError

from pictorium.exceptions import UnknownVariantError
from pictorium.models.enums import ImageEncoding, ScaleMode
from pictorium.models.variant import VariantDefinition

logger = logging.getLogger(__name__)

CANONICAL_VARIANT_NAME = "original"

_RED = (255, 0, 0)
_WHITE = (255, 255, 255)

DEFAULT_VARIANTS: tuple[VariantDefinition, ...] = (
    VariantDefinition(
        name="thumbnail", width=100, height=100, quality=90,
        fill_color=_RED, encoding=ImageEncoding.JPG, scale_mode=ScaleMode.FILL,
    ),
    VariantDefinition(
        name="fill", width=100, height=100, quality=90,
        fill_color=_RED, encoding=ImageEncoding.JPG, scale_mode=ScaleMode.FILL,
    ),
    VariantDefinition(
        name="crop", width=1000, height=1000, quality=90,
        fill_color=_RED, encoding=ImageEncoding.JPG, scale_mode=ScaleMode.CROP,
    ),
    VariantDefinition(
        name="skew", width=100, height=100, quality=90,
        fill_color=_RED, encoding=ImageEncoding.JPG, scale_mode=ScaleMode.SKEW,
    ),
    VariantDefinition(
        name="skew-high", width=300, height=100, quality=90,
        fill_color=_RED, encoding=ImageEncoding.JPG, scale_mode=ScaleMode.SKEW,
    ),
    VariantDefinition(
        name=CANONICAL_VARIANT_NAME, width=0, height=0, quality=100,
        fill_color=_WHITE, encoding=ImageEncoding.JPG, scale_mode=ScaleMode.FILL,
    ),
)


class CatalogConfigurationError(ValueError):
    """Raised when a variant table is malformed."""


class VariantCatalog:
    """Immutable, case-insensitive registry of variant definitions.

    Parameters
    ----------
    definitions : Iterable[VariantDefinition]
        The variants to register. Names must be unique and exactly one
        definition must be the zero-dimension canonical variant.

    Raises
    ------
    CatalogConfigurationError
        If the table is empty, has duplicate names, or does not contain
        exactly one canonical variant.

    Examples
    --------
    >>> catalog = VariantCatalog.default()
    >>> catalog.supports("THUMBNAIL")
    True
    >>> catalog.lookup("thumbnail").width
    100
    """

    def __init__(self, definitions: Iterable[VariantDefinition]) -> None:
        by_name: dict[str, VariantDefinition] = {}
        for definition in definitions:
            if definition.name in by_name:
                raise CatalogConfigurationError(
                    f"Duplicate variant name: {definition.name}"
                )
            by_name[definition.name] = definition

        if not by_name:
            raise CatalogConfigurationError("A variant catalog needs at least one variant")

        canonical = [d for d in by_name.values() if d.is_passthrough]
        if len(canonical) != 1:
            raise CatalogConfigurationError(
                "A variant catalog needs exactly one passthrough (0x0) variant, "
                f"found {len(canonical)}"
            )

        self._variants: Mapping[str, VariantDefinition] = MappingProxyType(by_name)
        self._canonical = canonical[0]
        self._all = frozenset(by_name.values())

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def default(cls) -> "VariantCatalog":
        """Catalog with the built-in variant table."""
        return cls(DEFAULT_VARIANTS)

    @classmethod
    def from_yaml(cls, path: Path) -> "VariantCatalog":
        """Load a catalog from a YAML file.

        The file holds either a top-level list of variant mappings or a
        mapping with a ``variants`` list::

            variants:
              - name: thumbnail
                width: 100
                height: 100
                quality: 90
                fill_color: "#ff0000"
                encoding: jpg
                scale_mode: fill
              - name: original
                quality: 100

        Parameters
        ----------
        path : Path
            Location of the YAML file.

        Raises
        ------
        CatalogConfigurationError
            If the file is unreadable or any entry is invalid.
        """
        try:
            with path.open("r", encoding="utf-8") as f:
                raw: Any = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise CatalogConfigurationError(
                f"Cannot read variant table {path}: {exc}"
            ) from exc

        if isinstance(raw, dict):
            raw = raw.get("variants")
        if not isinstance(raw, list):
            raise CatalogConfigurationError(
                f"Variant table {path} must contain a list of variants"
            )

        definitions = []
        for index, entry in enumerate(raw):
            if not isinstance(entry, dict):
                raise CatalogConfigurationError(
                    f"Variant #{index} in {path} is not a mapping"
                )
            try:
                definitions.append(VariantDefinition(**entry))
            except ValidationError as exc:
                raise CatalogConfigurationError(
                    f"Variant #{index} in {path} is invalid: {exc}"
                ) from exc

        catalog = cls(definitions)
        logger.info("Loaded %d variants from %s", len(definitions), path)
        return catalog

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def supports(self, name: str) -> bool:
        """Return True if *name* (case-insensitive) is a registered variant."""
        return name.strip().lower() in self._variants

    def lookup(self, name: str) -> VariantDefinition:
        """Return the definition registered under *name*.

        Raises
        ------
        UnknownVariantError
            If no variant has that name.
        """
        definition = self._variants.get(name.strip().lower())
        if definition is None:
            raise UnknownVariantError(name)
        return definition

    def all(self) -> frozenset[VariantDefinition]:
        """Every registered definition."""
        return self._all

    @property
    def canonical(self) -> VariantDefinition:
        """The passthrough variant every other variant derives from."""
        return self._canonical

    @property
    def names(self) -> tuple[str, ...]:
        """Registered names in registration order."""
        return tuple(self._variants)

    def __len__(self) -> int:
        return len(self._variants)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.supports(name)

    def __repr__(self) -> str:
        return f"VariantCatalog({', '.join(self.names)})"
