"""
pictorium - On-demand image variant cache.

Serves pre-defined variants (thumbnail, crop, skew, original, ...) of images
held by an upstream source, deriving and persisting each variant into a blob
store on first request and serving later requests straight from the store.
"""

from __future__ import annotations

__version__ = "0.3.0"
__author__ = "pictorium"
__email__ = "noreply@pictorium.dev"
__license__ = "AGPL-3.0-or-later"

__all__ = ["__version__", "__author__", "__email__", "__license__"]
