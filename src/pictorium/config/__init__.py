"""
Configuration management module for pictorium.

Handles application settings: origin location, storage backend, variant
table and logging.
"""

from __future__ import annotations

__all__: list[str] = []
