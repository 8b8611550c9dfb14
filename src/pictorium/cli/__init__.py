"""
CLI interface module for pictorium.

Provides the Typer-based command-line interface: fetching, flushing and
warming cached variants, listing variants and starting the API server.
"""

from __future__ import annotations

__all__: list[str] = []
