"""
Utilities module for pictorium.
"""

from __future__ import annotations

from pictorium.utils.log_setup import LOG_FORMAT, configure_logging

__all__ = ["LOG_FORMAT", "configure_logging"]
