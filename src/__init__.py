# src/__init__.py — v1
"""reminder_cache: dedup cache and lifecycle management for reminder submission."""

from reminder_cache.version import __version__

__all__ = ["__version__"]
