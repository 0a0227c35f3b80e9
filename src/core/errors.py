# src/core/errors.py — v1
"""Exception types raised by the cache layer.

Filesystem failures are not wrapped: they surface as the builtin ``OSError``
family so callers can catch them the usual way. The types below cover the
failures that are specific to this package.
"""

from __future__ import annotations


class CacheError(Exception):
    """Base class for cache-layer errors."""


class CacheSerializationError(CacheError, ValueError):
    """Persisted cache data is corrupt or does not match the record schema."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Corrupt cache file {path}: {reason}")
        self.path = path
        self.reason = reason


class CopyVerificationError(CacheError, OSError):
    """A migrated copy does not match its source on disk."""
