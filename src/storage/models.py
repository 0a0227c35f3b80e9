# src/storage/models.py — v2
"""Storage-layer data models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from reminder_cache.storage.layout import CacheCategory


class CategoryStats(BaseModel):
    """Recursive size of one cache category directory."""

    category: CacheCategory
    path: Path
    file_count: int = 0
    total_bytes: int = 0
