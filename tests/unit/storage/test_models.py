# tests/unit/storage/test_models.py — v2
"""Tests for storage/models.py."""

from __future__ import annotations

from pathlib import Path

from reminder_cache.storage.layout import CacheCategory
from reminder_cache.storage.models import CategoryStats


class TestCategoryStats:
    def test_defaults(self):
        cs = CategoryStats(category=CacheCategory.IMAGES, path=Path("/c/images"))
        assert cs.file_count == 0
        assert cs.total_bytes == 0

    def test_category_coerced_from_value(self):
        cs = CategoryStats(category="temp", path="/c/temp", file_count=2, total_bytes=10)
        assert cs.category is CacheCategory.TEMP
        assert cs.path == Path("/c/temp")
