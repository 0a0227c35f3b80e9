# src/storage/layout.py — v2
"""Unified cache directory structure definition.

One subdirectory per category under a single root, plus the table of legacy
locations the migration engine relocates into it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


APP_HOME_DIR = ".to_icalendar"


class CacheCategory(str, Enum):
    """Cache data categories, in declaration (listing) order."""

    IMAGES = "images"
    TASKS = "tasks"
    CONFIG = "config"
    TEMP = "temp"
    GLOBAL = "global"
    LEGACY_ROOT = "legacy"


# Subdirectory name per category under the cache root.
CATEGORY_DIRS: dict[CacheCategory, str] = {c: c.value for c in CacheCategory}

# Well-known files
TASK_CACHE_FILE = "submitted_tasks.json"
IMAGE_HASH_FILE = "image_hashes.json"
MIGRATION_MARKER = ".migration_completed"

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"})


def default_cache_root() -> Path:
    return Path.home() / APP_HOME_DIR / "cache"


def default_temp_dir() -> Path:
    return Path.home() / APP_HOME_DIR / "temp"


@dataclass(frozen=True)
class LegacyLocation:
    """A pre-unification cache path and where its data belongs now.

    ``target_name`` of None means the path is a directory whose contents are
    merged into the category directory itself.
    """

    category: CacheCategory
    relative_path: str
    target_name: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.target_name is None

    def source(self, legacy_root: Path) -> Path:
        return legacy_root / self.relative_path


# Most specific rows first; a directory row never re-migrates paths claimed
# by an earlier row.
LEGACY_LOCATIONS: tuple[LegacyLocation, ...] = (
    LegacyLocation(CacheCategory.TASKS, "cache/submitted_tasks.json", TASK_CACHE_FILE),
    LegacyLocation(CacheCategory.TASKS, "cache/image_hashes.json", IMAGE_HASH_FILE),
    LegacyLocation(CacheCategory.IMAGES, "cache/images"),
    LegacyLocation(CacheCategory.LEGACY_ROOT, "cache"),
)
