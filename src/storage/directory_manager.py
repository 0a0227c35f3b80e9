# src/storage/directory_manager.py — v2
"""Unified cache directory manager.

Owns the cache root and its per-category subdirectories, and knows where the
legacy single-purpose cache lived so the migration engine can find it.

Root resolution: explicit argument -> TO_ICALENDAR_CACHE_DIR (via settings)
-> ``~/.to_icalendar/cache``.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator
from pathlib import Path

from reminder_cache.storage.eviction import evict_oldest_files
from reminder_cache.storage.layout import (
    CATEGORY_DIRS,
    LEGACY_LOCATIONS,
    CacheCategory,
    LegacyLocation,
)
from reminder_cache.storage.models import CategoryStats

logger = logging.getLogger(__name__)


def _raise(exc: OSError) -> None:
    raise exc


def iter_files(root: Path, skip_hidden_dirs: bool = False) -> Iterator[Path]:
    """Yield every regular file below ``root``, recursively.

    Unlike a bare ``os.walk``, listing errors propagate as ``OSError``.
    Symlinked directories are not followed.
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        if skip_hidden_dirs:
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        dirnames.sort()
        base = Path(dirpath)
        for name in sorted(filenames):
            yield base / name


def remove_path(path: Path) -> None:
    """Delete a file, symlink or directory tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


class CacheDirectoryManager:
    """Resolves, sizes and clears the per-category cache directories."""

    def __init__(
        self, root: Path | str | None = None, legacy_root: Path | str = Path(".")
    ) -> None:
        if root is None:
            from reminder_cache.config.settings import load_settings

            root = load_settings().resolved_cache_dir
        self._root = Path(root).expanduser()
        self._legacy_root = Path(legacy_root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def legacy_root(self) -> Path:
        return self._legacy_root

    def set_root(self, root: Path | str) -> None:
        """Switch to a new cache root and create its category directories.

        Raises:
            OSError: The new root cannot be created. The current root is kept.
        """
        new_root = Path(root).expanduser()
        new_root.mkdir(parents=True, exist_ok=True)
        old_root, self._root = self._root, new_root
        self.ensure_layout()
        logger.info("Cache root changed: %s -> %s", old_root, new_root)

    # --- Resolution ---

    def category_path(self, category: CacheCategory | str) -> Path:
        """Where a category directory lives, without creating it."""
        return self._root / CATEGORY_DIRS[CacheCategory(category)]

    def resolve_dir(self, category: CacheCategory | str) -> Path:
        """Return the category directory, creating it on first use."""
        path = self.category_path(category)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def resolve_file_path(self, category: CacheCategory | str, filename: str) -> Path:
        """Path of a file inside a category directory. The name is not validated."""
        return self.resolve_dir(category) / filename

    def list_categories(self) -> list[CacheCategory]:
        return list(CacheCategory)

    def ensure_layout(self) -> None:
        """Create the root and every category directory."""
        for category in CacheCategory:
            self.resolve_dir(category)

    # --- Statistics ---

    def stats(self) -> dict[CacheCategory, CategoryStats]:
        """Recursive file count and size per category.

        Raises:
            OSError: A directory could not be listed or a file stat'ed.
        """
        result: dict[CacheCategory, CategoryStats] = {}
        for category in CacheCategory:
            path = self.resolve_dir(category)
            files = 0
            total = 0
            for file_path in iter_files(path):
                total += file_path.stat().st_size
                files += 1
            result[category] = CategoryStats(
                category=category, path=path, file_count=files, total_bytes=total
            )
        return result

    # --- Destruction ---

    def clear(self, category: CacheCategory | str) -> None:
        """Remove everything inside a category directory, keeping it in place."""
        path = self.resolve_dir(category)
        for child in path.iterdir():
            remove_path(child)
        path.mkdir(parents=True, exist_ok=True)
        logger.info("Cleared cache category %s", CacheCategory(category).value)

    def clear_all(self) -> None:
        for category in CacheCategory:
            self.clear(category)

    # --- Blobs ---

    def store_blob(
        self,
        category: CacheCategory | str,
        filename: str,
        data: bytes,
        max_files: int | None = None,
    ) -> Path:
        """Write an opaque blob atomically, then evict the oldest files.

        Args:
            category: Target category directory.
            filename: File name inside the category.
            data: Raw bytes.
            max_files: Keep at most this many files in the directory.
                None disables eviction.

        Returns:
            Path of the written blob.
        """
        target = self.resolve_file_path(category, filename)
        tmp_path = target.with_name(target.name + ".tmp")
        try:
            tmp_path.write_bytes(data)
            os.replace(tmp_path, target)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        if max_files is not None:
            evict_oldest_files(target.parent, max_files)
        return target

    # --- Legacy layout ---

    def legacy_locations(self) -> list[LegacyLocation]:
        """Rows of the legacy table whose source path currently exists."""
        return [
            loc for loc in LEGACY_LOCATIONS
            if loc.source(self._legacy_root).exists()
        ]

    def legacy_paths(self) -> list[Path]:
        return [loc.source(self._legacy_root) for loc in self.legacy_locations()]

    def legacy_cache_exists(self) -> bool:
        return bool(self.legacy_locations())
