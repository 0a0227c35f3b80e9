# src/migration/startup.py — v1
"""One-time automatic migration at application start.

Runs the engine with ``delete_source`` and ``skip_existing`` when legacy data
is present and no completion marker exists yet. The marker is only written
after a fully successful run, so a partial failure is retried next start.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from reminder_cache.migration.engine import MigrationEngine
from reminder_cache.migration.models import MigrationOptions, MigrationResult
from reminder_cache.storage.directory_manager import CacheDirectoryManager
from reminder_cache.storage.layout import LEGACY_LOCATIONS, MIGRATION_MARKER

logger = logging.getLogger(__name__)

STARTUP_OPTIONS = MigrationOptions(delete_source=True, skip_existing=True)


def marker_path(directories: CacheDirectoryManager) -> Path:
    return directories.root / MIGRATION_MARKER


def migration_completed(directories: CacheDirectoryManager) -> bool:
    return marker_path(directories).exists()


def run_startup_migration(
    engine: MigrationEngine, directories: CacheDirectoryManager
) -> MigrationResult | None:
    """Migrate legacy data once.

    Returns:
        The migration result, or None when there was nothing to do.
    """
    if migration_completed(directories):
        logger.debug("Migration marker present, skipping startup migration")
        return None
    if not directories.legacy_cache_exists():
        logger.debug("No legacy cache found")
        return None

    plan = engine.build_plan()
    result = engine.execute(plan, STARTUP_OPTIONS)

    if result.success:
        directories.ensure_layout()
        marker_path(directories).write_text(
            datetime.now(timezone.utc).isoformat(), encoding="utf-8"
        )
        _remove_empty_legacy_dirs(engine.legacy_root)
        logger.info(
            "Startup migration complete: %d items, %d bytes",
            len(result.migrated), result.total_bytes_moved,
        )
    else:
        logger.warning(
            "Startup migration incomplete (%d failed); will retry on next start",
            len(result.failed),
        )
    return result


def _remove_empty_legacy_dirs(legacy_root: Path) -> None:
    # Deepest first so a parent can go once its children are gone.
    dirs = sorted(
        {loc.source(legacy_root) for loc in LEGACY_LOCATIONS if loc.is_dir},
        key=lambda p: len(p.parts),
        reverse=True,
    )
    for path in dirs:
        if path.is_dir() and not any(path.iterdir()):
            path.rmdir()
            logger.info("Removed empty legacy directory %s", path)
