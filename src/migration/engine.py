# src/migration/engine.py — v2
"""Legacy cache migration: plan, then execute under a policy.

Per item, in order:
  1. dry_run -> reported in ``would_migrate``, nothing touched.
  2. destination exists, skip_existing and not force_overwrite -> skipped.
  3. otherwise back up the destination (optional), copy, verify the copy,
     then delete the source (optional).

A failing item lands in ``failed`` and the remaining items still run.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from reminder_cache.core.errors import CopyVerificationError
from reminder_cache.logging.context import operation_context, set_category_context
from reminder_cache.migration.models import (
    FailedMigration,
    MigrationItem,
    MigrationOptions,
    MigrationPlan,
    MigrationResult,
)
from reminder_cache.storage.directory_manager import CacheDirectoryManager, iter_files
from reminder_cache.storage.layout import LEGACY_LOCATIONS

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"
COPY_SUFFIX = ".migrating"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_excluded(path: Path, source: Path, exclude: list[str]) -> bool:
    rel = path.relative_to(source)
    for pattern in exclude:
        claimed = Path(pattern)
        if rel == claimed or claimed in rel.parents:
            return True
    return False


class MigrationEngine:
    """Relocates legacy cache data into the unified directory layout."""

    def __init__(
        self,
        directories: CacheDirectoryManager,
        legacy_root: Path | str | None = None,
        io_lock: threading.RLock | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._dirs = directories
        self._legacy_root = (
            Path(legacy_root).expanduser() if legacy_root is not None
            else directories.legacy_root
        )
        self._io_lock = io_lock or threading.RLock()
        self._clock = clock or _utcnow

    @property
    def legacy_root(self) -> Path:
        return self._legacy_root

    # --- Planning ---

    def build_plan(self) -> MigrationPlan:
        """Detect legacy data and size it. Read-only.

        Raises:
            OSError: A legacy directory could not be listed.
        """
        items: list[MigrationItem] = []
        claimed: list[Path] = []

        for loc in LEGACY_LOCATIONS:
            source = loc.source(self._legacy_root)
            if not source.exists():
                continue
            target_dir = self._dirs.category_path(loc.category)

            if not loc.is_dir:
                if source.is_file():
                    items.append(MigrationItem(
                        category=loc.category,
                        source_path=source,
                        destination_path=target_dir / loc.target_name,
                        size_bytes=source.stat().st_size,
                        file_count=1,
                    ))
                claimed.append(source)
                continue

            if not source.is_dir():
                logger.warning("Legacy path %s is not a directory, ignored", source)
                continue
            exclude = [
                c.relative_to(source).as_posix()
                for c in claimed if c != source and c.is_relative_to(source)
            ]
            files = [
                f for f in iter_files(source)
                if not _is_excluded(f, source, exclude)
            ]
            claimed.append(source)
            if not files:
                logger.debug("Legacy directory %s has nothing left to migrate", source)
                continue
            items.append(MigrationItem(
                category=loc.category,
                source_path=source,
                destination_path=target_dir,
                size_bytes=sum(f.stat().st_size for f in files),
                file_count=len(files),
                is_dir=True,
                exclude=exclude,
            ))

        plan = MigrationPlan(items=items, target_root=self._dirs.root)
        logger.info(
            "Migration plan: %d items, %d files, %d bytes",
            len(plan.items), plan.total_files, plan.total_size,
        )
        return plan

    # --- Execution ---

    def execute(
        self,
        plan: MigrationPlan,
        options: MigrationOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> MigrationResult:
        """Run the plan under ``options``.

        Per-item failures are collected in the result; the cancel event is
        checked between items.
        """
        options = options or MigrationOptions()
        if options.skip_existing and options.force_overwrite:
            logger.info("force_overwrite set: skip_existing is ignored")

        result = MigrationResult(dry_run=options.dry_run, started_at=self._clock())
        start = time.monotonic()
        with operation_context("migrate"):
            with self._io_lock:
                for item in plan.items:
                    if cancel_event is not None and cancel_event.is_set():
                        result.cancelled = True
                        logger.warning("Migration cancelled before %s", item.source_path)
                        break
                    set_category_context(item.category.value)

                    if options.dry_run:
                        result.would_migrate.append(item)
                        logger.info(
                            "[dry-run] would migrate %s -> %s",
                            item.source_path, item.destination_path,
                        )
                        continue

                    exists = self._destination_exists(item)
                    if exists and options.skip_existing and not options.force_overwrite:
                        result.skipped.append(item)
                        logger.info("Skipped %s: destination exists", item.source_path)
                        continue

                    try:
                        moved = self._migrate_item(item, options, exists, result)
                    except OSError as exc:
                        result.failed.append(FailedMigration(item=item, error=str(exc)))
                        logger.error("Failed to migrate %s: %s", item.source_path, exc)
                        continue
                    result.migrated.append(item)
                    result.total_bytes_moved += moved

            set_category_context(None)
            result.duration_seconds = time.monotonic() - start
            logger.info(
                "Migration finished: %d migrated, %d skipped, %d failed, %d bytes",
                len(result.migrated), len(result.skipped), len(result.failed),
                result.total_bytes_moved,
            )
            return result

    # --- Internals ---

    def _destination_exists(self, item: MigrationItem) -> bool:
        dest = item.destination_path
        if item.is_dir:
            return dest.is_dir() and any(dest.iterdir())
        return dest.exists()

    def _migrate_item(
        self,
        item: MigrationItem,
        options: MigrationOptions,
        exists: bool,
        result: MigrationResult,
    ) -> int:
        if options.backup and exists:
            result.backups.append(self._backup(item.destination_path))

        if item.is_dir:
            pairs = [
                (f, item.destination_path / f.relative_to(item.source_path))
                for f in iter_files(item.source_path)
                if not _is_excluded(f, item.source_path, item.exclude)
            ]
        else:
            pairs = [(item.source_path, item.destination_path)]

        for src, dst in pairs:
            self._copy_file(src, dst)
        moved = self._verify(pairs)

        if options.delete_source:
            self._remove_source(item, pairs)
        logger.info("Migrated %s -> %s", item.source_path, item.destination_path)
        return moved

    def _backup(self, dest: Path) -> Path:
        stamp = self._clock().astimezone(timezone.utc).strftime(BACKUP_TIMESTAMP_FORMAT)
        backup = dest.with_name(f"{dest.name}.bak-{stamp}")
        n = 1
        while backup.exists():
            backup = dest.with_name(f"{dest.name}.bak-{stamp}-{n}")
            n += 1
        if dest.is_dir():
            shutil.copytree(dest, backup, symlinks=True)
        else:
            shutil.copy2(dest, backup)
        logger.info("Backed up %s to %s", dest, backup)
        return backup

    @staticmethod
    def _copy_file(src: Path, dst: Path) -> None:
        dst.parent.mkdir(parents=True, exist_ok=True)
        tmp = dst.with_name(dst.name + COPY_SUFFIX)
        try:
            shutil.copy2(src, tmp)
            os.replace(tmp, dst)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    @staticmethod
    def _verify(pairs: list[tuple[Path, Path]]) -> int:
        """Check every copy exists with its source's size. Returns bytes copied."""
        total = 0
        for src, dst in pairs:
            expected = src.stat().st_size
            if not dst.is_file() or dst.stat().st_size != expected:
                raise CopyVerificationError(f"Copy of {src} at {dst} does not match source")
            total += expected
        return total

    @staticmethod
    def _remove_source(item: MigrationItem, pairs: list[tuple[Path, Path]]) -> None:
        source = item.source_path
        if not item.is_dir:
            source.unlink()
            return
        if not item.exclude:
            shutil.rmtree(source)
            return

        # Only the copied files go; claimed sub-paths stay for their own item.
        for src, _ in pairs:
            src.unlink()
        for dirpath, _, _ in os.walk(source, topdown=False):
            path = Path(dirpath)
            if path == source or _is_excluded(path, source, item.exclude):
                continue
            if not any(path.iterdir()):
                path.rmdir()
        if not any(source.iterdir()):
            source.rmdir()
