# src/cleanup/cleaner.py — v2
"""Selective cache cleanup with age filter, preview mode and cancellation.

Each target produces one CleanResult. In preview (dry-run) mode nothing is
touched and files that cannot be stat'ed are skipped. In execute mode the
first failed deletion stops that target; the other targets still run.
A failure to enumerate a target's directory is recorded as its error in
both modes.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from reminder_cache.cache.fingerprint import short_hash
from reminder_cache.cache.task_store import TaskCacheStore
from reminder_cache.cleanup.age_filter import cutoff_for, qualifies
from reminder_cache.cleanup.models import CleanOptions, CleanResult, CleanSummary, CleanTarget
from reminder_cache.logging.context import operation_context, set_category_context
from reminder_cache.storage.directory_manager import CacheDirectoryManager, iter_files
from reminder_cache.storage.eviction import evict_oldest_files
from reminder_cache.storage.layout import IMAGE_EXTENSIONS, IMAGE_HASH_FILE, CacheCategory

logger = logging.getLogger(__name__)

CLEAR_ALL_CATEGORY = "clear_all"
GENERATED_PREFIXES = ("temp_", "dify_")
GENERATED_MARKER = "_parsed_"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_generated_file(path: Path) -> bool:
    """Filename heuristic for intermediate files left by the parsing tools."""
    name = path.name
    if not name.endswith(".json"):
        return False
    return name.startswith(GENERATED_PREFIXES) or GENERATED_MARKER in name


def is_image_file(path: Path) -> bool:
    return path.suffix.lower() in IMAGE_EXTENSIONS


class CleanupEngine:
    """Deletes (or previews deleting) cache files per target."""

    def __init__(
        self,
        directories: CacheDirectoryManager,
        task_store: TaskCacheStore | None = None,
        temp_dir: Path | str | None = None,
        generated_dir: Path | str = Path("."),
        io_lock: threading.RLock | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._dirs = directories
        self._store = task_store
        self._temp_dir = Path(temp_dir).expanduser() if temp_dir is not None else None
        self._generated_dir = Path(generated_dir).expanduser()
        if io_lock is None:
            io_lock = task_store.io_lock if task_store is not None else threading.RLock()
        self._io_lock = io_lock
        self._clock = clock or _utcnow

    @property
    def temp_dir(self) -> Path:
        if self._temp_dir is not None:
            return self._temp_dir
        return self._dirs.category_path(CacheCategory.TEMP)

    # --- Public API ---

    def clean(
        self,
        options: CleanOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> CleanSummary:
        """Run the selected targets.

        Raises:
            ValueError: Malformed ``older_than``, or ``clear_all`` without a
                task store attached.
        """
        options = options or CleanOptions()
        cutoff = cutoff_for(options.older_than, self._clock())
        if options.clear_all and self._store is None:
            raise ValueError("clear_all requires a task cache store")

        summary = CleanSummary(dry_run=options.dry_run)
        start = time.monotonic()
        with operation_context("clean"):
            with self._io_lock:
                for target in options.selected_targets():
                    if cancel_event is not None and cancel_event.is_set():
                        summary.cancelled = True
                        break
                    set_category_context(target.value)
                    result = self._clean_target(target, cutoff, options.dry_run, cancel_event)
                    summary.results.append(result)
                    if result.cancelled:
                        summary.cancelled = True
                        break

                if options.clear_all and not summary.cancelled:
                    set_category_context(CLEAR_ALL_CATEGORY)
                    result = self._clear_all(options.dry_run)
                    summary.results.append(result)
                    summary.cleared_all = not options.dry_run and result.error is None

            set_category_context(None)
            summary.duration_seconds = time.monotonic() - start
            if summary.cancelled:
                logger.warning("Cleanup cancelled after %d files", summary.total_files)
            logger.info(
                "Cleanup %s: %d files, %d bytes in %.2fs",
                "preview" if options.dry_run else "done",
                summary.total_files, summary.total_bytes, summary.duration_seconds,
            )
            return summary

    def evict_images(self, max_files: int) -> list[Path]:
        """Keep only the ``max_files`` most recent cached images."""
        with self._io_lock:
            return evict_oldest_files(
                self._dirs.category_path(CacheCategory.IMAGES), max_files, IMAGE_EXTENSIONS
            )

    # --- Targets ---

    def _clean_target(
        self,
        target: CleanTarget,
        cutoff: datetime | None,
        dry_run: bool,
        cancel_event: threading.Event | None,
    ) -> CleanResult:
        start = time.monotonic()
        result = CleanResult(category=target.value)

        if target is CleanTarget.TASKS and self._store is not None:
            self._clean_task_records(result, cutoff, dry_run, cancel_event)
        else:
            try:
                candidates = self._candidates(target)
            except OSError as exc:
                result.error = f"Failed to list {target.value} files: {exc}"
                logger.error(result.error)
            else:
                self._clean_files(result, candidates, cutoff, dry_run, cancel_event)

        result.duration_seconds = time.monotonic() - start
        return result

    def _candidates(self, target: CleanTarget) -> list[Path]:
        if target is CleanTarget.TASKS:
            return self._walk(self._dirs.category_path(CacheCategory.TASKS))
        if target is CleanTarget.IMAGES:
            images = self._dirs.category_path(CacheCategory.IMAGES)
            return [p for p in self._walk(images) if is_image_file(p)]
        if target is CleanTarget.IMAGE_HASHES:
            path = self._dirs.category_path(CacheCategory.TASKS) / IMAGE_HASH_FILE
            return [path] if path.is_file() else []
        if target is CleanTarget.TEMP:
            return self._walk(self.temp_dir)
        if target is CleanTarget.GENERATED:
            return [
                p for p in self._walk(self._generated_dir, skip_hidden_dirs=True)
                if is_generated_file(p)
            ]
        raise ValueError(f"Unknown cleanup target: {target}")

    @staticmethod
    def _walk(root: Path, skip_hidden_dirs: bool = False) -> list[Path]:
        if not root.exists():
            return []
        return list(iter_files(root, skip_hidden_dirs=skip_hidden_dirs))

    def _clean_files(
        self,
        result: CleanResult,
        paths: list[Path],
        cutoff: datetime | None,
        dry_run: bool,
        cancel_event: threading.Event | None,
    ) -> None:
        for path in paths:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                return
            try:
                st = path.stat()
            except FileNotFoundError:
                continue
            except OSError as exc:
                if dry_run:
                    logger.debug("Cannot stat %s, left out of preview: %s", path, exc)
                    continue
                result.error = f"Failed to stat {path}: {exc}"
                logger.error(result.error)
                return

            mtime = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
            if not qualifies(mtime, cutoff):
                continue

            if dry_run:
                result.files.append(str(path))
            else:
                try:
                    path.unlink()
                except FileNotFoundError:
                    logger.debug("%s vanished before deletion", path)
                    continue
                except OSError as exc:
                    result.error = f"Failed to delete {path}: {exc}"
                    logger.error(result.error)
                    return
                logger.debug("Deleted %s", path)
            result.files_count += 1
            result.size_bytes += st.st_size

    def _clean_task_records(
        self,
        result: CleanResult,
        cutoff: datetime | None,
        dry_run: bool,
        cancel_event: threading.Event | None,
    ) -> None:
        store = self._store
        if cancel_event is not None and cancel_event.is_set():
            result.cancelled = True
            return

        matching = [r for r in store.records() if qualifies(r.created_at, cutoff)]
        size = sum(len(r.model_dump_json(by_alias=True).encode("utf-8")) for r in matching)

        if dry_run:
            result.files = [f"{r.title} [{short_hash(r.fingerprint)}]" for r in matching]
            result.files_count = len(matching)
            result.size_bytes = size
            return

        removed = store.discard(r.fingerprint for r in matching)
        try:
            store.flush()
        except OSError as exc:
            result.error = f"Failed to persist task cache: {exc}"
            logger.error(result.error)
        result.files_count = removed
        result.size_bytes = size

    def _clear_all(self, dry_run: bool) -> CleanResult:
        start = time.monotonic()
        store = self._store
        result = CleanResult(category=CLEAR_ALL_CATEGORY)
        result.files_count = len(store)
        try:
            result.size_bytes = store.path.stat().st_size
        except FileNotFoundError:
            result.size_bytes = 0
        except OSError as exc:
            if not dry_run:
                result.error = f"Failed to stat {store.path}: {exc}"

        if dry_run:
            result.files = [str(store.path)]
        elif result.error is None:
            try:
                store.clear()
            except OSError as exc:
                result.error = f"Failed to clear task cache: {exc}"
                logger.error(result.error)
            else:
                logger.info("Task cache cleared: %d records", result.files_count)
        result.duration_seconds = time.monotonic() - start
        return result
