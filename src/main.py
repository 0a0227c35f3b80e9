# src/main.py — v3
"""CLI entry point — clean, migrate, stats, purge commands.

Usage:
    reminder-cache clean [--tasks] [--images] [--older-than 7d] [--dry-run] [--force]
    reminder-cache migrate [--dry-run] [--backup] [--delete-source]
    reminder-cache stats
    reminder-cache purge

Exit codes: 0 success, 1 error or failed items, 130 interrupted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from reminder_cache.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
        _setup_logging(settings, args.verbose)
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="reminder-cache",
        description=f"reminder-cache v{__version__} — reminder dedup cache maintenance",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-dir", type=Path, default=None,
        help="Cache root (default: $TO_ICALENDAR_CACHE_DIR or ~/.to_icalendar/cache)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- clean ---
    p_clean = subparsers.add_parser("clean", help="Delete cached files")
    p_clean.add_argument("--all", action="store_true", help="Clean every target")
    p_clean.add_argument("--tasks", action="store_true", help="Submitted-task cache")
    p_clean.add_argument("--images", action="store_true", help="Cached images")
    p_clean.add_argument(
        "--image-hashes", action="store_true", help="Image hash index file",
    )
    p_clean.add_argument("--temp", action="store_true", help="Temporary files")
    p_clean.add_argument(
        "--generated", action="store_true", help="Generated intermediate JSON files",
    )
    p_clean.add_argument(
        "--older-than", default="",
        help="Only entries older than this age, e.g. 7d, 12h, 30m",
    )
    p_clean.add_argument(
        "--dry-run", action="store_true", help="Preview without deleting",
    )
    p_clean.add_argument(
        "--force", action="store_true", help="Do not ask for confirmation",
    )
    p_clean.add_argument(
        "--clear-all", action="store_true",
        help="Also empty the whole task cache, ignoring --older-than",
    )
    p_clean.set_defaults(func=_cmd_clean)

    # --- migrate ---
    p_migrate = subparsers.add_parser(
        "migrate", help="Move legacy cache data into the unified layout",
    )
    p_migrate.add_argument(
        "--legacy-root", type=Path, default=None,
        help="Directory holding the legacy cache/ folder (default: settings)",
    )
    p_migrate.add_argument("--dry-run", action="store_true", help="Only report")
    p_migrate.add_argument(
        "--backup", action="store_true", help="Back up destinations before overwriting",
    )
    p_migrate.add_argument(
        "--delete-source", action="store_true", help="Remove legacy data once copied",
    )
    p_migrate.add_argument(
        "--skip-existing", action="store_true", help="Leave existing destinations alone",
    )
    p_migrate.add_argument(
        "--force-overwrite", action="store_true",
        help="Overwrite destinations (wins over --skip-existing)",
    )
    p_migrate.set_defaults(func=_cmd_migrate)

    # --- stats ---
    p_stats = subparsers.add_parser("stats", help="Show cache statistics")
    p_stats.set_defaults(func=_cmd_stats)

    # --- purge ---
    p_purge = subparsers.add_parser(
        "purge", help="Drop expired task records and trim the image cache",
    )
    p_purge.set_defaults(func=_cmd_purge)

    return parser


def _load_settings(args: argparse.Namespace):
    from reminder_cache.config.settings import load_settings

    overrides = {}
    if args.cache_dir is not None:
        overrides["cache_dir"] = args.cache_dir
    return load_settings(**overrides)


def _open_store(settings, directories):
    from reminder_cache.cache.task_store import TaskCacheStore
    from reminder_cache.storage.layout import CacheCategory

    store = TaskCacheStore(
        directories.resolve_dir(CacheCategory.TASKS),
        ttl=settings.task_ttl,
        filename=settings.task_cache_file,
        max_pending_flushes=settings.flush_queue_size,
    )
    store.load()
    return store


def _cmd_clean(args: argparse.Namespace, settings) -> int:
    """Preview or run a cleanup pass."""
    from reminder_cache.cleanup.cleaner import CleanupEngine
    from reminder_cache.cleanup.models import CleanOptions
    from reminder_cache.storage.directory_manager import CacheDirectoryManager

    options = CleanOptions(
        all=args.all,
        tasks=args.tasks,
        images=args.images,
        image_hashes=args.image_hashes,
        temp=args.temp,
        generated=args.generated,
        dry_run=args.dry_run,
        force=args.force,
        older_than=args.older_than,
        clear_all=args.clear_all,
    )
    directories = CacheDirectoryManager(
        settings.resolved_cache_dir, legacy_root=settings.legacy_root
    )
    store = _open_store(settings, directories)
    try:
        engine = CleanupEngine(
            directories,
            task_store=store,
            temp_dir=settings.resolved_temp_dir,
            generated_dir=settings.generated_dir,
        )

        if not options.dry_run and not options.force:
            preview = engine.clean(options.model_copy(update={"dry_run": True}))
            _print_clean_summary(preview)
            if preview.total_files == 0 and not options.clear_all:
                print("Nothing to clean.")
                return 0
            if not _confirm("Delete these files?"):
                print("Cancelled.")
                return 0

        summary = engine.clean(options)
        _print_clean_summary(summary)
    finally:
        store.shutdown(settings.flush_timeout_seconds)

    if summary.cancelled:
        return 130
    return 1 if summary.errors else 0


def _cmd_migrate(args: argparse.Namespace, settings) -> int:
    """Build and execute a legacy migration plan."""
    from reminder_cache.migration.engine import MigrationEngine
    from reminder_cache.migration.models import MigrationOptions
    from reminder_cache.storage.directory_manager import CacheDirectoryManager

    legacy_root = args.legacy_root or settings.legacy_root
    directories = CacheDirectoryManager(settings.resolved_cache_dir, legacy_root=legacy_root)
    engine = MigrationEngine(directories)

    plan = engine.build_plan()
    if not plan.migration_required:
        print("No legacy cache data found.")
        return 0

    options = MigrationOptions(
        dry_run=args.dry_run,
        backup=args.backup,
        delete_source=args.delete_source,
        skip_existing=args.skip_existing,
        force_overwrite=args.force_overwrite,
    )
    result = engine.execute(plan, options)
    _print_migration_result(result)

    if result.cancelled:
        return 130
    return 0 if result.success else 1


def _cmd_stats(args: argparse.Namespace, settings) -> int:
    """Display per-category and task cache statistics."""
    from reminder_cache.cache.deduplicator import Deduplicator
    from reminder_cache.core.units import format_bytes
    from reminder_cache.storage.directory_manager import CacheDirectoryManager

    directories = CacheDirectoryManager(
        settings.resolved_cache_dir, legacy_root=settings.legacy_root
    )
    stats = directories.stats()
    store = _open_store(settings, directories)
    try:
        dedup = Deduplicator.from_settings(store, settings)
        task_stats = dedup.stats()
    finally:
        store.shutdown(settings.flush_timeout_seconds)

    print(f"\nCache root: {directories.root}")
    for category, cs in stats.items():
        print(f"  {category.value:<8} {cs.file_count:>6} files  {format_bytes(cs.total_bytes):>10}")
    print(f"\nTask cache: {task_stats.cache_file}")
    print(f"  Records:      {task_stats.total_records}")
    print(f"  Last 24h:     {task_stats.recent_count}")
    print(f"  TTL:          {task_stats.ttl_days:g} days")
    print(f"  Dedup:        {'enabled' if dedup.enabled else 'disabled'}")
    for list_name, count in sorted(task_stats.per_list_counts.items()):
        print(f"    {list_name or '(no list)'}: {count}")
    if directories.legacy_cache_exists():
        print("\nLegacy cache data present; run `reminder-cache migrate`.")
    return 0


def _cmd_purge(args: argparse.Namespace, settings) -> int:
    """Remove expired task cache records and evict old cached images."""
    from reminder_cache.cache.deduplicator import Deduplicator
    from reminder_cache.cleanup.cleaner import CleanupEngine
    from reminder_cache.storage.directory_manager import CacheDirectoryManager

    directories = CacheDirectoryManager(
        settings.resolved_cache_dir, legacy_root=settings.legacy_root
    )
    store = _open_store(settings, directories)
    try:
        removed = Deduplicator.from_settings(store, settings).cleanup()
        engine = CleanupEngine(directories, task_store=store)
        evicted = engine.evict_images(settings.image_cache_max_files)
    finally:
        store.shutdown(settings.flush_timeout_seconds)
    print(f"Purged {removed} expired records.")
    print(f"Evicted {len(evicted)} cached images (limit {settings.image_cache_max_files}).")
    return 0


def _confirm(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def _print_clean_summary(summary: object) -> None:
    """Print a human-readable CleanSummary."""
    from reminder_cache.core.units import format_bytes

    title = "Cleanup preview" if summary.dry_run else "Cleanup complete"
    print(f"\n{title}:")
    for result in summary.results:
        line = f"  {result.category:<13} {result.files_count:>6} files  {format_bytes(result.size_bytes):>10}"
        if result.error:
            line += f"  ERROR: {result.error}"
        elif result.cancelled:
            line += "  (cancelled)"
        print(line)
        for name in result.files[:10]:
            print(f"      {name}")
        if len(result.files) > 10:
            print(f"      ... and {len(result.files) - 10} more")
    print(f"  Total:        {summary.total_files} files, {format_bytes(summary.total_bytes)}")
    print(f"  Duration:     {summary.duration_seconds:.2f}s")


def _print_migration_result(result: object) -> None:
    """Print a human-readable MigrationResult."""
    from reminder_cache.core.units import format_bytes

    title = "Migration preview" if result.dry_run else "Migration complete"
    print(f"\n{title}:")
    for item in result.would_migrate:
        print(f"  would migrate {item.source_path} -> {item.destination_path}")
    print(f"  Migrated:     {len(result.migrated)}")
    print(f"  Skipped:      {len(result.skipped)}")
    print(f"  Failed:       {len(result.failed)}")
    for failure in result.failed:
        print(f"    {failure.item.source_path}: {failure.error}")
    print(f"  Moved:        {format_bytes(result.total_bytes_moved)}")
    print(f"  Duration:     {result.duration_seconds:.2f}s")


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from reminder_cache.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
