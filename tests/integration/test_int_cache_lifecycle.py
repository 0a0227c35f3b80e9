# tests/integration/test_int_cache_lifecycle.py — v1
"""Integration tests for the cache lifecycle.

Covers: legacy migration -> store load -> dedup -> cleanup, on a real
temporary filesystem with the shared I/O lock.
"""

from __future__ import annotations

import json
import threading
from datetime import timedelta

from reminder_cache.cache.deduplicator import Deduplicator
from reminder_cache.cache.models import ParsedReminder
from reminder_cache.cache.task_store import TaskCacheStore
from reminder_cache.cleanup.cleaner import CleanupEngine
from reminder_cache.cleanup.models import CleanOptions
from reminder_cache.migration.engine import MigrationEngine
from reminder_cache.migration.startup import migration_completed, run_startup_migration
from reminder_cache.storage.layout import CacheCategory


class TestCacheLifecycle:
    def test_migrated_records_deduplicate(self, directories, legacy_root, clock, standup):
        legacy = legacy_root / "cache" / "submitted_tasks.json"
        legacy.parent.mkdir()
        legacy.write_text(json.dumps([{
            "task_hash": "0" * 64,
            "title": "placeholder", "date": "", "time": "", "list": "",
            "created_at": (clock.now - timedelta(days=1)).isoformat(),
        }]), encoding="utf-8")

        result = run_startup_migration(MigrationEngine(directories, clock=clock), directories)
        assert result.success and migration_completed(directories)

        store = TaskCacheStore(directories.resolve_dir(CacheCategory.TASKS), clock=clock)
        assert store.load() == 1

        dedup = Deduplicator(store)
        assert dedup.check(standup).suggested_action == "create"
        dedup.record(standup, "ext-1")
        assert dedup.check(standup).suggested_action == "skip"
        assert store.shutdown(timeout=5)

        reloaded = TaskCacheStore(directories.resolve_dir(CacheCategory.TASKS), clock=clock)
        assert reloaded.load() == 2
        assert reloaded.is_duplicate(standup)

    def test_cleanup_serialized_with_submissions(self, directories, clock):
        store = TaskCacheStore(directories.resolve_dir(CacheCategory.TASKS), clock=clock)
        store.load()
        for i in range(20):
            store.record_submission(ParsedReminder(title=f"old-{i}"))
        clock.advance(days=10)

        engine = CleanupEngine(directories, task_store=store, clock=clock)
        stop = threading.Event()
        first = threading.Event()

        def submitter():
            n = 0
            while not stop.is_set() and n < 200:
                store.record_submission(ParsedReminder(title=f"live-{n}"))
                first.set()
                n += 1

        t = threading.Thread(target=submitter)
        t.start()
        assert first.wait(5)
        summary = engine.clean(CleanOptions(tasks=True, older_than="7d"))
        stop.set()
        t.join()
        assert store.shutdown(timeout=5)

        assert summary.results[0].files_count == 20
        titles = [r.title for r in store.records()]
        assert titles and all(t.startswith("live-") for t in titles)

        reloaded = TaskCacheStore(store.cache_dir, clock=clock)
        assert reloaded.load() == len(titles)

    def test_image_blob_eviction_then_cleanup(self, directories, clock):
        for i in range(5):
            directories.store_blob(CacheCategory.IMAGES, f"{i}.png", b"img", max_files=3)
        images = directories.resolve_dir(CacheCategory.IMAGES)
        assert len(list(images.iterdir())) == 3

        summary = CleanupEngine(directories, clock=clock).clean(
            CleanOptions(images=True, dry_run=True)
        )
        assert summary.results[0].files_count == 3
        assert summary.results[0].size_bytes == 9
