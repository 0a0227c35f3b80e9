# src/cache/deduplicator.py — v2
"""Pre-submission duplicate check on top of the task cache store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reminder_cache.cache.fingerprint import ReminderLike
from reminder_cache.cache.models import CacheRecord, DedupResult, TaskCacheStats
from reminder_cache.cache.task_store import TaskCacheStore

if TYPE_CHECKING:
    from reminder_cache.config.settings import Settings

logger = logging.getLogger(__name__)


class Deduplicator:
    """Decides whether a reminder should be created or skipped."""

    def __init__(self, store: TaskCacheStore, enabled: bool = True) -> None:
        self._store = store
        self._enabled = enabled

    @classmethod
    def from_settings(
        cls, store: TaskCacheStore, settings: Settings | None = None
    ) -> Deduplicator:
        """Build a deduplicator honouring ``Settings.dedup_enabled``."""
        if settings is None:
            from reminder_cache.config.settings import load_settings

            settings = load_settings()
        if not settings.dedup_enabled:
            logger.info("Reminder deduplication disabled by configuration")
        return cls(store, enabled=settings.dedup_enabled)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def store(self) -> TaskCacheStore:
        return self._store

    def check(self, reminder: ReminderLike) -> DedupResult:
        """Look the reminder up in the cache.

        When deduplication is disabled every reminder is reported as new.
        """
        if not self._enabled:
            return DedupResult(is_duplicate=False)

        match = self._store.lookup(reminder)
        if match is None:
            return DedupResult(is_duplicate=False)

        logger.info("Duplicate reminder skipped: %r", reminder.title)
        return DedupResult(
            is_duplicate=True,
            duplicate_type="cache",
            cache_hit=True,
            skip_reason=f"already submitted at {match.created_at.isoformat()}",
            suggested_action="skip",
            matched_record=match,
        )

    def record(
        self, reminder: ReminderLike, external_id: str | None = None
    ) -> CacheRecord | None:
        """Remember a successful submission. No-op when disabled."""
        if not self._enabled:
            return None
        return self._store.record_submission(reminder, external_id)

    def stats(self) -> TaskCacheStats:
        return self._store.stats()

    def cleanup(self) -> int:
        """Drop expired cache entries."""
        return self._store.purge_expired()
