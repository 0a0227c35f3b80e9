# src/cache/task_store.py — v1
"""Submitted-task dedup store: in-memory map backed by one JSON file.

Lifecycle: construct -> load() -> operate -> shutdown().

Mutations update the map under the write lock and return; persistence is
handed to a FlushWorker after the lock is released. A crash between an
insert and the completed flush loses that insert. Call ``flush()`` or
``shutdown()`` when durability is required.

On disk the file is replaced atomically: the full record set is written to
``<file>.tmp`` and renamed over the canonical path, so readers only ever see
the previous or the new complete file.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from reminder_cache.cache.fingerprint import ReminderLike, compute_fingerprint, short_hash
from reminder_cache.cache.flush_worker import FlushWorker
from reminder_cache.cache.models import RECORD_LIST_ADAPTER, CacheRecord, TaskCacheStats
from reminder_cache.cache.rwlock import ReaderWriterLock
from reminder_cache.core.errors import CacheSerializationError
from reminder_cache.storage.layout import TASK_CACHE_FILE

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=30)
RECENT_WINDOW = timedelta(hours=24)
TEMP_SUFFIX = ".tmp"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskCacheStore:
    """Fingerprint -> CacheRecord map with TTL expiry and atomic persistence."""

    def __init__(
        self,
        cache_dir: Path | str,
        ttl: timedelta = DEFAULT_TTL,
        filename: str = TASK_CACHE_FILE,
        max_pending_flushes: int = 64,
        clock: Callable[[], datetime] | None = None,
        io_lock: threading.RLock | None = None,
    ) -> None:
        self._dir = Path(cache_dir).expanduser()
        self._dir.mkdir(parents=True, exist_ok=True)
        self._path = self._dir / filename
        self._ttl = ttl
        self._clock = clock or _utcnow
        self._records: dict[str, CacheRecord] = {}
        self._lock = ReaderWriterLock()
        # Serializes every write to the backing file; shared with the
        # cleanup and migration engines.
        self._io_lock = io_lock or threading.RLock()
        self._flusher = FlushWorker(self.flush, max_pending=max_pending_flushes)

    # --- Properties ---

    @property
    def path(self) -> Path:
        return self._path

    @property
    def cache_dir(self) -> Path:
        return self._dir

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def io_lock(self) -> threading.RLock:
        return self._io_lock

    @property
    def flusher(self) -> FlushWorker:
        return self._flusher

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._records)

    # --- Lifecycle ---

    def load(self) -> int:
        """Replace the in-memory map with the file contents, minus expired records.

        Returns:
            Number of live records loaded.

        Raises:
            OSError: The file exists but cannot be read.
            CacheSerializationError: The file is not a valid record array.
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            with self._lock.write_locked():
                self._records = {}
            logger.debug("No task cache at %s, starting empty", self._path)
            return 0

        try:
            records = RECORD_LIST_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            raise CacheSerializationError(
                str(self._path), f"{exc.error_count()} validation error(s)"
            ) from exc

        now = self._clock()
        live = {r.fingerprint: r for r in records if not self._expired(r, now)}
        with self._lock.write_locked():
            self._records = live

        dropped = len(records) - len(live)
        logger.info(
            "Loaded %d cached tasks from %s (%d expired dropped)",
            len(live), self._path, dropped,
        )
        return len(live)

    def shutdown(self, timeout: float | None = None) -> bool:
        """Drain queued flushes and stop the flush thread."""
        done = self._flusher.shutdown(timeout)
        if not done:
            logger.warning("Task cache shutdown timed out with flushes pending")
        return done

    def __enter__(self) -> TaskCacheStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # --- Queries ---

    def is_duplicate(self, reminder: ReminderLike) -> bool:
        """True iff a non-expired record with the same fingerprint exists."""
        return self.lookup(reminder) is not None

    def lookup(self, reminder: ReminderLike) -> CacheRecord | None:
        fingerprint = compute_fingerprint(reminder)
        with self._lock.read_locked():
            record = self._records.get(fingerprint)
        if record is None or self._expired(record, self._clock()):
            return None
        return record

    def records(self) -> list[CacheRecord]:
        """Snapshot of all records, oldest first."""
        with self._lock.read_locked():
            snapshot = list(self._records.values())
        return sorted(snapshot, key=lambda r: r.created_at)

    def stats(self) -> TaskCacheStats:
        now = self._clock()
        with self._lock.read_locked():
            snapshot = list(self._records.values())
        per_list = Counter(r.list for r in snapshot)
        recent = sum(1 for r in snapshot if now - r.created_at <= RECENT_WINDOW)
        return TaskCacheStats(
            total_records=len(snapshot),
            per_list_counts=dict(per_list),
            recent_count=recent,
            cache_file=str(self._path),
            ttl_days=self._ttl.total_seconds() / 86400,
        )

    # --- Mutations ---

    def record_submission(
        self, reminder: ReminderLike, external_id: str | None = None
    ) -> CacheRecord:
        """Insert or overwrite the record for this reminder and schedule a flush.

        The record is visible to readers on return; it is not yet durable.
        """
        record = CacheRecord(
            fingerprint=compute_fingerprint(reminder),
            title=reminder.title,
            date=reminder.date,
            time=reminder.time,
            list=reminder.list,
            created_at=self._clock(),
            external_id=external_id or None,
        )
        with self._lock.write_locked():
            self._records[record.fingerprint] = record
        self._flusher.schedule()
        logger.info(
            "Cached submitted task %r (hash %s)",
            record.title, short_hash(record.fingerprint),
        )
        return record

    def purge_expired(self) -> int:
        """Remove records older than the TTL. Returns the number removed."""
        now = self._clock()
        with self._lock.write_locked():
            expired = [fp for fp, r in self._records.items() if self._expired(r, now)]
            for fp in expired:
                del self._records[fp]
        if expired:
            self._flusher.schedule()
            logger.info("Purged %d expired cached tasks", len(expired))
        return len(expired)

    def discard(self, fingerprints: Iterable[str]) -> int:
        """Remove specific records. Returns the number actually removed."""
        wanted = set(fingerprints)
        with self._lock.write_locked():
            removed = [fp for fp in wanted if self._records.pop(fp, None) is not None]
        if removed:
            self._flusher.schedule()
            logger.info("Discarded %d cached tasks", len(removed))
        return len(removed)

    def clear(self) -> None:
        """Empty the map and delete the backing file.

        Raises:
            OSError: The file exists but could not be removed.
        """
        with self._io_lock:
            with self._lock.write_locked():
                self._records = {}
            self._path.unlink(missing_ok=True)
        logger.info("Cleared task cache %s", self._path)

    # --- Persistence ---

    def flush(self) -> None:
        """Write the current record set to disk atomically (synchronous).

        Raises:
            OSError: Writing or renaming the temp file failed. The previous
                file is left untouched.
        """
        tmp_path = self._path.with_name(self._path.name + TEMP_SUFFIX)
        with self._io_lock:
            # Snapshot under the I/O lock so writes land in snapshot order.
            records = self.records()
            payload = RECORD_LIST_ADAPTER.dump_json(
                records, indent=2, by_alias=True, exclude_none=True
            )
            self._dir.mkdir(parents=True, exist_ok=True)
            try:
                with open(tmp_path, "wb") as fh:
                    fh.write(payload)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_path, self._path)
            except OSError:
                tmp_path.unlink(missing_ok=True)
                raise
        logger.debug("Flushed %d cached tasks to %s", len(records), self._path)

    # --- Internals ---

    def _expired(self, record: CacheRecord, now: datetime) -> bool:
        return now - record.created_at > self._ttl
