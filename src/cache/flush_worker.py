# src/cache/flush_worker.py — v1
"""Background persistence: a bounded queue drained by one dedicated thread.

Callers enqueue flush requests and return immediately. Every flush snapshots
the latest in-memory state, so when the queue is full the request is
coalesced into one that is already pending. ``drain()`` is a barrier that
returns once everything queued before it has been written; ``shutdown()``
drains and stops the thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

_STOP = object()


class FlushWorker:
    """Runs ``flush_fn`` off the caller's thread, one request at a time."""

    def __init__(
        self,
        flush_fn: Callable[[], None],
        max_pending: int = 64,
        name: str = "cache-flush",
    ) -> None:
        self._flush_fn = flush_fn
        self._queue: queue.Queue[object] = queue.Queue(maxsize=max_pending)
        self._name = name
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()
        self._stopped = False
        self.completed = 0
        self.failures = 0
        self.last_error: BaseException | None = None

    # --- Public API ---

    def schedule(self) -> bool:
        """Queue a flush. Returns False when coalesced or after shutdown."""
        if self._stopped:
            logger.warning("Flush requested after shutdown; ignored")
            return False
        self._ensure_started()
        try:
            self._queue.put_nowait(None)
        except queue.Full:
            logger.debug("Flush queue full; request coalesced with a pending flush")
            return False
        return True

    def drain(self, timeout: float | None = None) -> bool:
        """Wait until every flush queued so far has run.

        Returns False if the timeout expired first.
        """
        if self._thread is None or not self._thread.is_alive():
            return True
        barrier = threading.Event()
        try:
            self._queue.put(barrier, timeout=timeout)
        except queue.Full:
            return False
        return barrier.wait(timeout)

    def shutdown(self, timeout: float | None = None) -> bool:
        """Drain pending flushes, then stop the worker thread."""
        drained = self.drain(timeout)
        self._stopped = True
        thread = self._thread
        if thread is not None and thread.is_alive():
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                return False
            thread.join(timeout)
            return drained and not thread.is_alive()
        return drained

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # --- Internals ---

    def _ensure_started(self) -> None:
        with self._start_lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._run, name=self._name, daemon=True
                )
                self._thread.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, threading.Event):
                    item.set()
                    continue
                self._flush_once()
            finally:
                self._queue.task_done()

    def _flush_once(self) -> None:
        try:
            self._flush_fn()
        except Exception as exc:
            # Durability is best-effort: log and keep serving later requests.
            self.failures += 1
            self.last_error = exc
            logger.exception("Background cache flush failed")
        else:
            self.completed += 1
