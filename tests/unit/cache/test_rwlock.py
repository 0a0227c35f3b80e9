# tests/unit/cache/test_rwlock.py — v1
"""Tests for cache/rwlock.py — reader/writer lock."""

from __future__ import annotations

import threading
import time

from reminder_cache.cache.rwlock import ReaderWriterLock


class TestReaderWriterLock:
    def test_readers_share(self):
        lock = ReaderWriterLock()
        lock.acquire_read()
        lock.acquire_read()
        assert lock.readers == 2
        lock.release_read()
        lock.release_read()
        assert lock.readers == 0

    def test_writer_exclusive(self):
        lock = ReaderWriterLock()
        with lock.write_locked():
            assert lock.write_held
        assert not lock.write_held

    def test_writer_waits_for_reader(self):
        lock = ReaderWriterLock()
        acquired = threading.Event()
        lock.acquire_read()

        def writer():
            with lock.write_locked():
                acquired.set()

        t = threading.Thread(target=writer)
        t.start()
        assert not acquired.wait(0.1)
        lock.release_read()
        assert acquired.wait(2)
        t.join()

    def test_waiting_writer_blocks_new_readers(self):
        lock = ReaderWriterLock()
        order: list[str] = []
        lock.acquire_read()

        def writer():
            with lock.write_locked():
                order.append("writer")

        def late_reader():
            with lock.read_locked():
                order.append("reader")

        w = threading.Thread(target=writer)
        w.start()
        time.sleep(0.05)
        r = threading.Thread(target=late_reader)
        r.start()
        time.sleep(0.05)
        assert order == []
        lock.release_read()
        w.join(2)
        r.join(2)
        assert order == ["writer", "reader"]

    def test_counter_consistency(self):
        lock = ReaderWriterLock()
        counter = {"n": 0}

        def bump():
            for _ in range(500):
                with lock.write_locked():
                    counter["n"] += 1

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter["n"] == 2000
