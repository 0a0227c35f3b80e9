# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides sample reminders, a controllable clock, isolated cache roots and
task stores. Everything lives under pytest's tmp_path.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from reminder_cache.cache.models import ParsedReminder
from reminder_cache.cache.task_store import TaskCacheStore
from reminder_cache.logging.context import clear_context
from reminder_cache.storage.directory_manager import CacheDirectoryManager
from reminder_cache.storage.layout import CacheCategory


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


# === FIXTURES: Sample data ===


@pytest.fixture
def standup() -> ParsedReminder:
    """The canonical reminder used across dedup tests."""
    return ParsedReminder(
        title="Standup",
        date="2024-12-25",
        time="09:30",
        list="Work",
        description="Daily sync",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc))


# === FIXTURES: Directories and stores ===


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary unified cache root."""
    cache = tmp_path / "cache_root"
    cache.mkdir()
    return cache


@pytest.fixture
def legacy_root(tmp_path: Path) -> Path:
    """Directory that holds the legacy ``cache/`` folder."""
    root = tmp_path / "app"
    root.mkdir()
    return root


@pytest.fixture
def directories(tmp_cache_dir: Path, legacy_root: Path) -> CacheDirectoryManager:
    return CacheDirectoryManager(tmp_cache_dir, legacy_root=legacy_root)


@pytest.fixture
def store(directories: CacheDirectoryManager, clock: FakeClock):
    """Loaded, isolated task store; shut down after the test."""
    s = TaskCacheStore(directories.resolve_dir(CacheCategory.TASKS), clock=clock)
    s.load()
    yield s
    s.shutdown(timeout=5)


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
