# src/storage/eviction.py — v1
"""Oldest-first eviction for bounded blob directories."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def list_files_by_age(
    directory: Path, extensions: Iterable[str] | None = None
) -> list[Path]:
    """Regular files directly under ``directory``, oldest mtime first."""
    if not directory.is_dir():
        return []
    wanted = {e.lower() for e in extensions} if extensions is not None else None
    files = [
        p for p in directory.iterdir()
        if p.is_file() and (wanted is None or p.suffix.lower() in wanted)
    ]
    return sorted(files, key=lambda p: (p.stat().st_mtime, p.name))


def evict_oldest_files(
    directory: Path,
    max_files: int,
    extensions: Iterable[str] | None = None,
) -> list[Path]:
    """Delete the oldest files until at most ``max_files`` remain.

    Returns:
        The removed paths, oldest first.

    Raises:
        ValueError: max_files is negative.
        OSError: A file could not be removed.
    """
    if max_files < 0:
        raise ValueError(f"max_files must be >= 0, got {max_files}")

    files = list_files_by_age(directory, extensions)
    excess = len(files) - max_files
    if excess <= 0:
        return []

    removed: list[Path] = []
    for path in files[:excess]:
        path.unlink()
        removed.append(path)
    logger.info("Evicted %d old files from %s", len(removed), directory)
    return removed
