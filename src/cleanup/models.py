# src/cleanup/models.py — v1
"""Cleanup options and per-category results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class CleanTarget(str, Enum):
    """Selectable cleanup targets, in execution order."""

    TASKS = "tasks"
    IMAGES = "images"
    IMAGE_HASHES = "image_hashes"
    TEMP = "temp"
    GENERATED = "generated"


class CleanOptions(BaseModel):
    """What to clean and how.

    No target selected behaves like ``all``. ``force`` only bypasses the
    interactive confirmation in the CLI; it never implies ``clear_all``.
    """

    all: bool = False
    tasks: bool = False
    images: bool = False
    image_hashes: bool = False
    temp: bool = False
    generated: bool = False
    dry_run: bool = False
    force: bool = False
    older_than: str = ""
    clear_all: bool = False

    def selected_targets(self) -> list[CleanTarget]:
        chosen = [t for t in CleanTarget if getattr(self, t.value)]
        if self.all or not chosen:
            return list(CleanTarget)
        return chosen


class CleanResult(BaseModel):
    """Outcome for one target. ``files`` is only filled in preview mode."""

    category: str
    files_count: int = 0
    size_bytes: int = 0
    files: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0
    error: str | None = None
    cancelled: bool = False


class CleanSummary(BaseModel):
    results: list[CleanResult] = Field(default_factory=list)
    duration_seconds: float = 0.0
    dry_run: bool = False
    cleared_all: bool = False
    cancelled: bool = False

    @property
    def total_files(self) -> int:
        return sum(r.files_count for r in self.results)

    @property
    def total_bytes(self) -> int:
        return sum(r.size_bytes for r in self.results)

    @property
    def errors(self) -> list[CleanResult]:
        return [r for r in self.results if r.error]
