# src/migration/models.py — v1
"""Legacy-to-unified migration models: plan, options, result."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from reminder_cache.storage.layout import CacheCategory


class MigrationItem(BaseModel):
    """One unit of legacy data to relocate."""

    category: CacheCategory
    source_path: Path
    destination_path: Path
    size_bytes: int = 0
    file_count: int = 0
    is_dir: bool = False
    # Source-relative sub-paths left in place (claimed by other items).
    exclude: list[str] = Field(default_factory=list)


class MigrationPlan(BaseModel):
    """Ordered migration items with aggregate sizes."""

    items: list[MigrationItem] = Field(default_factory=list)
    target_root: Path | None = None

    @property
    def total_size(self) -> int:
        return sum(item.size_bytes for item in self.items)

    @property
    def total_files(self) -> int:
        return sum(item.file_count for item in self.items)

    @property
    def migration_required(self) -> bool:
        return len(self.items) > 0


class MigrationOptions(BaseModel):
    """Execution policy. ``force_overwrite`` takes precedence over ``skip_existing``."""

    dry_run: bool = False
    backup: bool = False
    delete_source: bool = False
    skip_existing: bool = False
    force_overwrite: bool = False


class FailedMigration(BaseModel):
    item: MigrationItem
    error: str


class MigrationResult(BaseModel):
    """Per-item outcome of a migration run (partial failure is normal)."""

    would_migrate: list[MigrationItem] = Field(default_factory=list)
    migrated: list[MigrationItem] = Field(default_factory=list)
    skipped: list[MigrationItem] = Field(default_factory=list)
    failed: list[FailedMigration] = Field(default_factory=list)
    backups: list[Path] = Field(default_factory=list)
    total_bytes_moved: int = 0
    dry_run: bool = False
    cancelled: bool = False
    started_at: datetime | None = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed and not self.cancelled
