"""
BackupRecord — a copy of a resource taken before it was changed.

Records are created once per resource per run, never overwritten and
never pruned: they live until the user deletes the backup directory.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class BackupRecord(BaseModel):
    """Where a pre-existing resource was copied to, and when."""

    original_path: str
    backup_path: str
    created_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
