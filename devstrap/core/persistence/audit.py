"""
Run ledger — append-only history of devstrap runs.

Every non-dry run writes one entry to ``<backup_root>/history.ndjson``
(newline-delimited JSON).  Entries are never modified or deleted, so the
ledger doubles as an index of the backup directories.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_FILE = "history.ndjson"


class RunEntry(BaseModel):
    """A single ledger entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    run_id: str = ""
    role: str = ""
    host: str = ""

    # What ran
    modules: list[str] = Field(default_factory=list)
    completed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    # Results
    status: str = ""               # ok, partial, failed
    applied: int = 0
    unchanged: int = 0
    duration_ms: int = 0
    backup_dir: str = ""
    backups: list[str] = Field(default_factory=list)
    backup_errors: list[str] = Field(default_factory=list)

    # Extensible context
    context: dict[str, Any] = Field(default_factory=dict)


class RunLedger:
    """Append-only ledger writer and reader."""

    def __init__(self, path: Path | None = None, backup_root: Path | None = None):
        if path is not None:
            self._path = path
        elif backup_root is not None:
            self._path = backup_root / DEFAULT_LEDGER_FILE
        else:
            self._path = Path.home() / ".bootstrap-backups" / DEFAULT_LEDGER_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: RunEntry) -> bool:
        """Append an entry.  Returns False (after logging) when the write fails."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Failed to write run ledger %s: %s", self._path, e)
            return False
        logger.debug("Ledger entry written: %s", entry.run_id)
        return True

    def read_all(self) -> list[RunEntry]:
        """All entries, oldest first.  Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(RunEntry.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping corrupt ledger entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read run ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[RunEntry]:
        """The most recent ``n`` entries, oldest first."""
        if n <= 0:
            return []
        return self.read_all()[-n:]

    def entry_count(self) -> int:
        if not self._path.is_file():
            return 0
        try:
            with self._path.open("r", encoding="utf-8") as f:
                return sum(1 for line in f if line.strip())
        except OSError:
            return 0
