"""
Backup manager — timestamped copies of resources before they change.

Every run owns one directory, ``<backup_root>/<run_timestamp>/``, created
on the first real backup.  Backups are never overwritten and never
pruned: a name collision inside the run directory gets a suffix instead.

Backup failures are non-fatal.  They are logged at ERROR, collected in
``failures`` and reported by the caller; the mutation still proceeds.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from devstrap.core.context import ExecutionContext
from devstrap.core.models.backup import BackupRecord

logger = logging.getLogger(__name__)

# Numeric suffixes tried after the timestamp suffix is also taken
_MAX_SUFFIX = 1000


def _exists(path: Path) -> bool:
    """True for existing paths and dangling symlinks."""
    return path.is_symlink() or path.exists()


class BackupManager:
    """Creates and remembers the backups of one run."""

    def __init__(self, ctx: ExecutionContext):
        self._ctx = ctx
        self._records: dict[str, BackupRecord] = {}
        self._claimed: dict[str, str] = {}     # backup name → original path
        self.failures: list[str] = []

    @property
    def backup_dir(self) -> Path:
        return self._ctx.backup_dir

    @property
    def records(self) -> list[BackupRecord]:
        """Backups taken so far, in creation order."""
        return list(self._records.values())

    def backup(self, path: Path) -> BackupRecord | None:
        """Copy ``path`` into the run's backup directory.

        Returns:
            The backup record (the existing one when ``path`` was already
            backed up in this run), or None when there is nothing to back
            up or the run is a dry run.

        Raises:
            OSError: The copy failed.
        """
        path = Path(path)
        key = str(path)

        if key in self._records:
            return self._records[key]

        if not _exists(path):
            return None

        dest = self._destination(path)

        if self._ctx.dry_run:
            logger.info("Would back up %s to %s", path, dest)
            return None

        dest.parent.mkdir(parents=True, exist_ok=True)
        if path.is_symlink():
            dest.symlink_to(path.readlink())
        elif path.is_dir():
            shutil.copytree(path, dest, symlinks=True)
        else:
            shutil.copy2(path, dest, follow_symlinks=False)

        record = BackupRecord(original_path=key, backup_path=str(dest))
        self._records[key] = record
        self._claimed[dest.name] = key
        logger.info("Backed up %s to %s", path, dest)
        return record

    def safe_backup(self, path: Path) -> tuple[BackupRecord | None, str | None]:
        """Back up ``path`` without raising.

        Returns:
            ``(record, None)`` on success, ``(None, error)`` on failure.
        """
        try:
            return self.backup(path), None
        except OSError as e:
            error = f"Backup of {path} failed: {e}"
            logger.error(error)
            self.failures.append(error)
            return None, error

    def _destination(self, path: Path) -> Path:
        """Pick a backup name that no other original claimed in this run."""
        base = f"{path.name or 'root'}.backup"
        candidates = [base, f"{base}.{self._ctx.run_timestamp}"]
        candidates += [f"{base}.{self._ctx.run_timestamp}.{n}" for n in range(1, _MAX_SUFFIX)]

        for name in candidates:
            owner = self._claimed.get(name)
            if owner is None and not _exists(self.backup_dir / name):
                return self.backup_dir / name
        raise OSError(f"No free backup name for {path} in {self.backup_dir}")
