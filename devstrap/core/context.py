"""
Execution context — the single description of "this run."

The driver builds one ExecutionContext at startup and hands it to the
mutation engine and to every module.  Nothing reads dry-run or backup
settings from module-level state:

    - CLI:    use_cases.run.prepare_run() → ExecutionContext(...)
    - Tests:  ExecutionContext(home=tmp_path, backup_root=tmp_path / "b")

The context is frozen.  The only thing that materialises later is the
backup directory, which the BackupManager creates on first use.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Timestamp format used for the backup directory of a run
RUN_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# Shell name → rc file (relative to home)
_SHELL_RC_FILES = {
    "bash": ".bashrc",
    "zsh": ".zshrc",
}


class Role(StrEnum):
    """Coarse environment classification that selects default modules."""

    LOCAL = "local"
    VPS = "vps"


def new_run_timestamp() -> str:
    """Timestamp for a new run (local time, second resolution)."""
    return datetime.now().strftime(RUN_TIMESTAMP_FORMAT)


class ExecutionContext(BaseModel):
    """Everything a mutation needs to know about the current run."""

    model_config = ConfigDict(frozen=True)

    dry_run: bool = False
    auto_confirm: bool = False
    home: Path = Field(default_factory=Path.home)
    backup_root: Path = Field(default_factory=lambda: Path.home() / ".bootstrap-backups")
    run_timestamp: str = Field(default_factory=new_run_timestamp)
    configs_dir: Path = Field(default_factory=lambda: Path.cwd() / "configs")
    role: Role = Role.LOCAL
    os_family: str = "unknown"
    package_manager: str | None = None
    shell: str = "bash"

    @property
    def backup_dir(self) -> Path:
        """Directory holding this run's backups."""
        return self.backup_root / self.run_timestamp

    @property
    def rc_file(self) -> Path:
        """The interactive shell rc file for the configured shell."""
        return self.home / _SHELL_RC_FILES.get(self.shell, ".bashrc")

    def expand(self, path: str | Path) -> Path:
        """Resolve ``~``-relative paths against this run's home directory."""
        raw = str(path)
        if raw == "~":
            return self.home
        if raw.startswith("~/"):
            return self.home / raw[2:]
        return Path(raw)
