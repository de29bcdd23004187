"""
Git config adapter — global git configuration as a key/value store.

Uses the git CLI (``git config --global``), never edits ~/.gitconfig
directly, so includes and conditional sections keep working.

With ``home`` set, git runs with that HOME and without the variables
that would point it at another global file, so a sandboxed run never
touches the real user's ~/.gitconfig.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from devstrap.adapters.base import ConfigStore
from devstrap.adapters.shell.command import run_command

logger = logging.getLogger(__name__)

# Variables that can redirect --global away from $HOME/.gitconfig
_GLOBAL_FILE_VARS = ("XDG_CONFIG_HOME", "GIT_CONFIG_GLOBAL")


class GitConfigStore(ConfigStore):
    """``git config --<scope>`` backed store."""

    def __init__(self, scope: str = "global", home: Path | None = None):
        self._scope = scope
        self.home = home

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def _env(self) -> dict[str, str] | None:
        if self.home is None:
            return None
        env = {k: v for k, v in os.environ.items() if k not in _GLOBAL_FILE_VARS}
        env["HOME"] = str(self.home)
        return env

    def get(self, key: str) -> str | None:
        # Exit code 1 means "key not set"
        result = run_command(
            ["git", "config", f"--{self._scope}", "--get", key], check=False, timeout=30, env=self._env()
        )
        if result.returncode == 1:
            return None
        if not result.ok:
            logger.debug("git config --get %s exited %d: %s", key, result.returncode, result.stderr)
            return None
        return result.stdout or None

    def set(self, key: str, value: str) -> None:
        run_command(["git", "config", f"--{self._scope}", key, value], timeout=30, env=self._env())
