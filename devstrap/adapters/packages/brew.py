"""
Homebrew adapter — macOS package installation.
"""

from __future__ import annotations

import logging
import shutil

from devstrap.adapters.base import PackageInstaller
from devstrap.adapters.shell.command import run_command

logger = logging.getLogger(__name__)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"


class BrewInstaller(PackageInstaller):
    """brew based package installer."""

    def __init__(self, timeout: int = 1800):
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "brew"

    def is_available(self) -> bool:
        return shutil.which("brew") is not None

    def ensure_available(self) -> None:
        if self.is_available():
            return
        logger.info("Installing Homebrew...")
        run_command(
            ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'],
            timeout=self._timeout,
        )

    def is_installed(self, package: str) -> bool:
        return run_command(["brew", "list", package], check=False, timeout=60).ok

    def install(self, package: str) -> None:
        run_command(["brew", "install", package], timeout=self._timeout)
