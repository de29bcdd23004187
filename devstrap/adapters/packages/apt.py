"""
APT adapter — Debian / Ubuntu package installation.

Uses dpkg-query for presence checks and apt-get for installs.  Commands
are prefixed with sudo unless devstrap already runs as root.
"""

from __future__ import annotations

import logging
import os
import shutil

from devstrap.adapters.base import PackageInstaller
from devstrap.adapters.shell.command import run_command

logger = logging.getLogger(__name__)


def _sudo() -> list[str]:
    """``["sudo"]`` for unprivileged users, empty when running as root."""
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        return []
    return ["sudo"]


class AptInstaller(PackageInstaller):
    """apt-get based package installer."""

    def __init__(self, timeout: int = 900):
        self._timeout = timeout
        self._refreshed = False

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return shutil.which("apt-get") is not None

    def refresh(self) -> None:
        if self._refreshed:
            return
        logger.info("Updating package lists...")
        run_command([*_sudo(), "apt-get", "update", "-qq"], timeout=self._timeout)
        self._refreshed = True

    def is_installed(self, package: str) -> bool:
        result = run_command(
            ["dpkg-query", "-W", "-f=${Status}", package],
            check=False,
            timeout=30,
        )
        return "install ok installed" in result.stdout

    def install(self, package: str) -> None:
        run_command(
            [*_sudo(), "apt-get", "install", "-y", package],
            timeout=self._timeout,
            env={**os.environ, "DEBIAN_FRONTEND": "noninteractive"},
        )
