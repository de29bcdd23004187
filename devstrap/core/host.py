"""
Host detection — OS family, package manager, role and login shell.

Pure functions over the environment so tests can feed in fake values
through arguments (os-release path, environ, platform name).
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from devstrap.core.context import Role

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")

_SSH_ENV_VARS = ("SSH_CONNECTION", "SSH_CLIENT", "SSH_TTY")
_DEBIAN_IDS = ("ubuntu", "debian")


@dataclass(frozen=True)
class HostInfo:
    """What the current machine looks like."""

    os_family: str                       # macos, ubuntu, debian, <id>, unknown
    package_manager: str | None = None   # apt, brew, or None when unsupported

    @property
    def supported(self) -> bool:
        return self.package_manager is not None


def parse_os_release(text: str) -> dict[str, str]:
    """Parse /etc/os-release ``KEY=value`` lines."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def detect_host(platform: str | None = None, os_release: Path = OS_RELEASE) -> HostInfo:
    """Identify the OS family and its package manager."""
    platform = platform or sys.platform
    if platform == "darwin":
        return HostInfo(os_family="macos", package_manager="brew")

    try:
        release = parse_os_release(os_release.read_text(encoding="utf-8"))
    except OSError:
        logger.debug("No readable %s", os_release)
        return HostInfo(os_family="unknown")

    os_id = release.get("ID", "").lower()
    id_like = release.get("ID_LIKE", "").lower().split()
    if os_id in _DEBIAN_IDS or "debian" in id_like:
        return HostInfo(os_family=os_id or "debian", package_manager="apt")
    return HostInfo(os_family=os_id or "unknown")


def _systemd_running() -> bool:
    try:
        proc = subprocess.run(
            ["systemctl", "is-system-running"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return proc.returncode == 0


def detect_role(
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
    systemd_running=_systemd_running,
) -> Role:
    """Guess the role: remote SSH sessions and systemd servers are VPSes."""
    environ = os.environ if environ is None else environ
    platform = platform or sys.platform

    if any(environ.get(var) for var in _SSH_ENV_VARS):
        logger.debug("SSH session detected, role vps")
        return Role.VPS
    if platform == "darwin":
        return Role.LOCAL
    if systemd_running():
        logger.debug("systemd reports a running system, role vps")
        return Role.VPS
    return Role.LOCAL


def shell_name(environ: Mapping[str, str] | None = None) -> str:
    """Basename of $SHELL (``bash`` when unset)."""
    environ = os.environ if environ is None else environ
    shell = environ.get("SHELL", "")
    return Path(shell).name if shell else "bash"
