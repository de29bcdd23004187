"""
Fetch adapter — release downloads (curl, falling back to wget) and git clones.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from devstrap.adapters.base import Fetcher
from devstrap.adapters.shell.command import run_command
from devstrap.core.errors import ExternalToolError

logger = logging.getLogger(__name__)


class CommandFetcher(Fetcher):
    """Downloads through curl or wget, clones through git."""

    @property
    def name(self) -> str:
        return "fetch"

    def is_available(self) -> bool:
        return shutil.which("curl") is not None or shutil.which("wget") is not None

    def download(self, url: str, dest: Path, timeout: int = 30) -> None:
        logger.info("Downloading %s", url)
        if shutil.which("curl"):
            args = ["curl", "-fsSL", "--connect-timeout", str(timeout), url, "-o", str(dest)]
        elif shutil.which("wget"):
            args = ["wget", "-q", f"--timeout={timeout}", url, "-O", str(dest)]
        else:
            raise ExternalToolError("Neither curl nor wget found. Please install one of them.")
        run_command(args, timeout=timeout * 10)

    def clone(self, url: str, dest: Path, ref: str | None = None) -> None:
        logger.info("Cloning repository: %s", url)
        args = ["git", "clone", "--depth", "1"]
        if ref:
            args += ["--branch", ref]
        run_command([*args, url, str(dest)], timeout=600)
