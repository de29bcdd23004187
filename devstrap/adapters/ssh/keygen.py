"""
SSH adapter — key generation, host key scanning and login probes.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from devstrap.adapters.base import KeyGenerator
from devstrap.adapters.shell.command import run_command
from devstrap.core.errors import ExternalToolError

logger = logging.getLogger(__name__)

# Phrase GitHub prints on a successful ``ssh -T``
_AUTH_SUCCESS = "successfully authenticated"


class SshKeyGenerator(KeyGenerator):
    """OpenSSH toolchain (ssh-keygen, ssh-keyscan, ssh)."""

    @property
    def name(self) -> str:
        return "ssh-keygen"

    def is_available(self) -> bool:
        return shutil.which("ssh-keygen") is not None

    def generate(self, path: Path, comment: str = "", key_type: str = "ed25519") -> None:
        run_command(
            ["ssh-keygen", "-q", "-t", key_type, "-C", comment, "-f", str(path), "-N", ""],
            timeout=60,
        )

    def scan_host(self, host: str) -> str:
        result = run_command(["ssh-keyscan", host], timeout=30)
        if not result.stdout:
            raise ExternalToolError(
                f"ssh-keyscan returned no keys for {host}",
                command=result.args,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result.stdout

    def probe(self, destination: str, timeout: int = 10) -> bool:
        try:
            result = run_command(
                [
                    "ssh", "-T", destination,
                    "-o", f"ConnectTimeout={timeout}",
                    "-o", "StrictHostKeyChecking=accept-new",
                    "-o", "BatchMode=yes",
                ],
                check=False,
                timeout=timeout + 5,
            )
        except ExternalToolError as e:
            logger.debug("SSH probe to %s failed: %s", destination, e)
            return False
        return _AUTH_SUCCESS in result.output
