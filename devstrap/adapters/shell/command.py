"""
Shell command runner — execute external tools and capture output.

This is the most fundamental adapter: every real capability (apt, brew,
ssh-keygen, git, curl) runs its command through run_command().  Failures
surface as ExternalToolError carrying the command, exit code and stderr.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path

from devstrap.core.errors import ExternalToolError

logger = logging.getLogger(__name__)

# Default timeout for external commands (seconds)
DEFAULT_TIMEOUT = 600


@dataclass
class CommandResult:
    """Captured outcome of one external command."""

    args: list[str] = field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr combined (some tools report on stderr)."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


def run_command(
    args: list[str],
    *,
    timeout: int | float = DEFAULT_TIMEOUT,
    check: bool = True,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run an external command.

    Args:
        args: Command and arguments (never passed through a shell).
        timeout: Seconds before the command is killed.
        check: Raise ExternalToolError on a non-zero exit code.
        cwd: Working directory.
        env: Full environment override.

    Returns:
        CommandResult with captured, stripped output.

    Raises:
        ExternalToolError: The command is missing, timed out, or failed
            while ``check`` is set.
    """
    display = shlex.join(args)
    logger.debug("Executing: %s", display)
    start = time.monotonic()

    try:
        proc = subprocess.run(
            args,
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ExternalToolError(f"Command not found: {args[0]}", command=args) from e
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(
            f"Command timed out after {timeout}s: {display}", command=args
        ) from e
    except OSError as e:
        raise ExternalToolError(f"Cannot execute {display}: {e}", command=args) from e

    result = CommandResult(
        args=list(args),
        returncode=proc.returncode,
        stdout=(proc.stdout or "").strip(),
        stderr=(proc.stderr or "").strip(),
        duration_ms=int((time.monotonic() - start) * 1000),
    )

    if check and not result.ok:
        raise ExternalToolError(
            f"{display} failed (exit {result.returncode}): "
            f"{result.stderr or result.stdout or 'no output'}",
            command=result.args,
            returncode=result.returncode,
            stderr=result.stderr,
        )

    return result
