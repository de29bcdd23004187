"""
Error taxonomy — every failure devstrap raises on purpose.

    BootstrapError
    ├── ConfigurationError          bad CLI input or settings file (fatal)
    ├── BootstrapEnvironmentError   unsupported host, missing tool (fatal)
    └── MutationError               one resource could not be changed
        ├── ResourceError
        │   ├── SourceMissingError
        │   ├── PermissionDeniedError
        │   └── TargetConflictError
        └── ExternalToolError       an external command failed

Errors raised inside a module's setup degrade to a per-module failure.
Errors raised while the driver prepares the run abort before any
mutation happens.
"""

from __future__ import annotations

from enum import StrEnum


class BootstrapError(Exception):
    """Base class for all devstrap errors."""


class ConfigurationError(BootstrapError):
    """Invalid CLI input or settings file."""


class BootstrapEnvironmentError(BootstrapError):
    """The host cannot run the requested modules (OS, missing tools)."""


class MutationReason(StrEnum):
    """Why a single mutation could not be applied."""

    PERMISSION_DENIED = "permission_denied"
    SOURCE_MISSING = "source_missing"
    TARGET_CONFLICT = "target_conflict"
    EXTERNAL_TOOL_FAILED = "external_tool_failed"


class MutationError(BootstrapError):
    """A mutation failed for one resource."""

    reason: MutationReason = MutationReason.EXTERNAL_TOOL_FAILED

    def __init__(self, message: str, target: str | None = None):
        super().__init__(message)
        self.target = target


class ResourceError(MutationError):
    """The target (or its source) is missing or unwritable."""


class SourceMissingError(ResourceError):
    reason = MutationReason.SOURCE_MISSING


class PermissionDeniedError(ResourceError):
    reason = MutationReason.PERMISSION_DENIED


class TargetConflictError(ResourceError):
    reason = MutationReason.TARGET_CONFLICT


class ExternalToolError(MutationError):
    """An external command (package manager, ssh-keygen, git) failed."""

    reason = MutationReason.EXTERNAL_TOOL_FAILED

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
        target: str | None = None,
    ):
        super().__init__(message, target=target)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
