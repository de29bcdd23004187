"""
MutationRequest and MutationResult — the engine's I/O contract.

Modules describe the desired state of one resource with a
MutationRequest.  The mutator answers with a MutationResult: applied,
skipped (already in place, or dry-run), or failed.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from devstrap.core.models.backup import BackupRecord


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ResourceKind(StrEnum):
    """The kinds of resource the engine knows how to converge."""

    FILE_APPEND = "file_append"
    SYMLINK = "symlink"
    KEY_PAIR = "key_pair"
    CONFIG_KV = "config_kv"
    FILE_WRITE = "file_write"
    DIRECTORY = "directory"
    PACKAGE = "package"
    DOWNLOAD = "download"
    GIT_CLONE = "git_clone"


# Kinds whose target is a filesystem path (``~`` expanded against the run's home)
PATH_KINDS = frozenset({
    ResourceKind.FILE_APPEND,
    ResourceKind.SYMLINK,
    ResourceKind.KEY_PAIR,
    ResourceKind.FILE_WRITE,
    ResourceKind.DIRECTORY,
    ResourceKind.DOWNLOAD,
    ResourceKind.GIT_CLONE,
})


class MutationRequest(BaseModel):
    """Desired state of one resource.

    ``marker`` switches presence testing from full-content matching to a
    substring search, so the engine recognises its own earlier writes
    even after the user edited the rest of the file.
    """

    kind: ResourceKind
    target: str                     # path, package name, or config key
    content: str = ""               # appended text, file body, or config value
    marker: str | None = None       # presence marker
    source: str | None = None       # symlink source, download / clone URL
    ref: str | None = None          # branch for git_clone
    force: bool = False             # key_pair: regenerate even if present
    mode: int | None = None         # permission bits applied after the write
    comment: str = ""               # key_pair comment (usually an email)
    key_type: str = "ed25519"

    # ── Factories ────────────────────────────────────────────────

    @classmethod
    def file_append(
        cls,
        target: str | Path,
        content: str,
        marker: str | None = None,
        mode: int | None = None,
    ) -> MutationRequest:
        return cls(
            kind=ResourceKind.FILE_APPEND,
            target=str(target),
            content=content,
            marker=marker,
            mode=mode,
        )

    @classmethod
    def symlink(cls, source: str | Path, target: str | Path) -> MutationRequest:
        return cls(kind=ResourceKind.SYMLINK, target=str(target), source=str(source))

    @classmethod
    def key_pair(
        cls,
        target: str | Path,
        comment: str = "",
        force: bool = False,
        key_type: str = "ed25519",
    ) -> MutationRequest:
        return cls(
            kind=ResourceKind.KEY_PAIR,
            target=str(target),
            comment=comment,
            force=force,
            key_type=key_type,
        )

    @classmethod
    def config_kv(cls, key: str, value: str) -> MutationRequest:
        return cls(kind=ResourceKind.CONFIG_KV, target=key, content=value)

    @classmethod
    def file_write(
        cls,
        target: str | Path,
        content: str,
        marker: str | None = None,
        mode: int | None = None,
    ) -> MutationRequest:
        return cls(
            kind=ResourceKind.FILE_WRITE,
            target=str(target),
            content=content,
            marker=marker,
            mode=mode,
        )

    @classmethod
    def directory(cls, target: str | Path, mode: int | None = None) -> MutationRequest:
        return cls(kind=ResourceKind.DIRECTORY, target=str(target), mode=mode)

    @classmethod
    def package(cls, name: str) -> MutationRequest:
        return cls(kind=ResourceKind.PACKAGE, target=name)

    @classmethod
    def download(cls, url: str, target: str | Path, mode: int | None = None) -> MutationRequest:
        return cls(kind=ResourceKind.DOWNLOAD, target=str(target), source=url, mode=mode)

    @classmethod
    def git_clone(cls, url: str, target: str | Path, ref: str | None = None) -> MutationRequest:
        return cls(kind=ResourceKind.GIT_CLONE, target=str(target), source=url, ref=ref)

    # ── Presentation ─────────────────────────────────────────────

    @property
    def is_path(self) -> bool:
        return self.kind in PATH_KINDS

    def describe(self) -> str:
        """Short human-readable description of the mutation."""
        kind = self.kind
        if kind == ResourceKind.FILE_APPEND:
            label = self.marker
            if not label and self.content.strip():
                label = self.content.strip().splitlines()[0]
            return f"append to {self.target}" + (f" ({label})" if label else "")
        if kind == ResourceKind.SYMLINK:
            return f"link {self.target} -> {self.source}"
        if kind == ResourceKind.KEY_PAIR:
            return f"generate {self.key_type} key {self.target}"
        if kind == ResourceKind.CONFIG_KV:
            return f"set {self.target} = {self.content}"
        if kind == ResourceKind.FILE_WRITE:
            return f"write {self.target}"
        if kind == ResourceKind.DIRECTORY:
            return f"create directory {self.target}"
        if kind == ResourceKind.PACKAGE:
            return f"install package {self.target}"
        if kind == ResourceKind.DOWNLOAD:
            return f"download {self.source} -> {self.target}"
        return f"clone {self.source} -> {self.target}"


class MutationResult(BaseModel):
    """Outcome of applying one MutationRequest.

    ``would_apply`` marks dry-run skips: the resource was not in the
    desired state and a real run would have changed it.
    """

    kind: ResourceKind
    target: str
    status: Literal["applied", "skipped", "failed"] = "applied"
    would_apply: bool = False
    message: str = ""
    error: str | None = None

    backups: list[BackupRecord] = Field(default_factory=list)
    backup_errors: list[str] = Field(default_factory=list)

    timestamp: str = Field(default_factory=_now_iso)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def applied(self) -> bool:
        return self.status == "applied"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def for_applied(cls, request: MutationRequest, message: str = "", **kwargs: Any) -> MutationResult:
        """Create an applied result."""
        return cls(
            kind=request.kind,
            target=request.target,
            status="applied",
            message=message or request.describe(),
            **kwargs,
        )

    @classmethod
    def for_skipped(
        cls,
        request: MutationRequest,
        message: str = "",
        would_apply: bool = False,
        **kwargs: Any,
    ) -> MutationResult:
        """Create a skipped result (already applied, or dry-run)."""
        return cls(
            kind=request.kind,
            target=request.target,
            status="skipped",
            would_apply=would_apply,
            message=message,
            **kwargs,
        )

    @classmethod
    def for_failed(cls, request: MutationRequest, error: str, **kwargs: Any) -> MutationResult:
        """Create a failed result."""
        return cls(
            kind=request.kind,
            target=request.target,
            status="failed",
            error=error,
            **kwargs,
        )
