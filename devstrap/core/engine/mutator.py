"""
Mutator — the idempotent-mutation primitive.

    request → presence check → validation → (dry run?) → backup → write → result

A resource already in its desired state is never backed up or touched
again, so running devstrap twice converges to the same state.  Writes
that fail on permissions surface as PermissionDeniedError; adapter
failures surface as ExternalToolError.  Both propagate to the caller,
which decides whether they are fatal.
"""

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path

from devstrap.adapters.base import public_key_path
from devstrap.adapters.registry import Toolbox
from devstrap.core.context import ExecutionContext
from devstrap.core.engine.backup import BackupManager
from devstrap.core.engine.presence import CHECKS
from devstrap.core.errors import (
    PermissionDeniedError,
    SourceMissingError,
    TargetConflictError,
)
from devstrap.core.models.backup import BackupRecord
from devstrap.core.models.mutation import MutationRequest, MutationResult, ResourceKind

logger = logging.getLogger(__name__)

_PERMISSION_ERRNOS = (errno.EACCES, errno.EPERM)

# Kinds whose existing target is copied aside before the write
_BACKED_UP_KINDS = frozenset({
    ResourceKind.FILE_APPEND,
    ResourceKind.FILE_WRITE,
    ResourceKind.SYMLINK,
    ResourceKind.KEY_PAIR,
})


class Mutator:
    """Applies MutationRequests against one execution context."""

    def __init__(
        self,
        ctx: ExecutionContext,
        toolbox: Toolbox,
        backups: BackupManager | None = None,
        download_timeout: int = 30,
    ):
        self.ctx = ctx
        self.toolbox = toolbox
        self.backups = backups or BackupManager(ctx)
        self.download_timeout = download_timeout

    def target_path(self, request: MutationRequest) -> Path:
        return self.ctx.expand(request.target)

    # ── Presence ─────────────────────────────────────────────────

    def is_applied(self, request: MutationRequest) -> bool:
        """Whether the resource is already in its desired state."""
        request = self._resolved(request)
        return CHECKS[request.kind](request, self.target_path(request), self.toolbox)

    def _resolved(self, request: MutationRequest) -> MutationRequest:
        # Symlinks store the home-expanded source on disk
        if request.kind == ResourceKind.SYMLINK and request.source:
            return request.model_copy(update={"source": str(self.ctx.expand(request.source))})
        return request

    # ── Apply ────────────────────────────────────────────────────

    def apply(self, request: MutationRequest) -> MutationResult:
        """Converge one resource.

        Raises:
            SourceMissingError: A symlink source is absent (also in dry run).
            TargetConflictError: A real directory sits where a link goes.
            PermissionDeniedError: The write was refused by the OS.
            ExternalToolError: A capability adapter failed.
        """
        description = request.describe()

        if self.is_applied(request):
            logger.debug("Already applied: %s", description)
            return MutationResult.for_skipped(request, message="already applied")

        request = self._resolved(request)
        self._validate(request)

        if self.ctx.dry_run:
            logger.info("Would %s", description)
            return MutationResult.for_skipped(request, message=f"would {description}", would_apply=True)

        backups, backup_errors = self._backup(request)

        try:
            self._write(request)
        except OSError as e:
            if e.errno in _PERMISSION_ERRNOS:
                raise PermissionDeniedError(
                    f"Permission denied: {e.filename or request.target}",
                    target=request.target,
                ) from e
            raise

        logger.info("Applied: %s", description)
        return MutationResult.for_applied(request, backups=backups, backup_errors=backup_errors)

    def _validate(self, request: MutationRequest) -> None:
        if request.kind != ResourceKind.SYMLINK:
            return
        if not request.source:
            raise SourceMissingError("Symlink request has no source", target=request.target)
        source = self.ctx.expand(request.source)
        if not (source.is_symlink() or source.exists()):
            raise SourceMissingError(f"Source missing: {source}", target=request.target)
        target = self.target_path(request)
        if target.is_dir() and not target.is_symlink():
            raise TargetConflictError(
                f"Refusing to replace directory with a link: {target}",
                target=request.target,
            )

    def _backup(self, request: MutationRequest) -> tuple[list[BackupRecord], list[str]]:
        if request.kind not in _BACKED_UP_KINDS:
            return [], []
        path = self.target_path(request)
        paths = [path]
        if request.kind == ResourceKind.KEY_PAIR:
            paths.append(public_key_path(path))

        records: list[BackupRecord] = []
        errors: list[str] = []
        for p in paths:
            record, error = self.backups.safe_backup(p)
            if record is not None:
                records.append(record)
            if error is not None:
                errors.append(error)
        return records, errors

    # ── Kind-specific writes ─────────────────────────────────────

    def _write(self, request: MutationRequest) -> None:
        path = self.target_path(request)
        kind = request.kind

        if kind == ResourceKind.FILE_APPEND:
            self._append(path, request.content)
            self._chmod(path, request.mode)
        elif kind == ResourceKind.FILE_WRITE:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(request.content, encoding="utf-8")
            self._chmod(path, request.mode)
        elif kind == ResourceKind.SYMLINK:
            self._link(path, request.source or "")
        elif kind == ResourceKind.KEY_PAIR:
            self._generate_key(path, request)
        elif kind == ResourceKind.CONFIG_KV:
            self.toolbox.config.set(request.target, request.content)
        elif kind == ResourceKind.DIRECTORY:
            path.mkdir(parents=True, exist_ok=True)
            self._chmod(path, request.mode)
        elif kind == ResourceKind.PACKAGE:
            self.toolbox.installer.install(request.target)
        elif kind == ResourceKind.DOWNLOAD:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.toolbox.fetcher.download(
                request.source or "", path, timeout=self.download_timeout
            )
            self._chmod(path, request.mode)
        elif kind == ResourceKind.GIT_CLONE:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.toolbox.fetcher.clone(request.source or "", path, ref=request.ref)

    @staticmethod
    def _append(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        prefix = ""
        if path.is_file() and path.stat().st_size > 0:
            with path.open("rb") as f:
                f.seek(-1, os.SEEK_END)
                if f.read(1) != b"\n":
                    prefix = "\n"
        body = content if content.endswith("\n") else content + "\n"
        with path.open("a", encoding="utf-8") as f:
            f.write(prefix + body)

    @staticmethod
    def _link(path: Path, source: str) -> None:
        """Point ``path`` at ``source``, replacing any file or link atomically."""
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.devstrap-tmp")
        if tmp.is_symlink() or tmp.exists():
            tmp.unlink()
        os.symlink(source, tmp)
        try:
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def _generate_key(self, path: Path, request: MutationRequest) -> None:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        public = public_key_path(path)
        for old in (path, public):
            if old.is_symlink() or old.is_file():
                old.unlink()
        self.toolbox.keys.generate(path, comment=request.comment, key_type=request.key_type)
        self._chmod(path, 0o600)
        if public.exists():
            self._chmod(public, 0o644)

    @staticmethod
    def _chmod(path: Path, mode: int | None) -> None:
        if mode is not None:
            os.chmod(path, mode)
