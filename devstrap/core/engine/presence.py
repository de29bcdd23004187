"""
Presence checks — is a resource already in its desired state?

One check per resource kind.  A check never writes and never raises for
a missing target: absence simply means "not applied."
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from devstrap.adapters.registry import Toolbox
from devstrap.core.models.mutation import MutationRequest, ResourceKind

logger = logging.getLogger(__name__)


def _read_text(path: Path) -> str | None:
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None


def file_append_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    text = _read_text(path)
    if text is None:
        return False
    if request.marker:
        return request.marker in text
    return request.content in text


def file_write_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    text = _read_text(path)
    if text is None:
        return False
    if request.marker:
        return request.marker in text
    return text == request.content


def symlink_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    if not path.is_symlink():
        return False
    return os.readlink(path) == request.source


def key_pair_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    if request.force:
        return False
    return path.is_file()


def config_kv_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    return bool(toolbox.config.get(request.target))


def directory_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    return path.is_dir()


def package_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    return toolbox.installer.is_installed(request.target)


def path_present(request: MutationRequest, path: Path, toolbox: Toolbox) -> bool:
    return path.is_symlink() or path.exists()


PresenceCheck = Callable[[MutationRequest, Path, Toolbox], bool]

CHECKS: dict[ResourceKind, PresenceCheck] = {
    ResourceKind.FILE_APPEND: file_append_present,
    ResourceKind.FILE_WRITE: file_write_present,
    ResourceKind.SYMLINK: symlink_present,
    ResourceKind.KEY_PAIR: key_pair_present,
    ResourceKind.CONFIG_KV: config_kv_present,
    ResourceKind.DIRECTORY: directory_present,
    ResourceKind.PACKAGE: package_present,
    ResourceKind.DOWNLOAD: path_present,
    ResourceKind.GIT_CLONE: path_present,
}
