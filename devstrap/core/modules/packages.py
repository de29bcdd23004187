"""
packages — install the base toolset through the native package manager.

On apt hosts Debian's renamed binaries (fdfind, batcat) get their usual
names through links in ~/.local/bin, and direnv is fetched as a release
binary because the distribution package is usually old.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from devstrap.core.models.mutation import MutationRequest
from devstrap.core.modules.base import SetupModule

if TYPE_CHECKING:
    from devstrap.core.engine.executor import ModuleSession

logger = logging.getLogger(__name__)

LOCAL_BIN = "~/.local/bin"
PATH_LINE = 'export PATH="$HOME/.local/bin:$PATH"'

# Debian binary name → conventional name
_RENAMED_BINARIES = (
    ("fdfind", "fd"),
    ("batcat", "bat"),
)


class PackagesModule(SetupModule):
    name = "packages"
    description = "Install base packages (git, tmux, fzf, ripgrep, ...)"
    provides = ("git", "tmux", "fzf", "rg", "fd", "bat", "jq", "curl", "direnv")

    def setup(self, session: ModuleSession) -> None:
        ctx = session.ctx
        installer = session.toolbox.installer

        if not installer.is_available():
            if ctx.dry_run:
                logger.info("Would install the %s package manager", installer.name)
            else:
                installer.ensure_available()

        requests = [
            MutationRequest.package(name)
            for name in session.settings.packages_for(ctx.package_manager)
        ]
        missing = [r.target for r in requests if not session.is_applied(r)]
        if missing:
            logger.info("Packages to install: %s", ", ".join(missing))
            if not ctx.dry_run:
                installer.refresh()
        else:
            logger.info("All %d packages already installed", len(requests))

        for request in requests:
            session.apply(request, tolerate=True)

        if ctx.package_manager == "apt":
            self._setup_local_bin(session)

    def _setup_local_bin(self, session: ModuleSession) -> None:
        session.apply(MutationRequest.directory(LOCAL_BIN))

        for command, alias in _RENAMED_BINARIES:
            binary = session.which(command)
            link = session.expand(f"{LOCAL_BIN}/{alias}")
            if binary is None:
                logger.debug("%s not installed, no %s link", command, alias)
                continue
            if link.exists() and not link.is_symlink():
                logger.debug("%s already exists, leaving it alone", link)
                continue
            session.apply(MutationRequest.symlink(binary, link))

        session.apply(MutationRequest.file_append(session.ctx.rc_file, PATH_LINE, marker=".local/bin"))

        if session.which("direnv") is None:
            session.apply(
                MutationRequest.download(
                    session.settings.direnv_download_url(),
                    f"{LOCAL_BIN}/direnv",
                    mode=0o755,
                )
            )
