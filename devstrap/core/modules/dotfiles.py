"""
dotfiles — link configuration files from the configs directory into home.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from devstrap.core.models.mutation import MutationRequest
from devstrap.core.modules.base import SetupModule

if TYPE_CHECKING:
    from devstrap.core.engine.executor import ModuleSession

logger = logging.getLogger(__name__)

SNIPPET_FILE = ".bashrc.snippet"
SNIPPET_HEADER = "# Bootstrap configuration"
ALIASES_FILE = ".aliases"


def source_line(path) -> str:
    return f"source {path}"


class DotfilesModule(SetupModule):
    name = "dotfiles"
    description = "Symlink dotfiles and append the shell snippet"

    def setup(self, session: ModuleSession) -> None:
        configs = session.ctx.configs_dir
        rc_file = session.ctx.rc_file

        for link in session.settings.dotfiles:
            source = configs / link.source
            if link.optional and not source.exists():
                logger.debug("Config file not found, skipping: %s", source)
                continue
            session.apply(MutationRequest.symlink(source, link.target))

        snippet = configs / SNIPPET_FILE
        if snippet.is_file():
            session.apply(MutationRequest.file_append(rc_file, SNIPPET_HEADER, marker=SNIPPET_HEADER))
            # Line by line so edits to the snippet reach the rc file on the next run
            for line in snippet.read_text(encoding="utf-8").splitlines():
                if line.strip():
                    session.apply(MutationRequest.file_append(rc_file, line))

        aliases = configs / ALIASES_FILE
        if aliases.is_file():
            line = source_line(aliases)
            session.apply(MutationRequest.file_append(rc_file, line, marker=line))
