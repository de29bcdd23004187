"""
shell — history settings, direnv hook and aliases in the shell rc file.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from devstrap.core.data import read_template
from devstrap.core.models.mutation import MutationRequest
from devstrap.core.modules.base import SetupModule
from devstrap.core.modules.dotfiles import ALIASES_FILE, source_line

if TYPE_CHECKING:
    from devstrap.core.engine.executor import ModuleSession

logger = logging.getLogger(__name__)

HISTORY_MARKER = "Bootstrap history configuration"
ALIASES_MARKER = "Bootstrap aliases"
DIRENV_MARKER = "direnv hook"


class ShellModule(SetupModule):
    name = "shell"
    description = "Shell history, direnv hook and aliases"

    def setup(self, session: ModuleSession) -> None:
        ctx = session.ctx
        rc_file = ctx.rc_file
        if ctx.shell not in ("bash", "zsh"):
            logger.warning("Unsupported shell %r, configuring %s", ctx.shell, rc_file)

        session.apply(MutationRequest.file_append(rc_file, read_template("history.sh"), marker=HISTORY_MARKER))

        if session.which("direnv"):
            hook_shell = ctx.shell if ctx.shell in ("bash", "zsh") else "bash"
            session.apply(
                MutationRequest.file_append(
                    rc_file, f'eval "$(direnv hook {hook_shell})"', marker=DIRENV_MARKER
                )
            )
        else:
            logger.debug("direnv not installed, no hook")

        aliases = ctx.configs_dir / ALIASES_FILE
        if aliases.is_file():
            line = source_line(aliases)
            session.apply(MutationRequest.file_append(rc_file, line, marker=line))
        else:
            session.apply(MutationRequest.file_append(rc_file, read_template("aliases.sh"), marker=ALIASES_MARKER))

        session.note(f"Restart your shell or run: source {rc_file}")
