"""
tmux — bootstrap tmux block, plugin manager, and SSH agent forwarding.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from devstrap.core.data import read_template
from devstrap.core.models.mutation import MutationRequest
from devstrap.core.modules.base import SetupModule

if TYPE_CHECKING:
    from devstrap.core.engine.executor import ModuleSession

logger = logging.getLogger(__name__)

TMUX_CONF = "~/.tmux.conf"
TMUX_MARKER = "# Bootstrap tmux config"
TPM_DIR = "~/.tmux/plugins/tpm"
AGENT_SCRIPT = "~/.ssh/tmux-ssh-agent.sh"


class TmuxModule(SetupModule):
    name = "tmux"
    description = "Configure tmux (vi keys, mouse, TPM, SSH agent socket)"
    requires = ("git",)

    def setup(self, session: ModuleSession) -> None:
        session.apply(MutationRequest.file_append(TMUX_CONF, read_template("tmux.conf"), marker=TMUX_MARKER))

        session.apply(MutationRequest.git_clone(session.settings.tpm_url, TPM_DIR))

        if session.expand("~/.ssh").is_dir():
            session.apply(MutationRequest.file_write(AGENT_SCRIPT, read_template("tmux-ssh-agent.sh"), mode=0o755))
            script = session.expand(AGENT_SCRIPT)
            session.apply(
                MutationRequest.file_append(
                    session.ctx.rc_file,
                    f'source "{script}"',
                    marker="tmux-ssh-agent.sh",
                )
            )
        else:
            logger.debug("No ~/.ssh directory, skipping SSH agent helper")

        session.note("Start tmux and press prefix + I to install plugins")
