"""
git — global defaults, aliases, ignore/attributes files, hooks template.

Config values are first-write-wins: a key the user already set is
never overwritten.
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

GITIGNORE_GLOBAL = "~/.gitignore_global"
GITATTRIBUTES_GLOBAL = "~/.gitattributes_global"
TEMPLATE_DIR = "~/.git-templates"


class GitModule(SetupModule):
    name = "git"
    description = "Global git config, aliases, ignore and attributes files"
    requires = ("git",)

    def setup(self, session: ModuleSession) -> None:
        settings = session.settings

        for key, value in settings.git_config.items():
            session.apply(MutationRequest.config_kv(key, value), tolerate=True)
        for alias, command in settings.git_aliases.items():
            session.apply(MutationRequest.config_kv(f"alias.{alias}", command), tolerate=True)

        # Existing files are the user's: only create them when absent
        for target, template in (
            (GITIGNORE_GLOBAL, "gitignore_global"),
            (GITATTRIBUTES_GLOBAL, "gitattributes_global"),
        ):
            if session.expand(target).exists():
                logger.debug("%s already exists", target)
                continue
            session.apply(MutationRequest.file_write(target, read_template(template)))

        session.apply(MutationRequest.directory(f"{TEMPLATE_DIR}/hooks"))
        session.apply(
            MutationRequest.config_kv("init.templatedir", str(session.expand(TEMPLATE_DIR))),
            tolerate=True,
        )

        config = session.toolbox.config
        if not config.get("user.name"):
            session.note("Set your name: git config --global user.name 'Your Name'")
        if not config.get("user.email"):
            session.note("Set your email: git config --global user.email 'you@example.com'")
        session.note("Run 'git alias' to list the configured aliases")
