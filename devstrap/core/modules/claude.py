"""
claude — AI assistant team settings for local workstations.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from devstrap.core.data import read_template
from devstrap.core.errors import SourceMissingError
from devstrap.core.models.mutation import MutationRequest
from devstrap.core.modules.base import SetupModule

if TYPE_CHECKING:
    from devstrap.core.engine.executor import ModuleSession

logger = logging.getLogger(__name__)

CLAUDE_DIR = "~/.claude"
SETTINGS_FILE = f"{CLAUDE_DIR}/settings.json"
SETTINGS_TEMPLATE = "claude_settings.json"
ENABLED_MARKER = '"enabled": true'
GITIGNORE_MARKER = "# .claude directory"
GITIGNORE_GLOBAL = "~/.gitignore_global"


class ClaudeModule(SetupModule):
    name = "claude"
    description = "Install ~/.claude/settings.json (local role only)"
    roles = ("local",)

    def setup(self, session: ModuleSession) -> None:
        if session.ctx.role == "vps":
            session.skip("not installed on VPS hosts")
            return

        content = self._template(session)

        session.apply(MutationRequest.directory(CLAUDE_DIR, mode=0o755))
        session.apply(MutationRequest.file_write(SETTINGS_FILE, content, marker=ENABLED_MARKER, mode=0o644))

        session.apply(
            MutationRequest.file_append(GITIGNORE_GLOBAL, f"{GITIGNORE_MARKER}\n.claude/", marker=GITIGNORE_MARKER)
        )
        session.apply(
            MutationRequest.config_kv("core.excludesfile", str(session.expand(GITIGNORE_GLOBAL))),
            tolerate=True,
        )

    @staticmethod
    def _template(session: ModuleSession) -> str:
        """Settings body: explicit template, then configs dir, then bundled."""
        configured = session.settings.claude_template
        if configured:
            path = session.expand(configured)
            if not path.is_absolute():
                path = session.ctx.configs_dir / path
            if not path.is_file():
                raise SourceMissingError(f"Claude settings template not found: {path}", target=SETTINGS_FILE)
            return path.read_text(encoding="utf-8")

        local: Path = session.ctx.configs_dir / SETTINGS_TEMPLATE
        if local.is_file():
            return local.read_text(encoding="utf-8")
        logger.debug("Using bundled Claude settings template")
        return read_template(SETTINGS_TEMPLATE)
