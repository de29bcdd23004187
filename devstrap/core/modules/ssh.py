"""
ssh — a dedicated GitHub key pair, known_hosts entry and host alias.

The connectivity probe only warns: a fresh key is expected to fail
until it has been added to the GitHub account.
"""

from __future__ import annotations

import logging
import socket
from typing import TYPE_CHECKING

from devstrap.adapters.base import public_key_path
from devstrap.core.errors import ExternalToolError
from devstrap.core.models.mutation import MutationRequest
from devstrap.core.modules.base import SetupModule

if TYPE_CHECKING:
    from devstrap.core.engine.executor import ModuleSession
    from devstrap.core.models.settings import SshSettings

logger = logging.getLogger(__name__)

SSH_DIR = "~/.ssh"

_ALIAS_BLOCK = """
# Bootstrap GitHub SSH configuration
Host {alias}
    HostName {host}
    User git
    IdentityFile {key_path}
    IdentitiesOnly yes
"""


def alias_block(alias: str, host: str, key_path: str) -> str:
    return _ALIAS_BLOCK.format(alias=alias, host=host, key_path=key_path)


class SshModule(SetupModule):
    name = "ssh"
    description = "GitHub SSH key, known_hosts entry and host alias"
    roles = ("vps",)
    requires = ("ssh-keygen", "ssh-keyscan", "ssh")

    def setup(self, session: ModuleSession) -> None:
        ssh = session.settings.ssh
        key_path = session.expand(f"{SSH_DIR}/{ssh.key_name}")

        session.apply(MutationRequest.directory(SSH_DIR, mode=0o700))
        session.apply(
            MutationRequest.key_pair(
                key_path,
                comment=self._comment(session, ssh),
                force=ssh.force,
                key_type=ssh.key_type,
            )
        )
        self._known_hosts(session, ssh)

        if ssh.use_alias:
            session.apply(
                MutationRequest.file_append(
                    f"{SSH_DIR}/config",
                    alias_block(ssh.alias, ssh.host, str(key_path)),
                    marker=f"Host {ssh.alias}",
                    mode=0o600,
                )
            )

        if session.ctx.dry_run:
            return

        if ssh.probe and key_path.is_file():
            self._probe(session, ssh)

        public = public_key_path(key_path)
        if public.is_file():
            session.note(f"Add this public key to GitHub: {public.read_text(encoding='utf-8').strip()}")
            session.note("  personal access: https://github.com/settings/ssh/new")
            session.note("  deploy key: https://github.com/USER/REPO/settings/keys")
        if ssh.use_alias:
            session.note(f"Use the SSH alias in git remotes: git@{ssh.alias}:user/repo.git")

    @staticmethod
    def _comment(session: ModuleSession, ssh: SshSettings) -> str:
        if ssh.email:
            return ssh.email
        try:
            email = session.toolbox.config.get("user.email")
        except ExternalToolError as e:
            logger.debug("No git user.email for the key comment: %s", e)
            email = None
        if email:
            return email
        return f"user@{socket.gethostname()}"

    @staticmethod
    def _known_hosts(session: ModuleSession, ssh: SshSettings) -> None:
        target = f"{SSH_DIR}/known_hosts"
        probe = MutationRequest.file_append(target, "", marker=ssh.host, mode=0o644)
        if session.is_applied(probe) or session.ctx.dry_run:
            session.apply(probe)
            return
        try:
            lines = session.toolbox.keys.scan_host(ssh.host)
        except ExternalToolError as e:
            session.record_failure(probe, e)
            return
        session.apply(MutationRequest.file_append(target, lines, marker=ssh.host, mode=0o644))

    @staticmethod
    def _probe(session: ModuleSession, ssh: SshSettings) -> None:
        destination = f"git@{ssh.alias if ssh.use_alias else ssh.host}"
        logger.info("Testing SSH connection to %s...", destination)
        try:
            ok = session.toolbox.keys.probe(destination, timeout=ssh.probe_timeout)
        except ExternalToolError as e:
            logger.warning("SSH probe could not run: %s", e)
            return
        if ok:
            logger.info("SSH connection to %s successful", ssh.host)
        else:
            logger.warning(
                "SSH connection failed: expected until the key has been added to %s", ssh.host
            )
