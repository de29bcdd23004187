"""
Toolbox — the set of capability adapters used by one run.

The toolbox is the single point of adapter management.  The mutation
engine and the setup modules never construct adapters themselves; the
driver builds one Toolbox (real or mock) and passes it in.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from devstrap.adapters.base import (
    Capability,
    ConfigStore,
    Fetcher,
    KeyGenerator,
    PackageInstaller,
)
from devstrap.core.errors import BootstrapEnvironmentError

logger = logging.getLogger(__name__)


class UnsupportedInstaller(PackageInstaller):
    """Stand-in installer for hosts without a supported package manager."""

    def __init__(self, manager: str | None = None):
        self._manager = manager

    @property
    def name(self) -> str:
        return self._manager or "none"

    def is_available(self) -> bool:
        return False

    def _unsupported(self) -> BootstrapEnvironmentError:
        return BootstrapEnvironmentError(
            f"No supported package manager on this host (got {self._manager or 'none'})"
        )

    def ensure_available(self) -> None:
        raise self._unsupported()

    def is_installed(self, package: str) -> bool:
        raise self._unsupported()

    def install(self, package: str) -> None:
        raise self._unsupported()


def _real_installer(manager: str | None) -> PackageInstaller:
    if manager == "apt":
        from devstrap.adapters.packages.apt import AptInstaller
        return AptInstaller()
    if manager == "brew":
        from devstrap.adapters.packages.brew import BrewInstaller
        return BrewInstaller()
    return UnsupportedInstaller(manager)


class Toolbox:
    """Bundle of the four capabilities plus command lookup.

    ``commands`` overrides PATH lookup: when given, ``which`` answers
    only from it.  Mock toolboxes always carry a commands map so tests
    never depend on what the developer machine has installed.
    """

    def __init__(
        self,
        installer: PackageInstaller,
        keys: KeyGenerator,
        config: ConfigStore,
        fetcher: Fetcher,
        mock: bool = False,
        commands: dict[str, str] | None = None,
    ):
        self.installer = installer
        self.keys = keys
        self.config = config
        self.fetcher = fetcher
        self._mock = mock
        self._commands = commands

    @property
    def mock(self) -> bool:
        return self._mock

    @classmethod
    def real(cls, package_manager: str | None, home: Path | None = None) -> Toolbox:
        """Toolbox backed by the host's real tools; git config is bound to ``home`` when given."""
        from devstrap.adapters.net.fetch import CommandFetcher
        from devstrap.adapters.ssh.keygen import SshKeyGenerator
        from devstrap.adapters.vcs.git import GitConfigStore

        return cls(
            installer=_real_installer(package_manager),
            keys=SshKeyGenerator(),
            config=GitConfigStore(home=home),
            fetcher=CommandFetcher(),
        )

    @classmethod
    def mock_toolbox(
        cls,
        package_manager: str | None = "apt",
        commands: dict[str, str] | None = None,
        installed: set[str] | None = None,
        config: dict[str, str] | None = None,
    ) -> Toolbox:
        """Toolbox of mock adapters (no external command is ever run)."""
        from devstrap.adapters.mock import (
            MockConfigStore,
            MockFetcher,
            MockKeyGenerator,
            MockPackageInstaller,
        )

        return cls(
            installer=MockPackageInstaller(package_manager or "apt", installed=installed),
            keys=MockKeyGenerator(),
            config=MockConfigStore(config),
            fetcher=MockFetcher(),
            mock=True,
            commands=dict(commands or {}),
        )

    # ── Command lookup ───────────────────────────────────────────

    def which(self, name: str) -> str | None:
        """Full path of a command, or None when it is not installed."""
        if self._commands is not None:
            return self._commands.get(name)
        return shutil.which(name)

    def command_exists(self, name: str) -> bool:
        return self.which(name) is not None

    # ── Introspection ────────────────────────────────────────────

    def capabilities(self) -> dict[str, Capability]:
        return {
            "installer": self.installer,
            "keys": self.keys,
            "config": self.config,
            "fetcher": self.fetcher,
        }

    def status(self) -> dict[str, dict[str, Any]]:
        """Availability of every capability."""
        status = {}
        for role, adapter in self.capabilities().items():
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            status[role] = {
                "name": adapter.name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status
