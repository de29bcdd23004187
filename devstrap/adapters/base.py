"""
Capability interfaces — the contract between the engine and external tools.

The mutation engine never shells out directly.  Each external
collaborator is modelled as a capability with a real implementation
(invoking the OS tool) and a mock implementation for tests:

    PackageInstaller   apt-get / brew
    KeyGenerator       ssh-keygen, ssh-keyscan, ssh -T
    ConfigStore        git config --global
    Fetcher            curl / wget downloads, git clone

Real implementations raise ExternalToolError when the tool fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class Capability(ABC):
    """Common surface of every capability adapter."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'apt', 'ssh-keygen', 'git')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool exists.  Fast and never raises."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class PackageInstaller(Capability):
    """Native package manager."""

    def ensure_available(self) -> None:
        """Install the package manager itself when possible (e.g. Homebrew)."""

    def refresh(self) -> None:
        """Refresh the package index.  No-op for managers that don't need it."""

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """Whether a package is installed."""

    @abstractmethod
    def install(self, package: str) -> None:
        """Install a package."""


class KeyGenerator(Capability):
    """SSH key toolchain."""

    @abstractmethod
    def generate(self, path: Path, comment: str = "", key_type: str = "ed25519") -> None:
        """Write a new key pair to ``path`` and ``path.pub`` (no passphrase)."""

    @abstractmethod
    def scan_host(self, host: str) -> str:
        """Return known_hosts lines for a host."""

    @abstractmethod
    def probe(self, destination: str, timeout: int = 10) -> bool:
        """Try an SSH login and report whether authentication succeeded."""


class ConfigStore(Capability):
    """Key/value configuration store (first-write-wins from the engine's view)."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Current value, or None when the key is unset."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Write a value."""


class Fetcher(Capability):
    """Network retrieval of release binaries and repositories."""

    @abstractmethod
    def download(self, url: str, dest: Path, timeout: int = 30) -> None:
        """Download ``url`` to ``dest``."""

    @abstractmethod
    def clone(self, url: str, dest: Path, ref: str | None = None) -> None:
        """Clone a git repository into ``dest``."""


def public_key_path(private_key: Path) -> Path:
    """``id_ed25519`` → ``id_ed25519.pub``."""
    return private_key.with_name(private_key.name + ".pub")
