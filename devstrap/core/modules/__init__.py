"""
Setup modules and the registry that dispatches them by name.

Usage::

    from devstrap.core.modules import default_registry

    registry = default_registry()
    modules = registry.resolve(["packages", "shell"])
"""

from __future__ import annotations

import logging

from devstrap.core.errors import ConfigurationError
from devstrap.core.modules.base import SetupModule
from devstrap.core.modules.claude import ClaudeModule
from devstrap.core.modules.dotfiles import DotfilesModule
from devstrap.core.modules.git import GitModule
from devstrap.core.modules.packages import PackagesModule
from devstrap.core.modules.shell import ShellModule
from devstrap.core.modules.ssh import SshModule
from devstrap.core.modules.tmux import TmuxModule

logger = logging.getLogger(__name__)


class ModuleRegistry:
    """Name → SetupModule mapping, in registration order."""

    def __init__(self) -> None:
        self._modules: dict[str, SetupModule] = {}

    def register(self, module: SetupModule) -> None:
        if module.name in self._modules:
            logger.warning("Overwriting existing module: %s", module.name)
        self._modules[module.name] = module
        logger.debug("Registered module: %s", module.name)

    def get(self, name: str) -> SetupModule | None:
        return self._modules.get(name)

    def names(self) -> list[str]:
        return list(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __iter__(self):
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def resolve(self, names: list[str]) -> list[SetupModule]:
        """Module objects for names, in the given order.

        Raises:
            ConfigurationError: A name is not registered.
        """
        unknown = [n for n in names if n not in self._modules]
        if unknown:
            raise ConfigurationError(
                f"Unknown module(s): {', '.join(unknown)} "
                f"(available: {', '.join(self._modules)})"
            )
        return [self._modules[n] for n in names]


def default_registry() -> ModuleRegistry:
    """Registry holding every built-in module."""
    registry = ModuleRegistry()
    for module in (
        PackagesModule(),
        DotfilesModule(),
        TmuxModule(),
        ShellModule(),
        GitModule(),
        SshModule(),
        ClaudeModule(),
    ):
        registry.register(module)
    return registry


__all__ = [
    "ModuleRegistry",
    "SetupModule",
    "default_registry",
]
