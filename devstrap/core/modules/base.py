"""
SetupModule — one named unit of setup work (packages, dotfiles, ssh...).

A module is a thin list of mutation requests.  It never touches the
filesystem or an external tool directly: everything goes through
``session.apply()``, which runs the idempotent-mutation primitive.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devstrap.core.engine.executor import ModuleSession


class SetupModule(ABC):
    """Base class for setup modules.

    Class attributes:
        name: Identifier used on the command line (``--only``, ``--skip``).
        description: One-line summary for ``devstrap modules``.
        roles: Roles whose default module list contains this module.
        requires: Commands that must exist before the module runs.
        provides: Commands the module installs for later modules.
    """

    name: str = ""
    description: str = ""
    roles: tuple[str, ...] = ("local", "vps")
    requires: tuple[str, ...] = ()
    provides: tuple[str, ...] = ()

    @abstractmethod
    def setup(self, session: ModuleSession) -> None:
        """Issue this module's mutation requests through ``session``."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
