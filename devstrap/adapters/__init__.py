"""Adapters — bindings for the external tools devstrap drives.

Public re-exports for convenient access.
"""

from devstrap.adapters.base import (
    ConfigStore,
    Fetcher,
    KeyGenerator,
    PackageInstaller,
)
from devstrap.adapters.registry import Toolbox

__all__ = [
    "ConfigStore",
    "Fetcher",
    "KeyGenerator",
    "PackageInstaller",
    "Toolbox",
]
