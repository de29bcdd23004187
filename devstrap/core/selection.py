"""
Module selection — turn role defaults and CLI flags into a module list.

    defaults(role) [+ ssh] → --only replaces → --skip subtracts
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from devstrap.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def parse_module_list(value: str | Iterable[str] | None) -> list[str]:
    """Split comma-separated names; repeated flags are joined.

    Blank entries are dropped and duplicates removed, keeping first
    occurrence order.
    """
    if value is None:
        return []
    parts = [value] if isinstance(value, str) else list(value)
    names: list[str] = []
    for part in parts:
        for name in part.split(","):
            name = name.strip()
            if name and name not in names:
                names.append(name)
    return names


def resolve_modules(
    role: str,
    defaults: list[str],
    known: Iterable[str],
    only: list[str] | None = None,
    skip: list[str] | None = None,
    setup_github_key: bool = False,
) -> list[str]:
    """Compute the ordered module list for a run.

    Args:
        role: ``local`` or ``vps``.
        defaults: The role's default modules.
        known: Every registered module name.
        only: Replaces the list when non-empty.
        skip: Removed from the list (exact names).
        setup_github_key: Adds ``ssh`` to the defaults.

    Raises:
        ConfigurationError: ``only`` or ``skip`` names an unknown module.
    """
    known = set(known)
    only = only or []
    skip = skip or []

    unknown = [n for n in [*only, *skip] if n not in known]
    if unknown:
        raise ConfigurationError(
            f"Unknown module(s): {', '.join(unknown)} (available: {', '.join(sorted(known))})"
        )

    if only:
        modules = parse_module_list(only)
    else:
        modules = parse_module_list(defaults)
        if (role == "vps" or setup_github_key) and "ssh" not in modules:
            logger.info("Enabling GitHub SSH key setup")
            modules.append("ssh")

    skipped = set(skip)
    return [m for m in modules if m not in skipped]
