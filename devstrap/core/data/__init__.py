"""
Bundled templates — the text devstrap writes into configuration files.

Templates live in ``devstrap/core/data/templates/`` and ship as package
data.  They are read once and cached for the process lifetime.

Usage::

    from devstrap.core.data import read_template

    block = read_template("tmux.conf")
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=None)
def read_template(name: str) -> str:
    """Return the text of a bundled template.

    Raises:
        FileNotFoundError: No template with that name is bundled.
    """
    path = TEMPLATES_DIR / name
    logger.debug("Loading template %s", path)
    return path.read_text(encoding="utf-8")
