"""
Configuration loader — reads devstrap.yml into BootstrapSettings.

The settings file is optional.  Without one, every value falls back to
the built-in workstation profile and the configs directory defaults to
``./configs``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from devstrap.core.errors import ConfigurationError
from devstrap.core.models.settings import BootstrapSettings

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "devstrap.yml"

# Parent directories checked when walking up from the cwd
_SEARCH_LIMIT = 20


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for devstrap.yml starting from the given directory, walking up.

    Returns:
        Path to devstrap.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(_SEARCH_LIMIT):
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_settings(
    path: Path | None = None,
    start_dir: Path | None = None,
) -> tuple[BootstrapSettings, Path | None]:
    """Load and validate settings.

    Args:
        path: Explicit settings file (``--config``).  Must exist.
        start_dir: Where to start the upward search when ``path`` is None.

    Returns:
        ``(settings, path)``; ``path`` is None when built-in defaults are used.

    Raises:
        ConfigurationError: The explicit file is missing, or any file is
            unreadable, not YAML, or fails validation.
    """
    if path is None:
        path = find_settings_file(start_dir)
        if path is None:
            logger.debug("No %s found, using built-in defaults", SETTINGS_FILE)
            return BootstrapSettings(), None
    elif not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = BootstrapSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}: {e}") from e

    logger.debug("Loaded settings from %s", path)
    return settings, path


def resolve_configs_dir(settings: BootstrapSettings, settings_path: Path | None, cwd: Path | None = None) -> Path:
    """The directory holding dotfiles and templates.

    Relative ``configs_dir`` values are resolved against the settings
    file's directory; without a settings file, ``<cwd>/configs``.
    """
    base = settings_path.parent.resolve() if settings_path else (cwd or Path.cwd())
    if settings.configs_dir:
        configured = Path(settings.configs_dir).expanduser()
        return configured if configured.is_absolute() else base / configured
    return base / "configs"
