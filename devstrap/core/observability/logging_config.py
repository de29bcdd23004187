"""
Logging for the devstrap CLI.

main.py calls setup_logging() once; modules log through
``logging.getLogger(__name__)``.  Console lines go to stderr tagged
[INFO], [WARN], [ERROR] or [DEBUG]; stdout stays free for the summary
and JSON output.

Level: CLI flag, then DEVSTRAP_LOG_LEVEL, then INFO.  A log file is
written when DEVSTRAP_LOG_FILE is set.
"""

from __future__ import annotations

import logging
import os
import sys

import click

# ── Environment variables ──────────────────────────────────────

ENV_LEVEL = "DEVSTRAP_LOG_LEVEL"
ENV_FILE = "DEVSTRAP_LOG_FILE"
ENV_FILE_LEVEL = "DEVSTRAP_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

# Console: level tag plus message
_FMT_CONSOLE = "%(message)s"

# --debug: full diagnostic with file:line
_FMT_DEBUG = "%(asctime)s %(name)s:%(lineno)d %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

# File output: always full detail
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

_LEVEL_TAGS = {
    logging.DEBUG: ("DEBUG", "blue"),
    logging.INFO: ("INFO", "green"),
    logging.WARNING: ("WARN", "yellow"),
    logging.ERROR: ("ERROR", "red"),
    logging.CRITICAL: ("ERROR", "red"),
}


class LevelTagFormatter(logging.Formatter):
    """Prefix each line with ``[INFO]``, ``[WARN]``... coloured on a tty."""

    def __init__(self, fmt: str, datefmt: str | None = None, color: bool = False):
        super().__init__(fmt, datefmt=datefmt)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        tag, colour = _LEVEL_TAGS.get(record.levelno, (record.levelname, None))
        label = f"[{tag}]"
        if self.color and colour:
            label = click.style(label, fg=colour, bold=record.levelno >= logging.ERROR)
        return f"{label} {super().format(record)}"


def resolve_level(verbose: bool = False, quiet: bool = False, debug: bool = False) -> str:
    """CLI flags win over DEVSTRAP_LOG_LEVEL, which wins over INFO."""
    if debug or verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return os.environ.get(ENV_LEVEL, "INFO")


def setup_logging(
    level: str = "INFO",
    detailed: bool = False,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler (and the file handler, if any) on the root logger.

    ``log_file`` and ``log_file_level`` fall back to DEVSTRAP_LOG_FILE and
    DEVSTRAP_LOG_FILE_LEVEL.  The root level is the lowest of the handler
    levels, so a DEBUG log file still receives records the console hides.
    """
    console_level = _parse_level(level)
    handlers: list[logging.Handler] = [_console_handler(console_level, detailed)]

    log_file = log_file or os.environ.get(ENV_FILE)
    if log_file:
        file_level = _parse_level(log_file_level or os.environ.get(ENV_FILE_LEVEL) or level)
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))


def _console_handler(level: int, detailed: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if detailed:
        formatter = LevelTagFormatter(_FMT_DEBUG, datefmt=_DATEFMT_DEBUG, color=_isatty(sys.stderr))
    else:
        formatter = LevelTagFormatter(_FMT_CONSOLE, color=_isatty(sys.stderr))
    handler.setFormatter(formatter)
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
    return handler


def _isatty(stream) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown names mean INFO."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO
