"""
Logging configuration — one setup call per process.

Every module logs through ``logging.getLogger(__name__)``; the lines
double as the diagnostic trace ("melos.yaml changed", "Running
command: …").  The console level is chosen in this order:

    --debug / --verbose / --quiet  >  MELOS_SIDEBAR_LOG_LEVEL  >  WARNING

A log file can be added with MELOS_SIDEBAR_LOG_FILE, at its own level
via MELOS_SIDEBAR_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "MELOS_SIDEBAR_LOG_LEVEL"
ENV_FILE = "MELOS_SIDEBAR_LOG_FILE"
ENV_FILE_LEVEL = "MELOS_SIDEBAR_LOG_FILE_LEVEL"

# Console formats, by verbosity
_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(message)s", None),
}

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Request logs from the dev server drown out the trace at INFO
_NOISY_LOGGERS = ("werkzeug", "urllib3")


def resolve_level(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path (default: MELOS_SIDEBAR_LOG_FILE).
        log_file_level: Level for the file (default: MELOS_SIDEBAR_LOG_FILE_LEVEL,
            else ``level``).
        quiet_third_party: Hold noisy library loggers at WARNING unless
            the console is at DEBUG.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get(ENV_FILE) or None
    log_file_level = log_file_level or os.environ.get(ENV_FILE_LEVEL) or None

    fmt_key = min((k for k in _FORMATS if console_level <= k), default=logging.WARNING)
    fmt, datefmt = _FORMATS[fmt_key]

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown names fall back to WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
