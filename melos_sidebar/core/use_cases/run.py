"""
Run use case — build melos command lines and hand them to a launcher.

The launcher is either ``terminal_ops.spawn_terminal`` (new window) or
``terminal_ops.run_in_foreground`` (current console); both accept
``(command, cwd=...)``.  What the command does is melos' business.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

LIFECYCLE_COMMANDS: dict[str, str] = {
    "bootstrap": "melos bootstrap",
    "clean": "melos clean",
    "init": "melos init",
}

Launcher = Callable[..., Any]


class UnknownActionError(ValueError):
    """Raised for a lifecycle action that has no melos command."""


def script_command(name: str) -> str:
    """``melos run <name>``, quoted for the shell."""
    return f"melos run {shlex.quote(name)}"


def lifecycle_command(action: str) -> str:
    try:
        return LIFECYCLE_COMMANDS[action]
    except KeyError:
        raise UnknownActionError(
            f"Unknown lifecycle action '{action}' "
            f"(expected one of: {', '.join(LIFECYCLE_COMMANDS)})"
        ) from None


def run_script(root: Path | None, name: str, launcher: Launcher) -> Any:
    """Run a melos script from the workspace root."""
    command = script_command(name)
    logger.debug("Run script '%s' in %s", name, root)
    return launcher(command, cwd=root)


def run_lifecycle(root: Path | None, action: str, launcher: Launcher) -> Any:
    """Run ``melos bootstrap`` / ``clean`` / ``init`` from the workspace root."""
    command = lifecycle_command(action)
    return launcher(command, cwd=root)
