"""
Terminal operations — hand a melos command to a terminal.

Two ways to run a command string:

- ``run_in_foreground()``: in the current console (CLI default).
- ``spawn_terminal()``: in a new terminal emulator window (web UI,
  CLI ``--terminal``), with a fallback dict carrying the command for
  manual copy when no emulator works.

The caller gets no feedback on the command's exit status beyond the
foreground return code; the script tree is not updated from it.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path

logger = logging.getLogger(__name__)


# ── Terminal emulator registry ──────────────────────────────────────

# The args template uses {cmd} as placeholder for the shell command.
_TERMINAL_REGISTRY: list[dict] = [
    {
        "name": "gnome-terminal",
        "label": "GNOME Terminal",
        "args": ["gnome-terminal", "--", "bash", "-c", "{cmd}"],
    },
    {
        "name": "konsole",
        "label": "Konsole",
        "args": ["konsole", "-e", "bash", "-c", "{cmd}"],
    },
    {
        "name": "xfce4-terminal",
        "label": "XFCE Terminal",
        "args": ["xfce4-terminal", "-e", "bash -c '{cmd}'"],
    },
    {
        "name": "kitty",
        "label": "Kitty",
        "args": ["kitty", "bash", "-c", "{cmd}"],
    },
    {
        "name": "xterm",
        "label": "XTerm",
        "args": ["xterm", "-e", "bash", "-c", "{cmd}"],
    },
    {
        "name": "x-terminal-emulator",
        "label": "System Default",
        "args": ["x-terminal-emulator", "-e", "bash -c '{cmd}'"],
    },
]


def available_terminals() -> list[str]:
    """Names of registered emulators found on PATH."""
    return [t["name"] for t in _TERMINAL_REGISTRY if shutil.which(t["name"])]


def _build_terminal_cmd(terminal_name: str, shell_cmd: str) -> list[str] | None:
    """Build the full argv list for spawning a terminal with *shell_cmd*."""
    for entry in _TERMINAL_REGISTRY:
        if entry["name"] == terminal_name:
            return [arg.replace("{cmd}", shell_cmd) for arg in entry["args"]]
    return None


# ── Spawn terminal ──────────────────────────────────────────────────

def spawn_terminal(
    command: str,
    *,
    cwd: Path | None = None,
    wait_after: bool = True,
) -> dict:
    """Spawn an interactive terminal running *command*.

    Args:
        command: Shell command to execute inside the terminal.
        cwd: Working directory (the workspace root).
        wait_after: If True, keep the terminal open after the command.

    Returns:
        {"ok": True, "terminal": "<name>", "command": "…", "message": "…"}  on success
        {"ok": False, "no_terminal": True, "command": "…", "message": "…"}   otherwise
    """
    if wait_after:
        full_cmd = f'{command}; echo ""; read -p "Press Enter to close…"'
    else:
        full_cmd = command

    work_dir = str(cwd) if cwd else None
    logger.info("Running command: %s", command)

    for name in available_terminals():
        argv = _build_terminal_cmd(name, full_cmd)
        if not argv:
            continue

        try:
            proc = subprocess.Popen(
                argv,
                cwd=work_dir,
                start_new_session=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            logger.debug("Terminal '%s' failed to launch: %s", name, exc)
            continue

        # Crash detection: wait briefly and check
        time.sleep(1.5)
        rc = proc.poll()
        if rc is not None and rc != 0:
            stderr_out = ""
            if proc.stderr is not None:
                stderr_out = proc.stderr.read().decode(errors="replace")[:300]
            logger.warning(
                "Terminal '%s' crashed immediately (rc=%d): %s",
                name, rc, stderr_out.strip(),
            )
            continue

        logger.info("Spawned terminal '%s' for command: %s", name, command[:80])
        return {
            "ok": True,
            "terminal": name,
            "command": command,
            "message": f"Running '{command}' in {name}.",
        }

    logger.warning("No working terminal emulator for command: %s", command)
    return {
        "ok": False,
        "no_terminal": True,
        "command": command,
        "message": "No working terminal emulator found. Run the command manually.",
    }


def run_in_foreground(command: str, *, cwd: Path | None = None) -> int:
    """Run *command* through the shell in the current console.

    Returns:
        The command's exit code (127 if the shell could not be started).
    """
    logger.info("Running command: %s", command)
    try:
        result = subprocess.run(command, shell=True, cwd=str(cwd) if cwd else None)
    except OSError as e:
        logger.error("Cannot run '%s': %s", command, e)
        return 127
    return result.returncode
