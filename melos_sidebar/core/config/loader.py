"""
Configuration loader — reads the ``scripts`` section of melos.yaml.

Every call re-reads the file from disk: the registry always reflects the
latest on-disk state, and refreshes are rare (user- or watcher-triggered).

A missing file is not an error (empty registry).  A malformed file is
reported to the user once per parse and also yields an empty registry.
Nothing here raises to the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from melos_sidebar.core.models.script import ScriptRecord
from melos_sidebar.core.services import notify

logger = logging.getLogger(__name__)

# Config filename at the workspace root
MELOS_CONFIG_FILE = "melos.yaml"


def config_path(root: Path) -> Path:
    """Path of melos.yaml for a workspace root."""
    return root / MELOS_CONFIG_FILE


def config_exists(root: Path | None) -> bool:
    """Whether the workspace has a melos.yaml (the "config exists" flag)."""
    if root is None:
        return False
    return config_path(root).is_file()


def find_workspace_root(start_dir: Path | None = None) -> Path | None:
    """Search for melos.yaml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        The directory containing melos.yaml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        if (current / MELOS_CONFIG_FILE).is_file():
            return current
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _to_record(name: Any, node: Any) -> ScriptRecord:
    """Build a record from one ``scripts`` entry.

    Bare string → run command.  Mapping → ``run`` / ``description``.
    Anything else → empty run command.
    """
    if isinstance(node, str):
        return ScriptRecord(name=_as_text(name), run=node)
    if isinstance(node, dict):
        return ScriptRecord(
            name=_as_text(name),
            run=_as_text(node.get("run")),
            description=_as_text(node.get("description")),
        )
    return ScriptRecord(name=_as_text(name))


def parse_scripts(root: Path) -> list[ScriptRecord]:
    """Parse the scripts declared in ``root/melos.yaml``.

    Args:
        root: Workspace root directory.

    Returns:
        One ScriptRecord per entry under ``scripts``, in document order.
        Empty when the file is absent, empty, malformed, or has no
        ``scripts`` mapping.
    """
    path = config_path(root)
    if not path.is_file():
        logger.debug("No %s at %s", MELOS_CONFIG_FILE, root)
        return []

    try:
        raw = path.read_text(encoding="utf-8")
        document = yaml.safe_load(raw)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Error parsing %s: %s", path, e)
        notify.warning(f"Error parsing {MELOS_CONFIG_FILE}")
        return []

    if not isinstance(document, dict):
        return []

    scripts = document.get("scripts")
    if not isinstance(scripts, dict):
        return []

    records = [_to_record(name, node) for name, node in scripts.items()]
    logger.debug("Parsed %d scripts from %s", len(records), path)
    return records
