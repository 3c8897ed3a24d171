"""
Add-script use case — resolve a recommendation and write it to melos.yaml.

    parse (current registry) → resolve (closure) → insert → fire signal

The signal fires only after the write has completed, so the refresh it
triggers sees the new file.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from melos_sidebar.core.config.loader import MELOS_CONFIG_FILE, config_exists, parse_scripts
from melos_sidebar.core.data.recommendations import RECOMMENDED_SCRIPTS
from melos_sidebar.core.models.script import RecommendedScript
from melos_sidebar.core.services import notify
from melos_sidebar.core.services.config_writer import insert_scripts
from melos_sidebar.core.services.event_bus import InvalidationSignal
from melos_sidebar.core.services.recommendations import get_recommendation, resolve

logger = logging.getLogger(__name__)


@dataclass
class AddScriptResult:
    """Outcome of adding one recommended script (and its dependencies)."""

    requested: str = ""
    resolved: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {
            "ok": self.ok,
            "requested": self.requested,
            "resolved": list(self.resolved),
            "added": list(self.added),
            "skipped": list(self.skipped),
        }
        if self.error:
            result["error"] = self.error
        return result


def add_recommendation(
    root: Path | None,
    name: str,
    *,
    signal: InvalidationSignal | None = None,
    catalog: Sequence[RecommendedScript] = RECOMMENDED_SCRIPTS,
) -> AddScriptResult:
    """Add a recommended script and any missing dependencies to melos.yaml.

    Args:
        root: Workspace root (None = no workspace open).
        name: Catalog name to add.
        signal: Fired once after a successful write.
        catalog: Recommendation catalog.

    Returns:
        AddScriptResult.  Errors are reported through ``notify`` and the
        result's ``error`` field; this never raises.
    """
    result = AddScriptResult(requested=name)

    if root is None:
        result.error = "No workspace folder open"
        return result

    if get_recommendation(name, catalog) is None:
        result.error = f"Unknown recommended script: {name}"
        notify.error(result.error)
        return result

    if not config_exists(root):
        result.error = f"{MELOS_CONFIG_FILE} not found"
        notify.error(result.error)
        return result

    registry = parse_scripts(root)
    entries = resolve(name, registry, catalog)
    result.resolved = [e.name for e in entries]

    if not entries:
        logger.info("'%s' and its dependencies are already in %s", name, MELOS_CONFIG_FILE)
        result.skipped = [name]
        return result

    inserted = insert_scripts(root, entries)
    result.added = inserted.added
    result.skipped = inserted.skipped

    if not inserted.ok:
        result.error = inserted.error or f"Failed to add script to {MELOS_CONFIG_FILE}"
        notify.error(result.error)
        return result

    if inserted.changed and signal is not None:
        signal.fire()

    return result
