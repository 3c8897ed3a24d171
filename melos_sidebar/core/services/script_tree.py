"""
Script tree — the two-level hierarchy shown by the surfaces.

Root query   → one leaf per script in melos.yaml (name-sorted), then a
               collapsible "Recommendations" group if any catalog entry
               is missing from the file.
Group query  → one leaf per missing catalog entry, in catalog order.

Every query re-parses melos.yaml; nothing is cached between the root
and group queries.  ``expand()`` answers both from one parse for
surfaces that render the whole tree.  Surfaces re-query after the
invalidation signal fires.  Nodes carry command bindings but the model
executes nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from melos_sidebar.core.config.loader import config_exists, parse_scripts
from melos_sidebar.core.data.recommendations import RECOMMENDED_SCRIPTS
from melos_sidebar.core.models.script import RecommendedScript, ScriptRecord
from melos_sidebar.core.models.tree import NodeCommand, TreeNode
from melos_sidebar.core.services.event_bus import InvalidationSignal
from melos_sidebar.core.services.recommendations import missing_recommendations

logger = logging.getLogger(__name__)

RECOMMENDATIONS_GROUP_ID = "recommendations"
RECOMMENDATIONS_GROUP_LABEL = "Recommendations"

# Command identifiers bound to nodes
CMD_RUN_SCRIPT = "melos-sidebar.runScript"
CMD_ADD_SCRIPT = "melos-sidebar.addScript"
CMD_BOOTSTRAP = "melos-sidebar.bootstrap"
CMD_CLEAN = "melos-sidebar.clean"


def script_node(record: ScriptRecord) -> TreeNode:
    """Leaf for a script declared in melos.yaml."""
    return TreeNode(
        id=f"script:{record.name}",
        label=record.name,
        kind="script",
        description=record.description,
        tooltip=f"{record.name}: {record.run}",
        icon="play",
        context_value="script",
        command=NodeCommand(command=CMD_RUN_SCRIPT, title="Run Script", arguments=[record.name]),
    )


def recommendation_node(rec: RecommendedScript) -> TreeNode:
    """Leaf for a catalog entry missing from melos.yaml."""
    return TreeNode(
        id=f"recommendation:{rec.name}",
        label=rec.name,
        kind="recommendation",
        description=rec.description,
        tooltip=f"{rec.name}: {rec.run}",
        icon="lightbulb",
        context_value="recommendation",
        command=NodeCommand(command=CMD_ADD_SCRIPT, title="Add Script", arguments=[rec.name]),
    )


def recommendations_group() -> TreeNode:
    return TreeNode(
        id=RECOMMENDATIONS_GROUP_ID,
        label=RECOMMENDATIONS_GROUP_LABEL,
        kind="group",
        collapsible=True,
        icon="star",
        context_value="recommendationGroup",
    )


class ScriptTreeModel:
    """Answers child queries for the script tree.

    Args:
        root: Workspace root, or None when no workspace is open.
        catalog: Recommendation catalog.
        signal: Invalidation signal fired by ``refresh()``.
    """

    def __init__(
        self,
        root: Path | None,
        *,
        catalog: Sequence[RecommendedScript] = RECOMMENDED_SCRIPTS,
        signal: InvalidationSignal | None = None,
    ) -> None:
        self.root = root
        self.catalog = catalog
        self.signal = signal if signal is not None else InvalidationSignal()

    def refresh(self) -> None:
        """Ask every surface to discard the rendered tree and re-query."""
        self.signal.fire()

    def get_children(self, parent: TreeNode | str | None = None) -> list[TreeNode]:
        """Children of ``parent`` (None = root).

        ``parent`` may be a node or a node id.  Leaves have no children.
        """
        if self.root is None:
            return []

        if parent is None:
            if not config_exists(self.root):
                # Empty result: the surface shows its welcome message
                return []
            return self._root_children(parse_scripts(self.root))

        parent_id = parent if isinstance(parent, str) else parent.id
        if parent_id == RECOMMENDATIONS_GROUP_ID:
            return self._recommendation_children(parse_scripts(self.root))
        return []

    def expand(self) -> tuple[list[TreeNode], list[TreeNode]]:
        """Root children and the group's children from a single parse.

        For surfaces that render the whole tree at once, so a malformed
        file is reported once per render.
        """
        if self.root is None or not config_exists(self.root):
            return [], []

        scripts = parse_scripts(self.root)
        return self._root_children(scripts), self._recommendation_children(scripts)

    def _root_children(self, scripts: list[ScriptRecord]) -> list[TreeNode]:
        nodes = [script_node(s) for s in sorted(scripts, key=lambda s: s.name)]

        if missing_recommendations(scripts, self.catalog):
            nodes.append(recommendations_group())

        logger.debug("Root query: %d scripts, group=%s", len(scripts), len(nodes) > len(scripts))
        return nodes

    def _recommendation_children(self, scripts: list[ScriptRecord]) -> list[TreeNode]:
        return [recommendation_node(r) for r in missing_recommendations(scripts, self.catalog)]


class LifecycleTreeModel:
    """Static workspace lifecycle actions (bootstrap, clean)."""

    def get_children(self, parent: TreeNode | str | None = None) -> list[TreeNode]:
        if parent is not None:
            return []
        return [
            TreeNode(
                id="lifecycle:bootstrap",
                label="Bootstrap",
                kind="lifecycle",
                icon="sync",
                command=NodeCommand(command=CMD_BOOTSTRAP, title="Bootstrap"),
            ),
            TreeNode(
                id="lifecycle:clean",
                label="Clean",
                kind="lifecycle",
                icon="trash",
                command=NodeCommand(command=CMD_CLEAN, title="Clean"),
            ),
        ]
