"""
Tree node models — what the presentation layer renders.

The tree is two levels deep: script leaves and one collapsible
"Recommendations" group whose children are recommendation leaves.
Nodes carry an activation binding (``command``) but never execute it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

NodeKind = Literal["script", "recommendation", "group", "lifecycle"]


class NodeCommand(BaseModel):
    """Action bound to a node, dispatched by the surface on activation."""

    model_config = ConfigDict(frozen=True)

    command: str
    title: str
    arguments: list[str] = Field(default_factory=list)


class TreeNode(BaseModel):
    """One item in the script tree."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    kind: NodeKind
    description: str = ""
    tooltip: str = ""
    collapsible: bool = False
    icon: str = ""
    context_value: str = ""
    command: NodeCommand | None = None

    @property
    def is_group(self) -> bool:
        return self.kind == "group"
