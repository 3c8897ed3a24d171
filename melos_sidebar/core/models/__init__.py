"""
Domain models — Pydantic types for scripts and the script tree.

    from melos_sidebar.core.models import ScriptRecord, RecommendedScript, TreeNode
"""

from melos_sidebar.core.models.script import RecommendedScript, ScriptRecord
from melos_sidebar.core.models.tree import NodeCommand, NodeKind, TreeNode

__all__ = [
    "NodeCommand",
    "NodeKind",
    # script.py
    "RecommendedScript",
    "ScriptRecord",
    # tree.py
    "TreeNode",
]
