"""
Workspace context — "which Melos workspace are we looking at."

The root is set ONCE at startup by whichever entry point launches
the app:

    - CLI:   main.py    → context.set_workspace_root(root)
    - Web:   server.py  → context.set_workspace_root(root)
    - Tests: fixtures   → context.set_workspace_root(tmp_path)

get_workspace_root() returns None when unset; callers treat that as
"no workspace open" and show an empty tree.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


_workspace_root: Optional[Path] = None


def set_workspace_root(root: Optional[Path]) -> None:
    """Register the workspace root for the current process."""
    global _workspace_root
    _workspace_root = root


def get_workspace_root() -> Optional[Path]:
    """Return the current workspace root, or None if not yet set."""
    return _workspace_root
