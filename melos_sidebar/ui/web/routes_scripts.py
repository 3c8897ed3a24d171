"""
Script API routes — tree queries and actions.

GET  /api/tree?parent=<id>        → children of a node (root if omitted)
GET  /api/lifecycle               → bootstrap / clean nodes
GET  /api/config/location?name=   → melos.yaml path (and a script's line)
POST /api/scripts/add             → add a recommendation {"name"}
POST /api/scripts/run             → run a script in a terminal {"name"}
POST /api/lifecycle/<action>      → bootstrap / clean / init in a terminal
POST /api/refresh                 → fire the invalidation signal
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request

logger = logging.getLogger(__name__)

scripts_bp = Blueprint("scripts", __name__)


def _workspace_root() -> Path:
    return Path(current_app.config["WORKSPACE_ROOT"])


def _signal():  # type: ignore[no-untyped-def]
    from melos_sidebar.ui.web.server import get_signal

    return get_signal(current_app)


def _requested_name() -> str | None:
    """The ``name`` field of a JSON object body, or None if unusable."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    name = data.get("name")
    if not isinstance(name, str) or not name:
        return None
    return name


# ── Tree ────────────────────────────────────────────────────────────


@scripts_bp.route("/tree")
def api_tree():  # type: ignore[no-untyped-def]
    """Children of ``parent`` (omit for the root level)."""
    from melos_sidebar.core.config.loader import config_exists
    from melos_sidebar.core.services import notify
    from melos_sidebar.core.services.script_tree import ScriptTreeModel

    parent = request.args.get("parent") or None
    root = _workspace_root()

    with notify.capture() as messages:
        nodes = ScriptTreeModel(root).get_children(parent)

    return jsonify({
        "parent": parent,
        "config_exists": config_exists(root),
        "children": [n.model_dump(mode="json") for n in nodes],
        "notifications": [{"level": lvl, "message": msg} for lvl, msg in messages],
    })


@scripts_bp.route("/lifecycle")
def api_lifecycle():  # type: ignore[no-untyped-def]
    from melos_sidebar.core.services.script_tree import LifecycleTreeModel

    nodes = LifecycleTreeModel().get_children()
    return jsonify({"children": [n.model_dump(mode="json") for n in nodes]})


@scripts_bp.route("/config/location")
def api_config_location():  # type: ignore[no-untyped-def]
    """Where melos.yaml is, and optionally where a script is declared."""
    from melos_sidebar.core.config.loader import config_exists, config_path
    from melos_sidebar.core.services.config_writer import find_script_line

    root = _workspace_root()
    if not config_exists(root):
        return jsonify({"error": "melos.yaml not found"}), 404

    result: dict = {"path": str(config_path(root))}
    name = request.args.get("name")
    if name:
        line = find_script_line(root, name)
        if line is None:
            return jsonify({"error": f"Script '{name}' not found", **result}), 404
        result["line"] = line
    return jsonify(result)


# ── Actions ─────────────────────────────────────────────────────────


@scripts_bp.route("/scripts/add", methods=["POST"])
def api_add_script():  # type: ignore[no-untyped-def]
    """Add a recommended script and its missing dependencies."""
    from melos_sidebar.core.services import notify
    from melos_sidebar.core.use_cases.add_script import add_recommendation

    name = _requested_name()
    if name is None:
        return jsonify({"error": "Missing 'name' field (a non-empty string)"}), 400

    with notify.capture():
        result = add_recommendation(_workspace_root(), name, signal=_signal())

    if not result.ok:
        return jsonify(result.to_dict()), 400
    return jsonify(result.to_dict())


@scripts_bp.route("/scripts/run", methods=["POST"])
def api_run_script():  # type: ignore[no-untyped-def]
    """Run ``melos run <name>`` in a terminal window."""
    from melos_sidebar.core.services.terminal_ops import spawn_terminal
    from melos_sidebar.core.use_cases.run import run_script

    name = _requested_name()
    if name is None:
        return jsonify({"error": "Missing 'name' field (a non-empty string)"}), 400

    return jsonify(run_script(_workspace_root(), name, spawn_terminal))


@scripts_bp.route("/lifecycle/<action>", methods=["POST"])
def api_run_lifecycle(action: str):  # type: ignore[no-untyped-def]
    """Run ``melos bootstrap`` / ``clean`` / ``init`` in a terminal window."""
    from melos_sidebar.core.services.terminal_ops import spawn_terminal
    from melos_sidebar.core.use_cases.run import UnknownActionError, run_lifecycle

    try:
        result = run_lifecycle(_workspace_root(), action, spawn_terminal)
    except UnknownActionError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(result)


@scripts_bp.route("/refresh", methods=["POST"])
def api_refresh():  # type: ignore[no-untyped-def]
    """Ask every connected client to re-query the tree."""
    signal = _signal()
    signal.fire()
    return jsonify({"ok": True, "seq": signal.fire_count})
