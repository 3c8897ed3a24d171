"""
CLI commands for the script registry and recommendations.

Thin wrappers over ``melos_sidebar.core.services.script_tree`` and
``melos_sidebar.core.use_cases``.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from melos_sidebar.core.models.tree import TreeNode

_ICONS = {
    "play": "▶",
    "lightbulb": "💡",
    "star": "⭐",
    "sync": "🔄",
    "trash": "🗑",
}


def _root(ctx: click.Context) -> Path:
    from melos_sidebar.core import context

    root = ctx.obj.get("root") if ctx.obj else None
    return root or context.get_workspace_root() or Path.cwd().resolve()


def _signal() -> Any:
    from melos_sidebar.core.services.event_bus import signal

    return signal


# ── Rendering helpers (shared with main.py) ─────────────────────────


def tree_snapshot(root: Path) -> dict:
    """The fully-expanded tree as a JSON-serializable dict."""
    from melos_sidebar.core.config.loader import config_exists
    from melos_sidebar.core.services.script_tree import LifecycleTreeModel, ScriptTreeModel

    top, missing = ScriptTreeModel(root).expand()

    return {
        "root": str(root),
        "config_exists": config_exists(root),
        "scripts": [n.model_dump(mode="json") for n in top if n.kind == "script"],
        "recommendations": [n.model_dump(mode="json") for n in missing],
        "lifecycle": [n.model_dump(mode="json") for n in LifecycleTreeModel().get_children()],
    }


def _node_line(node: TreeNode, indent: str) -> str:
    icon = _ICONS.get(node.icon, "•")
    desc = f"  — {node.description}" if node.description else ""
    return f"{indent}{icon} {node.label}{desc}"


def echo_tree(root: Path) -> None:
    """Print the script tree, expanding the recommendations group."""
    from melos_sidebar.core.config.loader import config_exists
    from melos_sidebar.core.services.script_tree import LifecycleTreeModel, ScriptTreeModel

    if not config_exists(root):
        click.secho(f"\n📭 No melos.yaml found in {root}", fg="yellow")
        click.echo("   Run 'melos-sidebar init' to create a Melos workspace.")
        click.echo()
        return

    top, missing = ScriptTreeModel(root).expand()

    click.secho(f"\n📜 Scripts — {root}", fg="cyan", bold=True)
    if not any(n.kind == "script" for n in top):
        click.echo("   (no scripts declared)")

    for node in top:
        if node.is_group:
            click.echo()
            click.secho(_node_line(node, "   "), fg="yellow", bold=True)
            for child in missing:
                click.echo(_node_line(child, "     "))
        else:
            click.echo(_node_line(node, "   "))

    click.echo()
    click.secho("   Lifecycle:", fg="white", bold=True)
    for node in LifecycleTreeModel().get_children():
        click.echo(_node_line(node, "     "))
    click.echo()


def launch(run: Callable[[Callable[..., Any]], Any], terminal: bool) -> None:
    """Run a melos command in the console, or a new terminal with ``terminal``.

    ``run`` receives the launcher and returns its result.
    """
    from melos_sidebar.core.services.terminal_ops import run_in_foreground, spawn_terminal

    if terminal:
        result = run(spawn_terminal)
        if result.get("ok"):
            click.secho(f"✅ {result['message']}", fg="green")
            return
        click.secho(f"⚠️  {result['message']}", fg="yellow")
        click.echo(f"   {result['command']}")
        sys.exit(1)

    rc = run(run_in_foreground)
    if rc != 0:
        sys.exit(rc)


# ── Group ───────────────────────────────────────────────────────────


@click.group()
def scripts() -> None:
    """Scripts — list, run and add melos.yaml scripts."""


@scripts.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_scripts(ctx: click.Context, as_json: bool) -> None:
    """List scripts declared in melos.yaml (file order)."""
    from melos_sidebar.core.config.loader import parse_scripts

    records = parse_scripts(_root(ctx))

    if as_json:
        click.echo(json.dumps([r.model_dump() for r in records], indent=2))
        return

    if not records:
        click.secho("No scripts found", fg="yellow")
        return

    width = max(len(r.name) for r in records)
    for r in records:
        click.secho(f"  {r.name:<{width}}", fg="cyan", nl=False)
        click.echo(f"  {r.run}")
        if r.description:
            click.secho(f"  {'':<{width}}  {r.description}", dim=True)


@scripts.command("recommendations")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--all", "show_all", is_flag=True, help="Include scripts already present.")
@click.pass_context
def recommendations(ctx: click.Context, as_json: bool, show_all: bool) -> None:
    """List recommended scripts missing from melos.yaml."""
    from melos_sidebar.core.config.loader import parse_scripts
    from melos_sidebar.core.data.recommendations import RECOMMENDED_SCRIPTS
    from melos_sidebar.core.services.recommendations import missing_recommendations

    registry = parse_scripts(_root(ctx))
    entries = list(RECOMMENDED_SCRIPTS) if show_all else missing_recommendations(registry)
    present = {r.name for r in registry}

    if as_json:
        click.echo(json.dumps(
            [{**e.model_dump(mode="json"), "present": e.name in present} for e in entries],
            indent=2,
        ))
        return

    if not entries:
        click.secho("✅ All recommended scripts are present", fg="green")
        return

    for e in entries:
        marker = click.style(" ✓", fg="green") if e.name in present else ""
        deps = f"  (needs: {', '.join(e.dependencies)})" if e.dependencies else ""
        click.secho(f"  💡 {e.name}", fg="cyan", nl=False)
        click.echo(f"{marker}  — {e.description}{deps}")


@scripts.command("add")
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def add(ctx: click.Context, name: str, as_json: bool) -> None:
    """Add a recommended script (and its dependencies) to melos.yaml."""
    from melos_sidebar.core.services import notify
    from melos_sidebar.core.use_cases.add_script import add_recommendation

    if as_json:
        # Keep stdout pure JSON: the error is in the payload
        with notify.capture():
            result = add_recommendation(_root(ctx), name, signal=_signal())
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    result = add_recommendation(_root(ctx), name, signal=_signal())
    if not result.ok:
        sys.exit(1)

    if result.added:
        click.secho(f"✅ Added to melos.yaml: {', '.join(result.added)}", fg="green")
    else:
        click.secho(f"Nothing to add — '{name}' is already in melos.yaml", fg="yellow")


@scripts.command("run")
@click.argument("name")
@click.option("--terminal", "-t", is_flag=True, help="Run in a new terminal window.")
@click.pass_context
def run(ctx: click.Context, name: str, terminal: bool) -> None:
    """Run `melos run NAME` in the workspace root."""
    from melos_sidebar.core.use_cases.run import run_script

    root = _root(ctx)
    launch(lambda launcher: run_script(root, name, launcher), terminal)


@scripts.command("edit")
@click.argument("name")
@click.pass_context
def edit(ctx: click.Context, name: str) -> None:
    """Print `path:line` of a script's entry in melos.yaml."""
    from melos_sidebar.core.config.loader import config_exists, config_path
    from melos_sidebar.core.services.config_writer import find_script_line

    root = _root(ctx)
    if not config_exists(root):
        click.secho("❌ melos.yaml not found", fg="red")
        sys.exit(1)

    line = find_script_line(root, name)
    if line is None:
        click.secho(f"❌ Script '{name}' not found in melos.yaml", fg="red")
        sys.exit(1)

    click.echo(f"{config_path(root)}:{line + 1}")


@scripts.command("check")
def check() -> None:
    """Validate the built-in recommendation catalog."""
    from melos_sidebar.core.services.recommendations import validate_catalog

    problems = validate_catalog()
    if not problems:
        click.secho("✅ Recommendation catalog is valid", fg="green")
        return

    click.secho("⚠️  Recommendation catalog problems:", fg="yellow", bold=True)
    for p in problems:
        click.echo(f"   • {p}")
    sys.exit(1)
