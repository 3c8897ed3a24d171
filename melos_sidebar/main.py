"""
Melos Sidebar — CLI entrypoint.

Usage:
    melos-sidebar --help
    melos-sidebar tree
    melos-sidebar scripts add lint
    melos-sidebar watch
"""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path

import click

from melos_sidebar import __version__
from melos_sidebar.core.observability.logging_config import resolve_level, setup_logging

logger = logging.getLogger(__name__)


def _cli_notify(level: str, message: str) -> None:
    """Notification sink for the CLI: one coloured line on stderr."""
    if level == "error":
        click.secho(f"❌ {message}", fg="red", err=True)
    else:
        click.secho(f"⚠️  {message}", fg="yellow", err=True)


def _resolve_root(explicit: str | None) -> Path:
    """--root / MELOS_SIDEBAR_ROOT, else walk up to melos.yaml, else cwd."""
    if explicit:
        return Path(explicit).resolve()

    from melos_sidebar.core.config.loader import find_workspace_root

    return find_workspace_root() or Path.cwd().resolve()


@click.group()
@click.version_option(version=__version__, prog_name="melos-sidebar")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--root",
    "-r",
    "root",
    envvar="MELOS_SIDEBAR_ROOT",
    type=click.Path(file_okay=False),
    default=None,
    help="Workspace root containing melos.yaml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    root: str | None,
) -> None:
    """Melos Sidebar — browse, run and extend the scripts in melos.yaml."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )

    from melos_sidebar.core import context
    from melos_sidebar.core.services import notify
    from melos_sidebar.core.services.recommendations import validate_catalog

    workspace_root = _resolve_root(root)
    context.set_workspace_root(workspace_root)
    ctx.obj["root"] = workspace_root
    logger.info("Root path detected: %s", workspace_root)

    notify.set_sink(_cli_notify)

    for problem in validate_catalog():
        logger.warning("Recommendation catalog: %s", problem)


# ── Tree ────────────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def tree(ctx: click.Context, as_json: bool) -> None:
    """Show the script tree (scripts, recommendations, lifecycle)."""
    from melos_sidebar.ui.cli.scripts import echo_tree, tree_snapshot

    root: Path = ctx.obj["root"]

    if as_json:
        click.echo(json.dumps(tree_snapshot(root), indent=2))
        return

    echo_tree(root)


# ── Lifecycle ───────────────────────────────────────────────────────


def _run_lifecycle(ctx: click.Context, action: str, terminal: bool) -> None:
    from melos_sidebar.core.use_cases.run import run_lifecycle
    from melos_sidebar.ui.cli.scripts import launch

    root: Path = ctx.obj["root"]
    logger.info("Command: %s", action)
    launch(lambda launcher: run_lifecycle(root, action, launcher), terminal)


@cli.command()
@click.option("--terminal", "-t", is_flag=True, help="Run in a new terminal window.")
@click.pass_context
def bootstrap(ctx: click.Context, terminal: bool) -> None:
    """Run `melos bootstrap` in the workspace root."""
    _run_lifecycle(ctx, "bootstrap", terminal)


@cli.command()
@click.option("--terminal", "-t", is_flag=True, help="Run in a new terminal window.")
@click.pass_context
def clean(ctx: click.Context, terminal: bool) -> None:
    """Run `melos clean` in the workspace root."""
    _run_lifecycle(ctx, "clean", terminal)


@cli.command()
@click.option("--terminal", "-t", is_flag=True, help="Run in a new terminal window.")
@click.pass_context
def init(ctx: click.Context, terminal: bool) -> None:
    """Run `melos init` to create a workspace."""
    _run_lifecycle(ctx, "init", terminal)


# ── Config file ─────────────────────────────────────────────────────


@cli.command("open")
@click.option("--launch", "do_launch", is_flag=True, help="Open with the default application.")
@click.pass_context
def open_config(ctx: click.Context, do_launch: bool) -> None:
    """Print (or open) the path of melos.yaml."""
    from melos_sidebar.core.config.loader import config_exists, config_path

    root: Path = ctx.obj["root"]
    if not config_exists(root):
        click.secho("❌ melos.yaml not found", fg="red")
        sys.exit(1)

    path = config_path(root)
    click.echo(str(path))
    if do_launch:
        click.launch(str(path))


# ── Watch ───────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--interval",
    type=float,
    default=None,
    help="Poll interval in seconds (default: MELOS_SIDEBAR_POLL_INTERVAL or 1).",
)
@click.pass_context
def watch(ctx: click.Context, interval: float | None) -> None:
    """Reprint the script tree whenever melos.yaml changes."""
    from melos_sidebar.core.services.config_watcher import ConfigWatcher, poll_interval_from_env
    from melos_sidebar.core.services.event_bus import InvalidationSignal
    from melos_sidebar.ui.cli.scripts import echo_tree

    root: Path = ctx.obj["root"]
    signal = InvalidationSignal()

    def _on_exists_change(exists: bool) -> None:
        logger.info("Updating context: configExists=%s", exists)

    def _rerender() -> None:
        click.clear()
        echo_tree(root)

    signal.connect(_rerender)
    watcher = ConfigWatcher(
        root,
        signal,
        on_exists_change=_on_exists_change,
        poll_interval=interval or poll_interval_from_env(),
    )

    echo_tree(root)
    click.secho("   Watching for changes (Ctrl-C to stop)…", dim=True)

    try:
        with watcher:
            while True:
                time.sleep(0.5)
    except KeyboardInterrupt:
        click.echo()
    finally:
        signal.close()


# ── Web ─────────────────────────────────────────────────────────────


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.option("--no-watch", is_flag=True, help="Don't watch melos.yaml for changes.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int, no_watch: bool) -> None:
    """Start the JSON API / event stream server."""
    from melos_sidebar.ui.web.server import create_app, run_server, stop_watcher

    root: Path = ctx.obj["root"]
    debug = ctx.obj.get("debug", False)

    app = create_app(workspace_root=root, watch=not no_watch)

    click.echo()
    click.secho("⚡ Melos Sidebar — Web API", bold=True)
    click.echo(f"   API:       http://{host}:{port}/api/tree")
    click.echo(f"   Workspace: {root}")
    if debug:
        click.secho("   Logging: DEBUG (all output)", fg="yellow")
    click.echo()

    try:
        run_server(app, host=host, port=port, debug=debug)
    finally:
        stop_watcher(app)


# ── Register sub-command groups from melos_sidebar/ui/cli/ ─────────

from melos_sidebar.ui.cli.scripts import scripts  # noqa: E402

cli.add_command(scripts)


if __name__ == "__main__":
    cli()
