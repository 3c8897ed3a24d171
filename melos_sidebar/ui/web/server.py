"""
Web server — Flask app factory.

Serves the script tree as JSON for a browser or editor front-end,
plus the add/run actions and an SSE stream of invalidations.
The front-end itself is not part of this package.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask

from melos_sidebar.core.services.event_bus import InvalidationSignal

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "melos_sidebar"


def create_app(
    workspace_root: Path | None = None,
    *,
    signal: InvalidationSignal | None = None,
    watch: bool = False,
    poll_interval: float | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        workspace_root: Root of the Melos workspace (default: cwd).
        signal: Invalidation signal (default: the process-wide one).
        watch: Start a ConfigWatcher on melos.yaml for this app.
        poll_interval: Watcher poll interval (default: from env).

    Returns:
        Configured Flask application.  The watcher, if any, is owned by
        the app: release it with ``stop_watcher(app)``.
    """
    from melos_sidebar.core import context
    from melos_sidebar.core.services import event_bus

    app = Flask(__name__)

    root = (workspace_root or Path.cwd()).resolve()
    app.config["WORKSPACE_ROOT"] = str(root)
    context.set_workspace_root(root)

    state: dict = {
        "signal": signal if signal is not None else event_bus.signal,
        "watcher": None,
    }
    app.extensions[_EXTENSION_KEY] = state

    from melos_sidebar.ui.web.routes_events import events_bp
    from melos_sidebar.ui.web.routes_scripts import scripts_bp

    app.register_blueprint(scripts_bp, url_prefix="/api")
    app.register_blueprint(events_bp, url_prefix="/api")

    if watch:
        from melos_sidebar.core.services.config_watcher import (
            ConfigWatcher,
            poll_interval_from_env,
        )

        state["watcher"] = ConfigWatcher(
            root,
            state["signal"],
            on_exists_change=lambda exists: logger.info(
                "Updating context: configExists=%s", exists,
            ),
            poll_interval=poll_interval or poll_interval_from_env(),
        ).start()

    logger.info("Web app created (root=%s, watch=%s)", root, watch)
    return app


def get_signal(app: Flask) -> InvalidationSignal:
    """The invalidation signal this app publishes on."""
    return app.extensions[_EXTENSION_KEY]["signal"]


def stop_watcher(app: Flask) -> None:
    """Release the app's ConfigWatcher, if it has one."""
    state = app.extensions.get(_EXTENSION_KEY, {})
    watcher = state.get("watcher")
    if watcher is not None:
        watcher.stop()
        state["watcher"] = None


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting web API on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
