"""
Config watcher — mtime polling of melos.yaml that fires invalidation.

Polls the existence and ``mtime`` of ``<root>/melos.yaml`` and maps
changes to events:

    absent  → present   "created"   fire + on_exists_change(True)
    present → present   "changed"   fire  (mtime or size differs)
    present → absent    "deleted"   fire + on_exists_change(False)

Mtime polling (not inotify/watchdog) keeps the dependency list short;
one stat() per interval is negligible.

The watcher is an explicit resource owned by the composition root
(CLI ``watch``, web ``create_app``): ``start()`` on workspace open,
``stop()`` on close or when the root changes.  It is also a context
manager.  ``poll_once()`` runs a single check synchronously for tests.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path

from melos_sidebar.core.config.loader import MELOS_CONFIG_FILE, config_path
from melos_sidebar.core.services.event_bus import InvalidationSignal

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 1.0
"""Seconds between polls.  Override with MELOS_SIDEBAR_POLL_INTERVAL."""


def poll_interval_from_env() -> float:
    """Poll interval from ``MELOS_SIDEBAR_POLL_INTERVAL``, or the default."""
    raw = os.environ.get("MELOS_SIDEBAR_POLL_INTERVAL", "")
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_POLL_INTERVAL_S
    return value if value > 0 else DEFAULT_POLL_INTERVAL_S


def _fingerprint(path: Path) -> tuple[int, int] | None:
    """(mtime_ns, size) of the file, or None if it doesn't exist."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return None
    return (st.st_mtime_ns, st.st_size)


class ConfigWatcher:
    """Watch one workspace's melos.yaml and fire an invalidation signal.

    Args:
        root: Workspace root directory.
        signal: Signal fired on create / change / delete.
        on_exists_change: Called with the new "config exists" flag on
            create and delete.
        poll_interval: Seconds between polls.
    """

    def __init__(
        self,
        root: Path,
        signal: InvalidationSignal,
        *,
        on_exists_change: Callable[[bool], None] | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        self.root = root
        self.path = config_path(root)
        self.signal = signal
        self.on_exists_change = on_exists_change
        self.poll_interval = poll_interval

        self._last = _fingerprint(self.path)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ── Lifecycle ───────────────────────────────────────────────

    def start(self) -> ConfigWatcher:
        """Start polling in a daemon thread.  Idempotent."""
        if self.running:
            return self
        self._stop.clear()
        self._last = _fingerprint(self.path)
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="melos-config-watcher",
        )
        self._thread.start()
        logger.info(
            "Watching %s (poll every %.1fs)", self.path, self.poll_interval,
        )
        return self

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop polling and wait for the thread to exit."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            logger.info("Stopped watching %s", self.path)

    def __enter__(self) -> ConfigWatcher:
        return self.start()

    def __exit__(self, *exc: object) -> None:
        self.stop()

    # ── Polling ─────────────────────────────────────────────────

    def poll_once(self) -> str | None:
        """Check the file once.

        Returns:
            "created", "changed", "deleted", or None if nothing changed.
        """
        current = _fingerprint(self.path)
        previous, self._last = self._last, current

        if previous == current:
            return None

        if previous is None:
            kind = "created"
        elif current is None:
            kind = "deleted"
        else:
            kind = "changed"

        logger.info("%s %s", MELOS_CONFIG_FILE, kind)

        if kind != "changed" and self.on_exists_change is not None:
            try:
                self.on_exists_change(current is not None)
            except Exception:
                logger.exception("on_exists_change callback failed")

        self.signal.fire()
        return kind

    def _poll_loop(self) -> None:
        """Main poll loop — runs until stop()."""
        while not self._stop.wait(self.poll_interval):
            try:
                self.poll_once()
            except OSError as e:
                # stat() failures other than "missing": skip this cycle
                logger.debug("Watcher poll failed: %s", e)
