"""
Tests for the melos.yaml watcher.
"""

import os
import time
from pathlib import Path

from melos_sidebar.core.services.config_watcher import ConfigWatcher, poll_interval_from_env
from melos_sidebar.core.services.event_bus import InvalidationSignal


def _bump_mtime(path: Path) -> None:
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 1_000_000_000))


class TestPollOnce:
    def _watcher(self, workspace: Path):
        signal = InvalidationSignal()
        fired: list[int] = []
        exists: list[bool] = []
        signal.connect(lambda: fired.append(1))
        watcher = ConfigWatcher(workspace, signal, on_exists_change=exists.append)
        return watcher, fired, exists

    def test_no_change(self, workspace: Path):
        watcher, fired, exists = self._watcher(workspace)
        assert watcher.poll_once() is None
        assert fired == []
        assert exists == []

    def test_create_modify_delete(self, workspace: Path, write_melos):
        watcher, fired, exists = self._watcher(workspace)

        path = write_melos("name: demo\n")
        assert watcher.poll_once() == "created"
        assert exists == [True]

        path.write_text("name: demo\nscripts:\n  a: echo a\n")
        _bump_mtime(path)
        assert watcher.poll_once() == "changed"
        assert exists == [True]

        path.unlink()
        assert watcher.poll_once() == "deleted"
        assert exists == [True, False]

        assert len(fired) == 3
        assert watcher.poll_once() is None

    def test_failing_exists_callback_still_fires(self, workspace: Path, write_melos):
        signal = InvalidationSignal()
        fired: list[int] = []
        signal.connect(lambda: fired.append(1))

        def _boom(exists: bool) -> None:
            raise RuntimeError("context update failed")

        watcher = ConfigWatcher(workspace, signal, on_exists_change=_boom)
        write_melos("name: demo\n")
        assert watcher.poll_once() == "created"
        assert fired == [1]


class TestLifecycle:
    def test_thread_detects_change(self, workspace: Path, write_melos):
        signal = InvalidationSignal()
        fired: list[int] = []
        signal.connect(lambda: fired.append(1))

        with ConfigWatcher(workspace, signal, poll_interval=0.02) as watcher:
            assert watcher.running
            write_melos("name: demo\n")
            deadline = time.monotonic() + 5.0
            while not fired and time.monotonic() < deadline:
                time.sleep(0.02)

        assert fired
        assert not watcher.running

    def test_start_is_idempotent(self, workspace: Path):
        watcher = ConfigWatcher(workspace, InvalidationSignal(), poll_interval=0.05)
        watcher.start()
        thread = watcher._thread
        watcher.start()
        assert watcher._thread is thread
        watcher.stop()
        watcher.stop()  # second stop is harmless


class TestPollInterval:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("MELOS_SIDEBAR_POLL_INTERVAL", raising=False)
        assert poll_interval_from_env() == 1.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MELOS_SIDEBAR_POLL_INTERVAL", "0.25")
        assert poll_interval_from_env() == 0.25

    def test_invalid_falls_back(self, monkeypatch):
        monkeypatch.setenv("MELOS_SIDEBAR_POLL_INTERVAL", "soon")
        assert poll_interval_from_env() == 1.0
        monkeypatch.setenv("MELOS_SIDEBAR_POLL_INTERVAL", "-3")
        assert poll_interval_from_env() == 1.0
