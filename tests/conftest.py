"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from melos_sidebar.core.services import notify


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return an empty workspace root (no melos.yaml)."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def write_melos(workspace: Path):
    """Return a helper that writes dedented content to melos.yaml."""

    def _write(content: str) -> Path:
        path = workspace / "melos.yaml"
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def _reset_notify_sink():
    """Each test starts with the default (logging) notification sink."""
    notify.set_sink(None)
    yield
    notify.set_sink(None)
