"""
User notifications — one transient message per user-visible failure.

Core services never raise to the presentation layer.  When something
goes wrong that the user should see (malformed melos.yaml, a failed
write) they call ``notify.warning()`` / ``notify.error()`` and return an
empty or failed result.

The sink is swappable per entrypoint:

    - CLI:   main.py installs a ``click.secho`` sink
    - Web:   routes collect messages for the JSON response
    - Tests: ``capture()`` records them in a list

With no sink installed, messages go to the log.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Literal

logger = logging.getLogger(__name__)

Level = Literal["warning", "error"]
Sink = Callable[[Level, str], None]

_lock = threading.Lock()
_sink: Sink | None = None


def set_sink(sink: Sink | None) -> Sink | None:
    """Install a notification sink.  Returns the previous one."""
    global _sink
    with _lock:
        previous, _sink = _sink, sink
    return previous


def _emit(level: Level, message: str) -> None:
    with _lock:
        sink = _sink
    if sink is None:
        logger.log(logging.ERROR if level == "error" else logging.WARNING, message)
        return
    try:
        sink(level, message)
    except Exception as e:
        # A broken sink must not turn a notification into a crash
        logger.error("Notification sink failed (%s): %s", e, message)


def warning(message: str) -> None:
    """Show a non-fatal warning to the user."""
    _emit("warning", message)


def error(message: str) -> None:
    """Show an error to the user."""
    _emit("error", message)


@contextmanager
def capture() -> Iterator[list[tuple[Level, str]]]:
    """Collect notifications raised inside the block.

    Yields a list that is filled with ``(level, message)`` tuples.
    The previous sink is restored on exit.
    """
    messages: list[tuple[Level, str]] = []
    previous = set_sink(lambda level, msg: messages.append((level, msg)))
    try:
        yield messages
    finally:
        set_sink(previous)
