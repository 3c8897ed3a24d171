"""
Invalidation signal — tells the presentation layer to re-query.

A process-wide, payload-less signal.  Firing it means "the script
registry may have changed: throw away what you rendered and ask the
tree model again."  There is no incremental diffing and no payload.

Two kinds of consumers:

- **Listeners** (``connect()``): callables run synchronously on
  ``fire()``, e.g. the CLI ``watch`` loop re-printing the tree.
- **Streams** (``stream()``): generators for SSE clients, one
  ``queue.Queue`` each.  A stream first gets a per-client
  ``sys:ready`` event, then only the fires that happen after it
  subscribed: no replay, no ring buffer.

Thread safety model
───────────────────
``_lock`` protects ``_listeners``, ``_queues``, ``_seq`` and
``_closed``.  Listeners are called outside the lock so a listener may
itself fire or disconnect.

Event shape (for streams)::

    {
        "type": "tree:invalidate",  # or "sys:ready", "sys:heartbeat"
        "seq": 12,                  # monotonic per signal
        "ts": 1739648400.123,
    }
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Generator
from typing import Any

logger = logging.getLogger(__name__)

INVALIDATE_EVENT = "tree:invalidate"
HEARTBEAT_EVENT = "sys:heartbeat"
READY_EVENT = "sys:ready"

Listener = Callable[[], Any]

# Sentinel pushed into stream queues on close()
_CLOSED = object()


class InvalidationSignal:
    """Thread-safe, payload-less invalidation signal.

    Parameters
    ----------
    subscriber_queue_size : int
        Maximum backlog per stream.  A stream that can't keep up is
        dropped (it reconnects and re-queries anyway).
    """

    def __init__(self, *, subscriber_queue_size: int = 100) -> None:
        self._lock = threading.Lock()
        self._seq: int = 0
        self._listeners: list[Listener] = []
        self._queues: list[queue.Queue[Any]] = []
        self._subscriber_queue_size = subscriber_queue_size
        self._closed = False

    # ── Properties ──────────────────────────────────────────────

    @property
    def fire_count(self) -> int:
        """Number of times the signal has fired."""
        with self._lock:
            return self._seq

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    @property
    def stream_count(self) -> int:
        with self._lock:
            return len(self._queues)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    # ── Listeners ───────────────────────────────────────────────

    def connect(self, listener: Listener) -> Callable[[], None]:
        """Register a listener.  Returns a function that disconnects it."""
        with self._lock:
            self._listeners.append(listener)

        def disconnect() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return disconnect

    # ── Firing ──────────────────────────────────────────────────

    def fire(self) -> None:
        """Invalidate: notify every listener and stream.  No-op after close()."""
        with self._lock:
            if self._closed:
                return
            self._seq += 1
            event = {"type": INVALIDATE_EVENT, "seq": self._seq, "ts": time.time()}
            listeners = list(self._listeners)

            dead: list[queue.Queue[Any]] = []
            for q in self._queues:
                try:
                    q.put_nowait(event)
                except queue.Full:
                    dead.append(q)
            for q in dead:
                self._queues.remove(q)
                logger.info("Dropped unresponsive stream subscriber (queue full)")

        logger.debug("invalidate seq=%d listeners=%d", event["seq"], len(listeners))

        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Invalidation listener %r failed", listener)

    # ── Streams ─────────────────────────────────────────────────

    def stream(
        self,
        *,
        heartbeat_interval: float = 30.0,
    ) -> Generator[dict, None, None]:
        """Yield invalidation events for one client.  Blocks between events.

        The first event is always ``sys:ready`` (this client only, never
        broadcast).  After that, only fires that happen after the generator
        starts are seen.  Heartbeats are yielded when idle; the generator
        ends on close().
        """
        q: queue.Queue[Any] = queue.Queue(maxsize=self._subscriber_queue_size)
        with self._lock:
            if self._closed:
                return
            self._queues.append(q)
            ready = {"type": READY_EVENT, "seq": self._seq, "ts": time.time()}

        logger.info("Stream subscriber connected (streams=%d)", self.stream_count)

        try:
            yield ready

            while True:
                try:
                    event = q.get(timeout=heartbeat_interval)
                except queue.Empty:
                    if self.closed:
                        return
                    yield {"type": HEARTBEAT_EVENT, "seq": self.fire_count, "ts": time.time()}
                    continue
                if event is _CLOSED:
                    return
                yield event
        finally:
            with self._lock:
                if q in self._queues:
                    self._queues.remove(q)
            logger.info("Stream subscriber disconnected")

    # ── Teardown ────────────────────────────────────────────────

    def close(self) -> None:
        """Stop delivering events.  No drain: pending fires are dropped."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._listeners.clear()
            for q in self._queues:
                try:
                    q.put_nowait(_CLOSED)
                except queue.Full:
                    pass  # consumer is gone or stuck; it ends on its next get
            self._queues.clear()


# ── Module-level singleton ──────────────────────────────────────

signal = InvalidationSignal()
"""The process-wide invalidation signal.

Import and use::

    from melos_sidebar.core.services.event_bus import signal
    signal.fire()
"""
