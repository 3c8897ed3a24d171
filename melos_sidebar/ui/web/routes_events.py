"""
SSE invalidation stream.

``GET /api/events`` — a Server-Sent Events stream.  Every time the
script registry may have changed, clients receive::

    event: tree:invalidate
    id: 12
    data: {"type":"tree:invalidate","seq":12,"ts":1739648400.123}

and should re-query ``/api/tree``.  Each connection first receives a
``sys:ready`` frame of its own.  There is no replay: a client that
(re)connects re-queries the tree once and then waits for new events.
"""

from __future__ import annotations

import json

from flask import Blueprint, Response, current_app

events_bp = Blueprint("events", __name__)


def format_sse(event: dict) -> str:
    """Serialize one event in SSE wire format."""
    return (
        f"event: {event['type']}\n"
        f"id: {event['seq']}\n"
        f"data: {json.dumps(event, default=str)}\n\n"
    )


@events_bp.route("/events")
def event_stream():  # type: ignore[no-untyped-def]
    """SSE endpoint — streams invalidation events."""
    from melos_sidebar.ui.web.server import get_signal

    signal = get_signal(current_app)

    def generate():  # type: ignore[no-untyped-def]
        for event in signal.stream():
            yield format_sse(event)

    return Response(
        generate(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )
