"""JSON status and live log stream routes."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from flask import Blueprint, Response, current_app, stream_with_context

from oidcdemo.core.events import EventLog, EventType, Subscription
from oidcdemo.web.routes import current_session_id, get_event_log, get_flow_controller

api_bp = Blueprint("api", __name__, url_prefix="/api")


@api_bp.route("/status")
def status() -> dict[str, Any]:
    """Report server and session status."""
    return get_flow_controller().status(current_session_id())


def _event_stream(events: EventLog, subscription: Subscription, keepalive: float) -> Iterator[str]:
    """Yield buffered events, then live ones, until the client goes away."""
    try:
        for entry in subscription.backlog:
            yield entry.to_sse()

        while True:
            entry = subscription.get(timeout=keepalive)
            if entry is None:
                yield ": keep-alive\n\n"
            else:
                yield entry.to_sse()
    finally:
        events.unsubscribe(subscription)
        events.publish("Log client disconnected", EventType.INFO)


@api_bp.route("/logs")
def logs() -> Response:
    """Stream dashboard events as Server-Sent Events."""
    events = get_event_log()
    subscription = events.subscribe()
    events.publish("Log client connected", EventType.SUCCESS)

    keepalive = float(current_app.config["SSE_KEEPALIVE_SECONDS"])
    response = Response(
        stream_with_context(_event_stream(events, subscription, keepalive)),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "Cache-Control",
        },
    )
    # Covers clients that disconnect before the generator starts
    response.call_on_close(lambda: events.unsubscribe(subscription))
    return response
