from flask import Blueprint, Response, current_app, request

import device_monitor.extensions as extensions
from device_monitor.services.broadcaster import EventBroadcaster

# Live dashboard updates over server-sent events (browsers fall back to polling /devices)
realtime_bp = Blueprint("realtime", __name__)


@realtime_bp.route("/events", methods=["GET"])
def events():
    broadcaster = EventBroadcaster(
        extensions.device_store,
        extensions.notifier,
        heartbeat_interval=current_app.config["SSE_HEARTBEAT_INTERVAL"],
        poll_interval=current_app.config["SSE_POLL_INTERVAL"],
        last_event_id=request.headers.get("Last-Event-ID"),
        stop_event=extensions.shutdown
    )

    return Response(
        broadcaster.stream(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            # Stop nginx from buffering the stream
            "X-Accel-Buffering": "no"
        }
    )
