import json
import threading
import time
import uuid

from device_monitor.utils.logger import logger

CONNECTING = "connecting"
STREAMING = "streaming"
CLOSED = "closed"


def parse_event_id(value):
    """Read a ``Last-Event-ID`` header; anything unusable counts as 0."""
    if value is None:
        return 0
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return 0
    if parsed != parsed or parsed < 0:
        return 0
    return parsed


def format_event_id(timestamp):
    timestamp = float(timestamp)
    if timestamp.is_integer():
        return str(int(timestamp))
    return f"{timestamp:.3f}"


def format_sse(event):
    """Frame one event as ``id`` / ``event`` / ``data`` lines plus a blank line."""
    event_id = format_event_id(event.get("timestamp", 0))
    payload = json.dumps(event, ensure_ascii=False)
    return f"id: {event_id}\nevent: {event['type']}\ndata: {payload}\n\n"


class EventBroadcaster:
    """
    Streams dashboard events to one subscriber.

    A new connection gets ``connected`` and ``initial_data`` right away, then
    a loop polls the notifier every ``poll_interval`` seconds and adds a
    ``heartbeat`` whenever the wall clock hits a multiple of
    ``heartbeat_interval``. The resume hint from ``Last-Event-ID`` only moves
    the cursor forward; nothing is replayed, the snapshot is the catch-up.
    """

    def __init__(self, device_store, notifier, heartbeat_interval=3, poll_interval=0.5,
                 last_event_id=None, clock=None, sleep=None, stop_event=None,
                 is_disconnected=None):
        self.device_store = device_store
        self.notifier = notifier
        self.heartbeat_interval = max(1, int(heartbeat_interval))
        self.poll_interval = poll_interval
        self.resume_from = parse_event_id(last_event_id)
        self.clock = clock or time.time
        self.sleep = sleep or time.sleep
        self.stop_event = stop_event or threading.Event()
        self.is_disconnected = is_disconnected or (lambda: False)

        self.client_id = f"sse_{uuid.uuid4().hex}"
        self.cursor = self.resume_from
        self.state = CONNECTING

    def _should_stop(self):
        return self.stop_event.is_set() or self.is_disconnected()

    def stream(self):
        logger.info(f"🔌 SSE connected: {self.client_id}, Last-Event-ID: {format_event_id(self.resume_from)}")
        try:
            now = self.clock()
            yield format_sse({
                "type": "connected",
                "clientId": self.client_id,
                "timestamp": int(now),
            })

            # Cursor before snapshot: an update landing in between is sent twice, never lost
            self.cursor = max(self.resume_from, self.notifier.latest_timestamp())
            devices = self.device_store.list()
            yield format_sse({
                "type": "initial_data",
                "devices": devices,
                "count": len(devices),
                "timestamp": int(self.clock()),
            })

            self.state = STREAMING
            started = int(now)
            last_heartbeat = None

            while not self._should_stop():
                second = int(self.clock())
                if second > started and second % self.heartbeat_interval == 0 and second != last_heartbeat:
                    last_heartbeat = second
                    yield format_sse({"type": "heartbeat", "timestamp": second})

                event = self.notifier.poll_since(self.cursor)
                if event is not None:
                    self.cursor = event["timestamp"]
                    yield format_sse(event)

                self.sleep(self.poll_interval)
        finally:
            # Reached on stop, on disconnect, or when the server closes the
            # generator after a failed write
            self.state = CLOSED
            logger.info(f"🔌 SSE disconnected: {self.client_id}")
