import threading


class ChangeNotifier:
    """
    Single-slot "latest event" cell.

    ``publish()`` replaces the retained event; ``poll_since()`` hands it out
    only to readers whose cursor is older. Publishes between two polls
    collapse into the last one, so a slow stream never builds a backlog.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._event = None

    def publish(self, event):
        with self._lock:
            event = dict(event)
            timestamp = round(float(event.get("timestamp") or 0), 3)
            # Keep timestamps strictly increasing so readers can compare with ">"
            if self._event is not None and timestamp <= self._event["timestamp"]:
                timestamp = round(self._event["timestamp"] + 0.001, 3)
            event["timestamp"] = timestamp
            self._event = event
            return dict(event)

    def poll_since(self, cursor):
        with self._lock:
            if self._event is None or self._event["timestamp"] <= cursor:
                return None
            return dict(self._event)

    def latest_timestamp(self):
        with self._lock:
            return self._event["timestamp"] if self._event is not None else 0
