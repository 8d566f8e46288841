import os
import threading

from flask_cors import CORS

from device_monitor.services.notifier import ChangeNotifier
from device_monitor.services.presence_service import PresenceTracker
from device_monitor.services.state_store import DeviceStore, SessionStore

device_store = None
session_store = None
presence = None
notifier = ChangeNotifier()
# Set on process stop so open event streams leave their loops
shutdown = threading.Event()


def init_extensions(app):
    global device_store, session_store, presence, notifier

    CORS(
        app,
        resources={r"/*": {
            "origins": app.config["CORS_ORIGINS"]
        }},
        allow_headers=["Content-Type", "Last-Event-ID"],
        methods=["GET", "POST", "OPTIONS"]
    )

    data_dir = app.config["DATA_DIR"]
    device_store = DeviceStore(
        os.path.join(data_dir, "devices.json"),
        timeout=app.config["DEVICE_TIMEOUT"],
        timezone_name=app.config["TIMEZONE"]
    )
    session_store = SessionStore(
        os.path.join(data_dir, "online_users.json"),
        timeout=app.config["ONLINE_TIMEOUT"]
    )
    presence = PresenceTracker(session_store)
    notifier = ChangeNotifier()
