from flask import Blueprint, jsonify, request

import device_monitor.extensions as extensions
from device_monitor.exceptions import ValidationError
from device_monitor.utils.client_ip import get_client_ip

online_bp = Blueprint("online", __name__)


@online_bp.route("/update_online", methods=["GET", "POST"])
def update_online():
    if request.method != "POST":
        raise ValidationError("Only POST requests are supported", status_code=405)

    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid data")

    session_id = data.get("sessionId")
    if session_id is None or not str(session_id).strip():
        raise ValidationError("Missing sessionId")

    online = extensions.presence.heartbeat(
        str(session_id).strip(),
        get_client_ip(),
        request.headers.get("User-Agent", "Unknown")
    )
    return jsonify({"success": True, "onlineUsers": online})


@online_bp.route("/get_online_users", methods=["GET"])
def get_online_users():
    return jsonify({"success": True, "onlineUsers": extensions.presence.count()})
