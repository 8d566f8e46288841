import json
import time

from flask import Blueprint, jsonify, request

import device_monitor.extensions as extensions
from device_monitor.exceptions import PersistenceError, ValidationError
from device_monitor.services.ingest_service import ingest_report
from device_monitor.utils.client_ip import get_client_ip
from device_monitor.utils.logger import logger

devices_bp = Blueprint("devices", __name__)


def read_json_object():
    """Decode the request body as a non-empty JSON object or raise ValidationError."""
    raw = request.get_data(as_text=True)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e.msg}")
    except (ValueError, RecursionError) as e:
        # Oversized integers and very deep nesting fail outside the decoder
        raise ValidationError(f"Invalid JSON: {type(e).__name__}")

    if not data or not isinstance(data, dict):
        raise ValidationError("Invalid data format")
    return data


# GET is routed here too so the wrong method gets a JSON envelope, not a bare 405 page
@devices_bp.route("/status", methods=["GET", "POST"])
def status_update():
    if request.method != "POST":
        raise ValidationError("Only POST requests are supported", status_code=405)

    data = read_json_object()

    try:
        ingest_report(data, get_client_ip(), extensions.device_store, extensions.notifier)
    except PersistenceError as e:
        logger.error(f"Status update not saved: {e}")
        return jsonify({"success": False, "message": "Failed to save device data"}), 500

    return jsonify({"success": True, "message": "Status updated"})


@devices_bp.route("/devices", methods=["GET"])
def get_devices():
    try:
        devices, removed = extensions.device_store.prune_expired()
    except PersistenceError as e:
        logger.error(f"Device cleanup failed: {e}")
        return jsonify({"success": False, "message": "Failed to save device data"}), 500

    return jsonify({
        "success": True,
        "devices": devices,
        "count": len(devices),
        "timestamp": int(time.time())
    })
