import os
import platform
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request

import device_monitor.extensions as extensions
from device_monitor.exceptions import ValidationError

server_bp = Blueprint("server", __name__)

BACKGROUND_TYPES = {
    "images": ("BG_IMAGE_DIR", "webimg", {"jpg", "jpeg", "png", "gif", "webp"}),
    "videos": ("BG_VIDEO_DIR", "webmp4", {"mp4", "webm", "ogg"}),
}


@server_bp.route("/server_info", methods=["GET"])
def server_info():
    tz = extensions.device_store.tz
    return jsonify({
        "success": True,
        "info": {
            "status": "running",
            "server_time": datetime.now(tz).strftime("%Y-%m-%d %H:%M:%S"),
            "python_version": platform.python_version(),
            "online_devices": extensions.device_store.count(),
            "online_users": extensions.presence.count(),
            "server_software": request.environ.get("SERVER_SOFTWARE", "Unknown")
        }
    })


@server_bp.route("/list_bg_files", methods=["GET"])
def list_bg_files():
    file_type = request.args.get("type")
    if not file_type:
        raise ValidationError("Missing required parameter: type")
    if file_type not in BACKGROUND_TYPES:
        raise ValidationError("Invalid file type")

    config_key, url_prefix, allowed = BACKGROUND_TYPES[file_type]
    directory = current_app.config[config_key]

    files = []
    if os.path.isdir(directory):
        for name in sorted(os.listdir(directory)):
            ext = os.path.splitext(name)[1].lstrip(".").lower()
            if ext in allowed and os.path.isfile(os.path.join(directory, name)):
                files.append(f"{url_prefix}/{name}")

    return jsonify({"success": True, "files": files})
