from flask import Blueprint, current_app, jsonify, request

legacy_bp = Blueprint("legacy", __name__)

# Deployed phones and dashboards call api.php?action=<name>
ACTIONS = {
    "status": "devices.status_update",
    "devices": "devices.get_devices",
    "update_online": "online.update_online",
    "get_online_users": "online.get_online_users",
    "server_info": "server.server_info",
    "events": "realtime.events",
    "list_bg_files": "server.list_bg_files",
}


@legacy_bp.route("/api.php", methods=["GET", "POST"])
@legacy_bp.route("/api", methods=["GET", "POST"])
def dispatch_action():
    endpoint = ACTIONS.get(request.args.get("action", ""))
    if endpoint is None:
        return jsonify({"success": False, "message": "Unknown action"}), 400

    return current_app.view_functions[endpoint]()
