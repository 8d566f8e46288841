from flask import Flask, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException
load_dotenv()
from .config import Config
from .exceptions import DashboardError
from .extensions import init_extensions
from .utils.logger import configure_logger, logger
from . import extensions


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logger(app.config["LOG_LEVEL"])
    init_extensions(app)

    # Blueprints
    from .routes.devices import devices_bp
    from .routes.online import online_bp
    from .routes.realtime import realtime_bp
    from .routes.server import server_bp
    from .routes.legacy import legacy_bp

    app.register_blueprint(devices_bp, url_prefix="/api")
    app.register_blueprint(online_bp, url_prefix="/api")
    app.register_blueprint(realtime_bp, url_prefix="/api")
    app.register_blueprint(server_bp, url_prefix="/api")
    app.register_blueprint(legacy_bp)

    @app.errorhandler(DashboardError)
    def handle_dashboard_error(e):
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__}: {e.message}")
        else:
            logger.warning(f"Rejected request: {e.message}")
        return jsonify({"success": False, "message": e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"success": False, "message": e.description}), e.code

    # Health check
    @app.route("/health")
    def health():
        return {
            "status": "ok",
            "device_count": extensions.device_store.count()
        }

    logger.info(f"Dashboard server ready, data in {app.config['DATA_DIR']}")
    return app
