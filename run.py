# Device Dashboard Server - local entry point (production runs through gunicorn_config.py)
from gevent import monkey
monkey.patch_all()

import os

from gevent.pywsgi import WSGIServer

from device_monitor import create_app
from device_monitor.extensions import shutdown
from device_monitor.utils.logger import logger

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", "5050"))
    logger.info(f"Server URL: http://localhost:{port}")
    logger.info(f"Event stream: http://localhost:{port}/api/events")
    logger.info(f"Data directory: {app.config['DATA_DIR']}")

    server = WSGIServer(("0.0.0.0", port), app, log=None)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        shutdown.set()
        server.stop(timeout=1)
