import os

# Gunicorn configuration settings
bind = "0.0.0.0:" + os.environ.get("PORT", "5050")
# One worker: device state, presence and the change notifier live in process memory
workers = 1
worker_class = "gevent"
timeout = 120
keepalive = 5
worker_connections = 1000
loglevel = "info"
accesslog = "-"
errorlog = "-"
proc_name = "device_dashboard_api"
preload_app = True
wsgi_app = "run:app"


def worker_exit(server, worker):
    from device_monitor.extensions import shutdown
    shutdown.set()
