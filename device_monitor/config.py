import os


class Config:
    DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.getcwd(), "data"))

    # Seconds without a report before a device drops off the dashboard
    DEVICE_TIMEOUT = int(os.getenv("DEVICE_TIMEOUT", "30"))
    # Seconds without a heartbeat before a viewer stops counting as online
    ONLINE_TIMEOUT = int(os.getenv("ONLINE_TIMEOUT", "60"))

    SSE_HEARTBEAT_INTERVAL = int(os.getenv("SSE_HEARTBEAT_INTERVAL", "3"))
    SSE_POLL_INTERVAL = float(os.getenv("SSE_POLL_INTERVAL", "0.5"))

    TIMEZONE = os.getenv("TIMEZONE", "Asia/Shanghai")

    BG_IMAGE_DIR = os.getenv("BG_IMAGE_DIR", os.path.join(os.getcwd(), "webimg"))
    BG_VIDEO_DIR = os.getenv("BG_VIDEO_DIR", os.path.join(os.getcwd(), "webmp4"))

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
