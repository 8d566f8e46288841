import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | [%(filename)s:%(lineno)d] | %(message)s"

logger = logging.getLogger("device_monitor")


def configure_logger(level=None):
    """Attach the console handler once and apply the configured level."""
    level = level or os.getenv("LOG_LEVEL", "INFO")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


configure_logger()
