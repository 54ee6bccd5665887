"""
Logging configuration
"""
import logging
import sys
from jourj.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging() -> logging.Logger:
    """Route the jourj logger tree to stdout; called once when the app is built"""
    settings = get_settings()
    logger = logging.getLogger("jourj")

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    return logger
