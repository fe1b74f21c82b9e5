"""
Logging setup shared by the API process and the standalone click worker.
"""

import logging

from snaplink_app.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the package logger once.

    Handlers are attached to the ``snaplink_app`` logger (not the root logger)
    so that uvicorn and pytest keep control of their own output.
    """
    logger = logging.getLogger("snaplink_app")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(settings.log_level.upper())
    return logger
