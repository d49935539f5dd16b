import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from taskpilot.config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_shared_handler: Optional[logging.Handler] = None


def _build_handler() -> logging.Handler:
    """One rotating file handler shared by every taskpilot logger."""
    try:
        os.makedirs(Config.LOG_DIR, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            Config.LOG_FILE,
            maxBytes=Config.LOG_MAX_BYTES,
            backupCount=Config.LOG_BACKUP_COUNT,
        )
    except OSError:
        # Unwritable working directory
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logger(name: str) -> logging.Logger:
    """
    Returns a logger writing to the rotating taskpilot log file.

    Nothing is sent to the terminal; the views own it.
    """
    global _shared_handler

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if _shared_handler is None:
        _shared_handler = _build_handler()

    logger.setLevel(getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))
    logger.addHandler(_shared_handler)
    logger.propagate = False
    return logger
