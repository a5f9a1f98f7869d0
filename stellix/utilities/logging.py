"""Logging setup for Stellix.

Console plus two rotating files under Config.LOG_DIR: stellix.log (DEBUG and
up) and stellix_errors.log (ERROR and up). Modules log through
logging.getLogger(__name__) with a bracketed tag, e.g. "[CATALOG] ...".
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from stellix.config import Config

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(log_dir: str | None = None, log_level: str | None = None) -> None:
    """Configure the root logger once per process.

    Args:
        log_dir: Directory for log files (default: Config.LOG_DIR)
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: Config.LOG_LEVEL)
    """
    global _configured
    if _configured:
        return

    log_dir = log_dir or Config.LOG_DIR
    level = getattr(logging, (log_level or Config.LOG_LEVEL).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    try:
        os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "stellix.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)

        error_handler = RotatingFileHandler(
            os.path.join(log_dir, "stellix_errors.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=3,
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(error_handler)
    except OSError as e:
        root_logger.warning("[LOGGING] File logging disabled, cannot use %s: %s", log_dir, e)

    # Per-request lines from the HTTP client are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True
    root_logger.info("[LOGGING] Log level %s, directory %s", logging.getLevelName(level), log_dir)
