"""
Core log utilities for pyqt-searchtable.

Attaches a file handler to the package logger when the configuration names
a log directory, and reports where the package is currently logging.
"""

import logging
from pathlib import Path
from typing import Optional

from pyqt_searchtable.protocols.search_table_config import SearchTableConfig, get_search_table_config

PACKAGE_LOGGER_NAME = "pyqt_searchtable"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(config: Optional[SearchTableConfig] = None) -> logging.Logger:
    """
    Apply the configured level to the package logger and attach a file handler.

    Calling this twice with the same log path does not add a second handler.

    Returns:
        The package logger
    """
    config = config or get_search_table_config()
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(config.log_level.upper())

    if config.log_dir:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / config.log_filename
        if get_current_log_file_path() != str(log_path.absolute()):
            handler = logging.FileHandler(log_path)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            package_logger.addHandler(handler)
            logger.info(f"Logging to {log_path}")

    return package_logger


def get_current_log_file_path() -> Optional[str]:
    """Return the file the package logger writes to, or None."""
    for handler in logging.getLogger(PACKAGE_LOGGER_NAME).handlers:
        if isinstance(handler, logging.FileHandler):
            return handler.baseFilename
    return None
