"""
Logging configuration for production use.

Console plus a size-rotated file per service under `logs_dir`, levels taken
from the settings. Modules log through logging.getLogger(__name__) and
propagate to the package root logger configured here.
"""

import logging
import logging.handlers
from typing import Optional

from .config import Config, config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUPS = 5


def setup_logging(logger_name: str = "src", settings: Optional[Config] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        logger_name: Logger to configure; the default is the package root
        settings: Settings to read level, logs_dir and service_name from
            (the module-level config when omitted)

    Returns:
        Configured logger instance. Already configured loggers are returned
        untouched.
    """
    settings = settings or config
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    settings.logs_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        settings.logs_dir / f"{settings.service_name}.log",
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


# Package root logger
logger = setup_logging()
