# logger.py
import os
import logging
from logging.handlers import RotatingFileHandler

LOGGER_NAME = 'shop_pos'

# Default logging configuration
DEFAULT_CONFIG = {
    "level": "INFO",
    "file": "logs/shop_pos.log",
    "max_size": 1048576,  # 1MB
    "backup_count": 3
}

# Mapping of string log levels to logging constants
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL
}

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(config=None):
    """
    Set up the application logger. Every module logs under 'shop_pos.*',
    so handlers attached here receive catalog, cart and checkout records.
    """
    if config is None:
        config = {}

    # Merge with default config
    log_config = {**DEFAULT_CONFIG, **config.get("logging", {})}

    logger = logging.getLogger(LOGGER_NAME)
    level = LOG_LEVELS.get(str(log_config["level"]).upper(), logging.INFO)
    logger.setLevel(level)

    formatter = logging.Formatter(FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # An empty file setting disables file logging
    if not log_config["file"]:
        return logger

    try:
        # Ensure log directory exists
        log_dir = os.path.dirname(log_config["file"])
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config["file"],
            maxBytes=log_config["max_size"],
            backupCount=log_config["backup_count"]
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.error(f"Failed to set up file logging: {str(e)}")

    return logger


def configure_logger(config):
    """Reconfigure the logger with new settings."""
    logger = logging.getLogger(LOGGER_NAME)

    # Remove existing handlers
    for handler in logger.handlers[:]:  # Make a copy of the list
        logger.removeHandler(handler)
        handler.close()

    return setup_logger(config)
