"""Logging configuration for the proxy."""

import logging
import sys

LOGGER_NAME = "movement-proxy"


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Set up logging with proper handlers and formatters."""
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Propagate to root so pytest's caplog and host handlers still see records
    logger.propagate = True

    return logger


# Global logger instance
logger = setup_logging()
