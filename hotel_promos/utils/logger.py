"""
Logging setup for hotel_promos.

One package logger, configured from LOG_LEVEL.
"""
import logging
import sys

from hotel_promos.config import LOG_LEVEL

logger = logging.getLogger("hotel_promos")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

# без дублей в root
logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"hotel_promos.{name}")
    return logger
