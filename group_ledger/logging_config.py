"""
Logging setup.

The whole app logs through loguru's shared `logger`. This
module only decides where the records go and how they look.
"""

import sys

from loguru import logger

LOG_FORMAT = "{time:HH:mm:ss} | {level:<7} | {name}:{line} | {message}"


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
