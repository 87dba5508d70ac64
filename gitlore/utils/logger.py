"""Logging configuration"""

import logging
import sys
from typing import Optional

# Third-party loggers that log every request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore")


def setup_logger(
    name: str,
    level: int = logging.INFO,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up a console logger for an enrichment run

    Calling it again only adjusts the level, so the CLI can be invoked
    repeatedly in one process without duplicating output.

    Args:
        name: Logger name ("gitlore" configures the whole package)
        level: Logging level
        format_string: Custom format string

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Per-request lines from the HTTP stack only in debug runs
    for chatty in CHATTY_LOGGERS:
        logging.getLogger(chatty).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        format_string or '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(handler)

    return logger
