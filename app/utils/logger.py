"""Logging utilities for scripts and the API.

Provides a structlog logger configured for JSON output, or for readable
console output when running locally.
"""

import logging
import os
import sys

import structlog
from structlog.stdlib import BoundLogger


def configure_logger(level: int = logging.INFO) -> None:
    """Configure structlog processors and rendering.

    Processors, in order: context variables merging, log level, stack info,
    exception info and ISO timestamps. Output is JSON except in the ``local``
    environment, where the console renderer is used.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if os.getenv("ENVIRONMENT") == "local"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: The name of the logger, typically __name__

    Returns:
        A configured structlog BoundLogger instance
    """
    configure_logger()
    return structlog.get_logger(name)
