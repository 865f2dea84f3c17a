"""
Structured logging configuration using structlog.

All logging is event-style: logger.info("event_name", key=value)
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(log_level: str = "INFO", cache_loggers: bool = True) -> None:
    """
    Configure structlog with JSON output, timestamps, and log levels.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        cache_loggers: Freeze module loggers on first use. Leave off where the
            configuration is swapped at runtime, e.g. under log capture.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)
