"""Structured logging configuration using structlog."""

import logging
import sys
from typing import TextIO

import structlog

LOGGER_NAME = "swapnav"


def setup_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route swapnav's structlog events through the ``swapnav`` stdlib logger.

    Only the ``swapnav`` logger gets a handler, so a host application's own
    logging setup is left alone. Calling this again replaces the handler.
    """
    stream = stream or sys.stderr
    renderer: structlog.types.Processor
    if json_output or not stream.isatty():
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger(LOGGER_NAME)
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.propagate = False


def setup_logging_from_settings() -> None:
    """Configure logging from ``SWAPNAV_LOG_LEVEL`` / ``SWAPNAV_JSON_LOGS``."""
    from swapnav.config.settings import get_settings

    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_output=settings.json_logs)
