# ABOUTME: structlog setup shared by the CLI and the web app.
# ABOUTME: Filters by the configured level and renders to stderr, leaving stdout for output.

import logging
import sys

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with a level filter and a console renderer."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
