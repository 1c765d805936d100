"""Logging configuration for bashgpt."""

import logging
import sys

import structlog


def setup_logging(command_name: str, log_level: str = "WARNING") -> None:
    """Configure structured logging for the CLI.

    Everything goes to stderr; stdout carries the suggested command text that
    the autocomplete script reads back.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if level == logging.DEBUG
            else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    logger = structlog.get_logger(command_name)
    logger.debug(
        "Logging configured",
        command=command_name,
        log_level=logging.getLevelName(level),
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
