"""Structured logging configuration."""

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """
    Configure structured logging for applications using the SDK.

    The library itself only emits events through ``get_logger()``
    and never calls this on import.

    Args:
        level: Logging level (default: INFO)
        output: Output stream (default: stderr)
        json_format: Render JSON lines instead of the console renderer
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a bound logger instance.

    Args:
        name: Optional logger name

    Returns:
        Bound logger instance
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
