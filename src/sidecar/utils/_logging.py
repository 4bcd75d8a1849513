"""Logging utilities for sidecar.

This module provides a standalone structlog logger factory that writes
JSON-formatted or text-formatted logs to a stream. The logger is
self-contained and does not modify global structlog configuration, so it
can be injected into a Supervisor without touching process-wide state.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks SIDECAR_DEBUG first (sets DEBUG if present), then SIDECAR_LOG_LEVEL.
    Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("SIDECAR_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("SIDECAR_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, SIDECAR_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("SIDECAR_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    stream: TextIO | None = None,
) -> FilteringBoundLogger:
    """Create a standalone structlog logger writing to a stream.

    The log level is determined by (in order of precedence):
    1. SIDECAR_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. SIDECAR_LOG_LEVEL environment variable
    4. Default: INFO

    Args:
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        stream: Destination stream. Defaults to stderr so that the main
            process keeps stdout to itself.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = (
        _log_level_from_string(level, respect_env=True)
        if level is not None
        else _get_log_level()
    )

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)
    raw_logger = structlog.WriteLoggerFactory(
        file=stream if stream is not None else sys.stderr
    )()

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )
