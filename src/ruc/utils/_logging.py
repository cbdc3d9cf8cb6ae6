"""Logging utilities for ruc.

This module provides a standalone structlog logger factory that writes
JSON-formatted or text-formatted logs to stderr or to any text stream.
Each logger is self-contained and does not modify global structlog
configuration.
"""

import logging
import sys
from os import getenv
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]


def _resolve_log_level(level: str | None = None) -> int:
    """Resolve the effective log level.

    Precedence: RUC_DEBUG (forces DEBUG), then ``level``, then
    RUC_LOG_LEVEL, then INFO. Unknown names fall back to INFO.
    """
    if getenv("RUC_DEBUG", None):
        return logging.DEBUG

    name = level if level is not None else getenv("RUC_LOG_LEVEL", "info")
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _build_processors(log_format: LogFormatType) -> list[structlog.typing.Processor]:
    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return processors


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
    stream: TextIO | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger for the supervisor.

    Every entry is flushed as soon as it is written. The caller owns
    ``stream`` and is responsible for closing it.

    Args:
        level: Optional log level string (debug, info, warning, error).
            RUC_DEBUG overrides it; RUC_LOG_LEVEL applies when it is None.
        log_format: Output format, either "json" or "text".
        stream: Text stream to write to (stderr by default).

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = _resolve_log_level(level)
    raw_logger = structlog.PrintLoggerFactory(file=stream or sys.stderr)()

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=_build_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )
