"""Shared utilities for ruc."""

from ._duration import format_duration, parse_duration
from ._logging import LogFormatType, create_logger

__all__ = [
    "LogFormatType",
    "create_logger",
    "format_duration",
    "parse_duration",
]
