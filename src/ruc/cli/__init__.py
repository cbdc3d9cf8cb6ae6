"""The ruc command-line interface."""

from ._app import build_event_sink, create_app, main
from ._argv import split_argv

__all__ = ["build_event_sink", "create_app", "main", "split_argv"]
