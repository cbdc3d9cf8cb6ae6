"""ruc: run a program under control, restarting it on a fixed schedule."""

__version__ = "0.1.0"
