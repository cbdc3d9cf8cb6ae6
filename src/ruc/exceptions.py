"""ruc exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class RucError(Exception):
    """Base exception for ruc errors."""


class DurationError(RucError, ValueError):
    """Raised when a duration string cannot be parsed.

    Attributes:
        value: The string that failed to parse.
    """

    def __init__(self, message: str, *, value: str) -> None:
        """Initialize with error message and the offending value."""
        super().__init__(message)
        self.value: str = value


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(RucError):
    """Base exception for supervisor errors."""


class LaunchError(SupervisorError):
    """Raised when the supervised program cannot be started.

    A launch error is fatal to the supervisor: a command that cannot be
    executed will not fix itself on the next cycle.

    Attributes:
        command: The command that failed to start.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and launch context.

        Args:
            message: Human-readable error message.
            command: The command that failed to start.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.command: tuple[str, ...] = tuple(command)
        self.cause: Exception | None = cause
