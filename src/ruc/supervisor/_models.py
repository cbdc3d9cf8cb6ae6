"""Data models for the supervisor.

This module defines the core data types for run-under-control supervision:
- SupervisorConfig: Immutable cycle configuration
- CycleState: States of a single supervised run cycle
- SupervisorEventType: Types of supervisor events
- SupervisorEvent: Immutable event records
- ExitOutcome: Result of a completed cycle
"""

import signal
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RUN_PERIOD: float = 60.0
DEFAULT_GRACE_PERIOD: float = 10.0


class SupervisorConfig(BaseModel):
    """Configuration for a supervised program.

    Attributes:
        command: Executable and arguments of the supervised program.
        run_period: Seconds to let the program run before asking it to exit.
        grace_period: Seconds between the graceful request and the forced kill.
        stop_on_signal: Stop cycling once a cycle ends after a shutdown request.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    command: tuple[str, ...] = Field(min_length=1)
    run_period: float = Field(default=DEFAULT_RUN_PERIOD, ge=0)
    grace_period: float = Field(default=DEFAULT_GRACE_PERIOD, ge=0)
    stop_on_signal: bool = False

    @field_validator("command")
    @classmethod
    def _check_program(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value[0]:
            msg = "program must not be empty"
            raise ValueError(msg)
        return value

    @property
    def program(self) -> str:
        """Return the executable of the supervised program."""
        return self.command[0]


class CycleState(StrEnum):
    """States of a single supervised run cycle.

    A cycle moves strictly forward through these states and never
    re-enters one:
    - LAUNCHING: Child process is being spawned
    - RUNNING: Child is running, waiting for the run period to elapse
    - TERMINATING: SIGTERM sent, waiting for the grace period to elapse
    - KILLING: SIGKILL sent, waiting for the child to be reaped
    - COMPLETE: Child has exited and been reaped
    """

    LAUNCHING = "launching"
    RUNNING = "running"
    TERMINATING = "terminating"
    KILLING = "killing"
    COMPLETE = "complete"


class SupervisorEventType(StrEnum):
    """Types of supervisor events.

    Events are emitted for every observable transition:
    - STARTING: A new cycle is about to launch the child
    - STARTED: Child process has been spawned
    - TERMINATING: Graceful termination was requested
    - KILLING: Forced kill was requested
    - SIGNAL_FAILED: A signal could not be delivered to the child
    - EXITED: Child exited with status 0
    - CRASHED: Child exited with non-zero status or was killed
    - LAUNCH_FAILED: Child could not be started
    - SIGNAL_RECEIVED: Supervisor received its first shutdown signal
    - FORCED_EXIT: Supervisor received a second signal and is exiting
    - STOPPED: Supervisor stopped cycling after a shutdown request
    """

    STARTING = "starting"
    STARTED = "started"
    TERMINATING = "terminating"
    KILLING = "killing"
    SIGNAL_FAILED = "signal_failed"
    EXITED = "exited"
    CRASHED = "crashed"
    LAUNCH_FAILED = "launch_failed"
    SIGNAL_RECEIVED = "signal_received"
    FORCED_EXIT = "forced_exit"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class SupervisorEvent:
    """Immutable supervisor event.

    Attributes:
        event_type: Type of event.
        timestamp: ISO 8601 formatted timestamp.
        cycle: Number of the cycle the event belongs to, if any.
        pid: Process ID of the child, if applicable.
        exit_code: Exit code if the child terminated.
        signal: Name of the signal involved, if any.
        message: Optional human-readable message.
    """

    event_type: SupervisorEventType
    timestamp: str
    cycle: int | None = None
    pid: int | None = None
    exit_code: int | None = None
    signal: str | None = None
    message: str | None = None


def format_signal(signum: int) -> str:
    """Return the symbolic name of a signal number, e.g. ``SIGTERM``."""
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"


@dataclass(frozen=True, slots=True)
class ExitOutcome:
    """Result of a completed supervision cycle.

    Attributes:
        pid: Process ID the child ran under.
        returncode: Exit status as reported by the OS. Negative values mean
            the child was killed by that signal (POSIX).
        terminate_sent: Whether a graceful termination request was sent.
        kill_sent: Whether a forced kill was sent.
        cancelled: Whether termination was triggered by a shutdown request.
        started_at: ISO 8601 timestamp of the launch.
        ended_at: ISO 8601 timestamp of the observed exit.
    """

    pid: int
    returncode: int
    terminate_sent: bool = False
    kill_sent: bool = False
    cancelled: bool = False
    started_at: str | None = None
    ended_at: str | None = None

    @property
    def success(self) -> bool:
        """Return True if the child exited with status 0."""
        return self.returncode == 0

    @property
    def signal_name(self) -> str | None:
        """Return the name of the signal that killed the child, if any."""
        if self.returncode >= 0:
            return None
        return format_signal(-self.returncode)
