"""Supervisor package for running a program under control.

This package launches a single program, lets it run for a configured
period, then restarts it: first with a graceful termination request,
escalating to a forced kill after a grace period. Host termination signals
are relayed to the running cycle with the same escalation, and a second
signal exits the supervisor immediately.

Key Components:
    - SupervisorConfig: Immutable run/grace/command configuration
    - CycleState: States of a single run cycle
    - ExitOutcome: Result of a completed cycle
    - SupervisorEvent: Lifecycle event records
    - EventSink: Protocol for event consumption
    - ConsoleEventSink: Rich console event output
    - StructlogEventSink: Structured log event output
    - CancellationToken: Set-once shutdown flag
    - SignalRelay: SIGINT/SIGTERM to cancellation bridge
    - CycleRunner: One launch/run/terminate/kill cycle
    - Supervisor: The restart loop

Example:
    >>> from ruc.supervisor import Supervisor, SupervisorConfig
    >>> config = SupervisorConfig(command=("python", "worker.py"), run_period=3600)
    >>> await Supervisor(config).run()  # Blocks until a launch error
"""

from ._cycle import CycleRunner, wait_first
from ._models import (
    CycleState,
    ExitOutcome,
    SupervisorConfig,
    SupervisorEvent,
    SupervisorEventType,
)
from ._output import ConsoleEventSink, StructlogEventSink, emit_event
from ._protocol import EventSink
from ._relay import SignalRelay, forced_exit_code
from ._supervisor import Supervisor
from ._token import CancellationToken

__all__ = [
    "CancellationToken",
    "ConsoleEventSink",
    "CycleRunner",
    "CycleState",
    "EventSink",
    "ExitOutcome",
    "SignalRelay",
    "StructlogEventSink",
    "Supervisor",
    "SupervisorConfig",
    "SupervisorEvent",
    "SupervisorEventType",
    "emit_event",
    "forced_exit_code",
    "wait_first",
]
