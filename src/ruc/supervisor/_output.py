"""Event sink implementations for the supervisor.

This module provides concrete implementations of the EventSink protocol
and the helper the supervision core uses to emit events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import pendulum
from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._models import SupervisorEvent, SupervisorEventType

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import EventSink

LOG_PREFIX = "ruc:"


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return pendulum.now("UTC").to_iso8601_string()


async def emit_event(
    sink: EventSink,
    event_type: SupervisorEventType,
    *,
    cycle: int | None = None,
    pid: int | None = None,
    exit_code: int | None = None,
    signal: str | None = None,
    message: str | None = None,
) -> None:
    """Build a timestamped event and write it to a sink.

    Sink failures are contained here so that presentation problems never
    interrupt supervision.

    Args:
        sink: Destination for the event.
        event_type: Type of event to emit.
        cycle: Cycle number the event belongs to.
        pid: Process ID of the child.
        exit_code: Exit code if the child terminated.
        signal: Name of the signal involved.
        message: Optional message for the event.
    """
    event = SupervisorEvent(
        event_type=event_type,
        timestamp=_get_timestamp(),
        cycle=cycle,
        pid=pid,
        exit_code=exit_code,
        signal=signal,
        message=message,
    )
    try:  # noqa: SIM105
        await sink.write_event(event)
    except Exception:  # noqa: BLE001, S110
        # Sink errors should not crash the supervisor
        pass


def _local_time(timestamp: str) -> str:
    """Render an ISO 8601 timestamp as local wall-clock time."""
    parsed = pendulum.parse(timestamp)
    if not isinstance(parsed, pendulum.DateTime):
        return timestamp
    return parsed.in_timezone(pendulum.local_timezone()).format("HH:mm:ss")


@final
class ConsoleEventSink:
    """Event sink that writes one styled line per event to stderr.

    Lines look like ``ruc: 15:04:05 [3] STARTED (pid=4242) - message`` with
    color coding per event type.
    """

    __slots__ = ("_console", "_event_styles")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the event sink.

        Args:
            console: Rich Console instance for output. If None, writes to stderr.
        """
        self._console = console or Console(stderr=True)
        self._event_styles: dict[SupervisorEventType, Style] = {
            SupervisorEventType.STARTING: Style(dim=True),
            SupervisorEventType.STARTED: Style(color="green", bold=True),
            SupervisorEventType.TERMINATING: Style(color="yellow"),
            SupervisorEventType.KILLING: Style(color="red"),
            SupervisorEventType.SIGNAL_FAILED: Style(color="magenta"),
            SupervisorEventType.EXITED: Style(color="green"),
            SupervisorEventType.CRASHED: Style(color="red", bold=True),
            SupervisorEventType.LAUNCH_FAILED: Style(color="red", bold=True),
            SupervisorEventType.SIGNAL_RECEIVED: Style(color="cyan", bold=True),
            SupervisorEventType.FORCED_EXIT: Style(color="red", bold=True),
            SupervisorEventType.STOPPED: Style(color="cyan"),
        }

    async def write_event(self, event: SupervisorEvent) -> None:
        """Write a supervisor event as a single formatted line.

        Args:
            event: The event to record.
        """
        style = self._event_styles.get(event.event_type, Style())

        text = Text()
        _ = text.append(f"{LOG_PREFIX} ", style=Style(color="blue", bold=True))
        _ = text.append(_local_time(event.timestamp), style=Style(dim=True))
        _ = text.append(" ")

        if event.cycle is not None:
            _ = text.append(f"[{event.cycle}] ", style=Style(color="blue"))

        _ = text.append(event.event_type.value.upper(), style=style)

        if event.pid is not None:
            _ = text.append(f" (pid={event.pid})", style=Style(dim=True))

        if event.exit_code is not None:
            _ = text.append(f" exit_code={event.exit_code}", style=Style(dim=True))

        if event.message:
            _ = text.append(f" - {event.message}", style=style)

        self._console.print(text, soft_wrap=True, highlight=False)


@final
class StructlogEventSink:
    """Event sink that writes events as structured log entries.

    Each event becomes one log entry named after its event type. Lifecycle
    events are logged at info level, recoverable problems at warning, launch
    failures at error and forced exits at critical.
    """

    __slots__ = ("_logger",)

    _levels: dict[SupervisorEventType, str] = {  # noqa: RUF012
        SupervisorEventType.SIGNAL_FAILED: "warning",
        SupervisorEventType.CRASHED: "warning",
        SupervisorEventType.LAUNCH_FAILED: "error",
        SupervisorEventType.FORCED_EXIT: "critical",
    }

    def __init__(self, logger: FilteringBoundLogger) -> None:
        """Initialize the event sink.

        Args:
            logger: Structured logger to write entries to.
        """
        self._logger = logger

    async def write_event(self, event: SupervisorEvent) -> None:
        """Write a supervisor event as a structured log entry.

        Args:
            event: The event to record.
        """
        fields: dict[str, object] = {
            "event_time": event.timestamp,
            "cycle": event.cycle,
            "pid": event.pid,
            "exit_code": event.exit_code,
            "signal": event.signal,
            "message": event.message,
        }
        level = self._levels.get(event.event_type, "info")
        log = getattr(self._logger, level)
        log(
            event.event_type.value,
            **{key: value for key, value in fields.items() if value is not None},
        )
