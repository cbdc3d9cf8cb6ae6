"""Protocol definitions for the supervisor.

This module defines the interface that decouples the supervision core
from the way its events are presented:
- EventSink: Protocol for consuming supervisor events
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ._models import SupervisorEvent


@runtime_checkable
class EventSink(Protocol):
    """Protocol for consuming supervisor events.

    EventSinks receive every transition of the supervision loop and the
    signal relay and can format, store, or display them. The protocol is
    async so sinks may perform non-blocking I/O.
    """

    async def write_event(self, event: SupervisorEvent) -> None:
        """Write a supervisor event.

        Args:
            event: The event to record.
        """
        ...
