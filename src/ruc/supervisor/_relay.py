"""Relay of host termination signals into the supervision loop.

The first SIGINT or SIGTERM raises the shared cancellation token so the
running cycle starts its graceful shutdown. A second signal of either kind
exits the supervisor immediately, even while a cycle waits on a child that
refuses to die.
"""

from __future__ import annotations

import os
import signal
from collections.abc import Callable
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc

from ._models import SupervisorEventType, format_signal
from ._output import emit_event

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._protocol import EventSink
    from ._token import CancellationToken

ExitFunc = Callable[[int], object]

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


def forced_exit_code(signum: int) -> int:
    """Return the process exit status used after a forced exit."""
    return 128 + signum


@final
class SignalRelay:
    """Translate host termination signals into cancellation.

    Attributes:
        received: Number of signals received so far.
    """

    __slots__ = ("_exit_func", "_output_sink", "_signals", "_token", "received")

    def __init__(
        self,
        token: CancellationToken,
        output_sink: EventSink,
        *,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
        exit_func: ExitFunc = os._exit,
    ) -> None:
        """Initialize the relay.

        Args:
            token: Token raised on the first signal.
            output_sink: Sink for relay events.
            signals: Signals to listen for.
            exit_func: Called with the exit status on the second signal.
                Must not return in production use.
        """
        self._token = token
        self._output_sink = output_sink
        self._signals = tuple(signals)
        self._exit_func = exit_func
        self.received = 0

    async def run(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Listen for signals until the second one forces an exit.

        Reports readiness through ``task_status`` once the signal handlers
        are installed, so callers can start cycles only after that.
        """
        with anyio.open_signal_receiver(*self._signals) as received:
            task_status.started()
            async for signum in received:
                self.received += 1
                name = format_signal(signum)

                if self.received == 1:
                    await emit_event(
                        self._output_sink,
                        SupervisorEventType.SIGNAL_RECEIVED,
                        signal=name,
                        message=f"Got {name} ({int(signum)}) signal, shutting down...",
                    )
                    _ = self._token.cancel(f"received {name}")
                    continue

                await emit_event(
                    self._output_sink,
                    SupervisorEventType.FORCED_EXIT,
                    signal=name,
                    message=f"Got {name} ({int(signum)}) signal, exiting!",
                )
                self._exit_func(forced_exit_code(signum))
                return
