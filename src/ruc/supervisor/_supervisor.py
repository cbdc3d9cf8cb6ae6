"""Supervision loop restarting one program forever.

This module provides the Supervisor class that owns the shared
cancellation token and signal relay and runs one CycleRunner after
another using anyio for structured concurrency.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, final

import anyio

from ruc.exceptions import LaunchError

from ._cycle import CycleRunner
from ._models import SupervisorEventType
from ._output import ConsoleEventSink, emit_event
from ._relay import SignalRelay
from ._token import CancellationToken

if TYPE_CHECKING:
    from ._models import ExitOutcome, SupervisorConfig
    from ._protocol import EventSink
    from ._relay import ExitFunc


@final
class Supervisor:
    """Restarts a single program on a fixed schedule.

    Each cycle launches the program, lets it run for the run period, asks it
    to exit with SIGTERM and kills it after the grace period. A new cycle
    starts as soon as the previous child has been reaped. The loop only ends
    on a launch error, or after a shutdown request when ``stop_on_signal``
    is configured.
    """

    __slots__ = (
        "_current",
        "_cycles",
        "_exit_func",
        "_last_outcome",
        "_output_sink",
        "_relay_signals",
        "_token",
        "config",
    )

    def __init__(
        self,
        config: SupervisorConfig,
        output_sink: EventSink | None = None,
        *,
        relay_signals: bool = True,
        exit_func: ExitFunc = os._exit,
    ) -> None:
        """Initialize the supervisor.

        Args:
            config: Configuration for the supervised program.
            output_sink: Sink for events. Uses ConsoleEventSink if None.
            relay_signals: Listen for SIGINT and SIGTERM while running.
            exit_func: Called by the signal relay on a second signal.
        """
        self.config = config
        self._output_sink: EventSink = output_sink or ConsoleEventSink()
        self._relay_signals = relay_signals
        self._exit_func = exit_func
        self._token: CancellationToken | None = None
        self._current: CycleRunner | None = None
        self._last_outcome: ExitOutcome | None = None
        self._cycles = 0

    @property
    def cycles(self) -> int:
        """Return the number of cycles started so far."""
        return self._cycles

    @property
    def token(self) -> CancellationToken | None:
        """Return the cancellation token of the active run, if any."""
        return self._token

    @property
    def current(self) -> CycleRunner | None:
        """Return the runner of the cycle in progress, if any."""
        return self._current

    @property
    def last_outcome(self) -> ExitOutcome | None:
        """Return the outcome of the most recently completed cycle."""
        return self._last_outcome

    async def _run_cycles(self, token: CancellationToken) -> None:
        """Run cycles back to back until a launch error or a requested stop.

        Raises:
            LaunchError: If the program cannot be started.
        """
        while True:
            self._cycles += 1
            self._current = CycleRunner(
                self.config,
                token,
                self._output_sink,
                cycle=self._cycles,
            )
            try:
                self._last_outcome = await self._current.run()
            finally:
                self._current = None

            if self.config.stop_on_signal and token.cancelled:
                await emit_event(
                    self._output_sink,
                    SupervisorEventType.STOPPED,
                    cycle=self._cycles,
                    message="Stopped after shutdown request",
                )
                return

    async def run(self) -> None:
        """Run the supervisor until the loop ends.

        The signal relay is installed before the first cycle starts and runs
        for as long as the loop does.

        Raises:
            LaunchError: If the program cannot be started.
        """
        token = CancellationToken()
        self._token = token
        launch_error: LaunchError | None = None

        async with anyio.create_task_group() as tg:
            if self._relay_signals:
                relay = SignalRelay(token, self._output_sink, exit_func=self._exit_func)
                await tg.start(relay.run)

            try:
                await self._run_cycles(token)
            except LaunchError as e:
                launch_error = e
            finally:
                tg.cancel_scope.cancel()

        if launch_error is not None:
            raise launch_error

    async def shutdown(self) -> None:
        """Request a graceful shutdown of the running cycle.

        Behaves like the first host signal: the running child is asked to
        exit and the grace period is honored.
        """
        if self._token is not None:
            _ = self._token.cancel("shutdown requested")
