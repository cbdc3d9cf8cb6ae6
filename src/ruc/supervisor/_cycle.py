"""Single supervised run cycle.

This module provides the CycleRunner class that launches the supervised
program once and escalates from a graceful termination request to a forced
kill according to the configured run and grace periods.
"""

from __future__ import annotations

import signal
import subprocess
import sys
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc

from ruc.exceptions import LaunchError
from ruc.utils import format_duration

from ._models import CycleState, ExitOutcome, SupervisorEventType, format_signal
from ._output import _get_timestamp, emit_event

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ._models import SupervisorConfig
    from ._protocol import EventSink
    from ._token import CancellationToken


async def wait_first(
    timeout: float,
    *waiters: Callable[[], Awaitable[object]],
) -> None:
    """Wait until ``timeout`` elapses or any of ``waiters`` completes.

    The remaining waiters are cancelled as soon as one of them finishes.
    With no waiters this simply sleeps for ``timeout``.

    Args:
        timeout: Maximum number of seconds to wait. ``math.inf`` waits forever.
        waiters: Zero-argument async callables to race.
    """
    with anyio.move_on_after(timeout):
        async with anyio.create_task_group() as tg:

            async def _wait(waiter: Callable[[], Awaitable[object]]) -> None:
                _ = await waiter()
                tg.cancel_scope.cancel()

            # Keeps the group open until the timeout or a waiter finishes
            tg.start_soon(anyio.sleep_forever)
            for waiter in waiters:
                tg.start_soon(_wait, waiter)


def _process_group_options() -> dict[str, object]:
    """Return spawn options that put the child in its own process group."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


if sys.platform == "win32":
    _KILL_SIGNAL = signal.SIGTERM
else:
    _KILL_SIGNAL = signal.SIGKILL


@final
class CycleRunner:
    """Runs the supervised program for exactly one cycle.

    The runner owns the child process for its whole lifetime. A new runner
    is created for every cycle, so nothing is shared between cycles except
    the cancellation token.

    Attributes:
        config: Immutable configuration for the supervised program.
        cycle: Number of this cycle, starting at 1.
        state: Current state of the cycle.
    """

    __slots__ = (
        "_cancelled",
        "_exited",
        "_kill_sent",
        "_output_sink",
        "_pid",
        "_started_at",
        "_terminate_sent",
        "_token",
        "config",
        "cycle",
        "state",
    )

    def __init__(
        self,
        config: SupervisorConfig,
        token: CancellationToken,
        output_sink: EventSink,
        *,
        cycle: int = 1,
    ) -> None:
        """Initialize the cycle runner.

        Args:
            config: Configuration for the supervised program.
            token: Shutdown token observed while the child is running.
            output_sink: Sink for cycle events.
            cycle: Number of this cycle, used in events.
        """
        self.config = config
        self.cycle = cycle
        self.state = CycleState.LAUNCHING
        self._token = token
        self._output_sink = output_sink
        self._exited = anyio.Event()
        self._pid: int | None = None
        self._started_at: str | None = None
        self._terminate_sent = False
        self._kill_sent = False
        self._cancelled = False

    @property
    def pid(self) -> int | None:
        """Return the process ID of the child, once launched."""
        return self._pid

    async def emit_event(
        self,
        event_type: SupervisorEventType,
        *,
        message: str | None = None,
        exit_code: int | None = None,
        signal: str | None = None,
    ) -> None:
        """Emit a cycle event to the output sink."""
        await emit_event(
            self._output_sink,
            event_type,
            cycle=self.cycle,
            pid=self._pid,
            exit_code=exit_code,
            signal=signal,
            message=message,
        )

    async def _launch(self) -> anyio.abc.Process:
        """Spawn the child with inherited output streams.

        Raises:
            LaunchError: If the program cannot be started.
        """
        await self.emit_event(SupervisorEventType.STARTING, message="Starting...")
        try:
            process = await anyio.open_process(
                self.config.command,
                stdin=subprocess.DEVNULL,
                stdout=None,
                stderr=None,
                **_process_group_options(),  # pyright: ignore[reportArgumentType]
            )
        except OSError as e:
            msg = f"Failed to start '{self.config.program}': {e}"
            await self.emit_event(SupervisorEventType.LAUNCH_FAILED, message=msg)
            raise LaunchError(msg, command=self.config.command, cause=e) from e

        self._pid = process.pid
        self._started_at = _get_timestamp()
        return process

    async def _reap(self, process: anyio.abc.Process) -> None:
        """Wait for the child to exit and report it once."""
        try:
            _ = await process.wait()
        finally:
            self._exited.set()

    async def _send(self, process: anyio.abc.Process, signum: signal.Signals) -> bool:
        """Deliver a signal to the child unless it has already exited.

        Delivery failures are reported as events and never raised.

        Returns:
            True if delivery was attempted.
        """
        if self._exited.is_set():
            return False
        try:
            process.send_signal(signum)
        except OSError as e:
            await self.emit_event(
                SupervisorEventType.SIGNAL_FAILED,
                signal=format_signal(signum),
                message=f"Failed to send {format_signal(signum)}: {e}",
            )
        return True

    async def _escalate(self, process: anyio.abc.Process) -> None:
        """Drive the child through the running, terminating and killing states.

        Returns as soon as the child has exited. The exit check always comes
        before acting on an elapsed timer, so a child that is already gone is
        never signalled.
        """
        self.state = CycleState.RUNNING
        await self.emit_event(
            SupervisorEventType.STARTED,
            message=f"Started with command: {' '.join(self.config.command)}",
        )
        await wait_first(self.config.run_period, self._exited.wait, self._token.wait)
        if self._exited.is_set():
            return

        self._cancelled = self._token.cancelled
        reason = "shutdown requested" if self._cancelled else "run period elapsed"
        self.state = CycleState.TERMINATING
        await self.emit_event(
            SupervisorEventType.TERMINATING,
            signal=format_signal(signal.SIGTERM),
            message=f"Sending SIGTERM ({reason})",
        )
        self._terminate_sent = await self._send(process, signal.SIGTERM)

        # Cancellation is spent; only the grace timer or the exit ends this wait
        await wait_first(self.config.grace_period, self._exited.wait)
        if self._exited.is_set():
            return

        self.state = CycleState.KILLING
        grace = format_duration(self.config.grace_period)
        await self.emit_event(
            SupervisorEventType.KILLING,
            signal=format_signal(_KILL_SIGNAL),
            message=(
                f"Sending {format_signal(_KILL_SIGNAL)} "
                f"(no exit after {grace} grace period)"
            ),
        )
        self._kill_sent = await self._send(process, _KILL_SIGNAL)
        await self._exited.wait()

    async def _abandon(self, process: anyio.abc.Process) -> None:
        """Kill and reap the child when the cycle itself is cancelled."""
        with anyio.CancelScope(shield=True):
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            _ = await process.wait()

    async def run(self) -> ExitOutcome:
        """Run one full cycle and return its outcome.

        Returns:
            The outcome of the cycle once the child has been reaped.

        Raises:
            LaunchError: If the program cannot be started.
        """
        process = await self._launch()

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._reap, process)
                await self._escalate(process)
        except anyio.get_cancelled_exc_class():
            await self._abandon(process)
            raise

        returncode = process.returncode
        if returncode is None:
            # The reaper has finished, so the status is always known here
            returncode = await process.wait()

        self.state = CycleState.COMPLETE
        outcome = ExitOutcome(
            pid=process.pid,
            returncode=returncode,
            terminate_sent=self._terminate_sent,
            kill_sent=self._kill_sent,
            cancelled=self._cancelled,
            started_at=self._started_at,
            ended_at=_get_timestamp(),
        )

        if outcome.success:
            await self.emit_event(
                SupervisorEventType.EXITED,
                exit_code=returncode,
                message="Exited normally",
            )
        elif outcome.signal_name is not None:
            await self.emit_event(
                SupervisorEventType.CRASHED,
                exit_code=returncode,
                signal=outcome.signal_name,
                message=f"Killed by {outcome.signal_name}",
            )
        else:
            await self.emit_event(
                SupervisorEventType.CRASHED,
                exit_code=returncode,
                message=f"Exited with code {returncode}",
            )

        return outcome
