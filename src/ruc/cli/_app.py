"""The command-line interface for ruc."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Literal, TextIO

import anyio
from cyclopts import App, Parameter
from pydantic import ValidationError
from rich.console import Console

from ruc import __version__
from ruc.exceptions import DurationError, LaunchError
from ruc.supervisor import (
    ConsoleEventSink,
    EventSink,
    StructlogEventSink,
    Supervisor,
    SupervisorConfig,
)
from ruc.utils import create_logger, parse_duration

from ._argv import split_argv
from ._exit_codes import (
    EXIT_INTERRUPTED,
    EXIT_LAUNCH_ERROR,
    EXIT_SUCCESS,
    EXIT_USAGE_ERROR,
)

LogFormat = Literal["console", "text", "json"]

HELP = (
    "Run a program under control: restart it every run period, asking it to "
    "exit with SIGTERM and killing it with SIGKILL after the grace period."
)
USAGE = "Usage: ruc [OPTIONS] PROGRAM [ARGS...]"

# anyio cannot receive signals on Windows; Ctrl-C arrives as KeyboardInterrupt
RELAY_SIGNALS = sys.platform != "win32"


@contextmanager
def open_log_stream(log_file: Path | None) -> Iterator[TextIO | None]:
    """Open ``log_file`` for appending, creating parent directories.

    Yields None when no log file was requested.
    """
    if log_file is None:
        yield None
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    with log_file.open("a", encoding="utf-8") as stream:
        yield stream


def build_event_sink(
    *,
    log_format: LogFormat,
    log_level: str,
    log_stream: TextIO | None,
    error_console: Console,
) -> EventSink:
    """Create the event sink for the requested log format.

    Args:
        log_format: "console" for rich lines, "text" or "json" for structlog.
        log_level: Log level threshold for structlog output.
        log_stream: Open log file for structlog output, if any. Console
            format falls back to text when writing to a file.
        error_console: Console used for rich output and stderr logging.

    Returns:
        The event sink to pass to the supervisor.
    """
    if log_format == "console" and log_stream is None:
        return ConsoleEventSink(error_console)

    logger = create_logger(
        level=log_level,
        log_format="json" if log_format == "json" else "text",
        stream=log_stream or error_console.file,
    )
    return StructlogEventSink(logger.bind(logger="ruc"))


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="ruc",
        help=HELP,
        usage=USAGE,
        help_on_error=True,
        version=__version__,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.default
    def supervise(  # noqa: PLR0913  # pyright: ignore[reportUnusedFunction]
        *command: Annotated[
            str,
            Parameter(
                allow_leading_hyphen=True,
                help="Program to supervise, followed by its arguments.",
            ),
        ],
        run: Annotated[
            str,
            Parameter(
                name=["--run", "-r"],
                env_var="RUC_RUN",
                help="Period between starting the program and sending it SIGTERM.",
            ),
        ] = "60s",
        grace: Annotated[
            str,
            Parameter(
                name=["--grace", "-g"],
                env_var="RUC_GRACE",
                help="Period between sending the program SIGTERM and SIGKILL.",
            ),
        ] = "10s",
        stop_on_signal: Annotated[
            bool,
            Parameter(
                env_var="RUC_STOP_ON_SIGNAL",
                help="Exit once the program has stopped after a shutdown signal.",
            ),
        ] = False,
        log_format: Annotated[
            LogFormat,
            Parameter(help="Event output format."),
        ] = "console",
        log_level: Annotated[
            str,
            Parameter(env_var="RUC_LOG_LEVEL", help="Log level for text/json output."),
        ] = "info",
        log_file: Annotated[
            Path | None,
            Parameter(help="Write text/json log entries to this file."),
        ] = None,
    ) -> None:
        """Supervise PROGRAM, restarting it every run period.

        Args:
            command: Program to supervise, followed by its arguments.
            run: Period before the graceful termination request.
            grace: Period before the forced kill.
            stop_on_signal: Exit after the first shutdown signal's cycle.
            log_format: Event output format.
            log_level: Log level for text/json output.
            log_file: Log file for text/json output.
        """
        if not command:
            app.help_print(console=error_console)
            sys.exit(EXIT_USAGE_ERROR)

        try:
            config = SupervisorConfig(
                command=command,
                run_period=parse_duration(run),
                grace_period=parse_duration(grace),
                stop_on_signal=stop_on_signal,
            )
        except (DurationError, ValidationError) as e:
            error_console.print(f"ruc: {e}", highlight=False, markup=False)
            sys.exit(EXIT_USAGE_ERROR)

        with open_log_stream(log_file) as log_stream:
            sink = build_event_sink(
                log_format=log_format,
                log_level=log_level,
                log_stream=log_stream,
                error_console=error_console,
            )
            supervisor = Supervisor(config, sink, relay_signals=RELAY_SIGNALS)

            try:
                anyio.run(supervisor.run)
            except LaunchError:
                # Already reported through the event sink
                sys.exit(EXIT_LAUNCH_ERROR)
            except KeyboardInterrupt:
                # Only reachable without the signal relay; the child is
                # killed and reaped when the run is cancelled
                sys.exit(EXIT_INTERRUPTED)

        sys.exit(EXIT_SUCCESS)

    return app


def main(argv: Sequence[str] | None = None) -> None:
    """Default entrypoint for the `ruc` CLI.

    Args:
        argv: Command-line arguments. Defaults to ``sys.argv[1:]``.
    """
    app = create_app()
    app(split_argv(sys.argv[1:] if argv is None else argv))
