import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from rich.console import Console

from ruc.cli import build_event_sink, create_app, main, split_argv
from ruc.cli._app import open_log_stream
from ruc.cli._exit_codes import (
    EXIT_INTERRUPTED,
    EXIT_LAUNCH_ERROR,
    EXIT_SUCCESS,
    EXIT_USAGE_ERROR,
)
from ruc.exceptions import LaunchError
from ruc.supervisor import ConsoleEventSink, StructlogEventSink


def _run(console: Console, *args: str) -> int:
    app = create_app(console=console, error_console=console)
    try:
        app(split_argv(args))
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    return 0


class TestSplitArgv:
    @pytest.mark.parametrize(
        ("argv", "expected"),
        [
            (["sort", "-r", "file"], ["--", "sort", "-r", "file"]),
            (["grep", "-g", "foo", "."], ["--", "grep", "-g", "foo", "."]),
            (["prog", "--run", "x"], ["--", "prog", "--run", "x"]),
            (
                ["--run", "5s", "-g", "1s", "prog", "-r"],
                ["--run", "5s", "-g", "1s", "--", "prog", "-r"],
            ),
            (["--stop-on-signal", "prog"], ["--stop-on-signal", "--", "prog"]),
            (["--run=5s", "prog"], ["--run=5s", "--", "prog"]),
            (["--", "prog", "--run"], ["--", "prog", "--run"]),
            (["--run", "5s"], ["--run", "5s"]),
            ([], []),
        ],
    )
    def test_options_end_at_program(
        self, argv: list[str], expected: list[str]
    ) -> None:
        assert split_argv(argv) == expected

    @pytest.mark.parametrize(
        ("argv", "expected"),
        [
            (["-run", "5s", "prog"], ["--run", "5s", "--", "prog"]),
            (["-grace=1s", "prog"], ["--grace=1s", "--", "prog"]),
            (["-stop-on-signal", "prog"], ["--stop-on-signal", "--", "prog"]),
        ],
    )
    def test_single_dash_long_options(
        self, argv: list[str], expected: list[str]
    ) -> None:
        assert split_argv(argv) == expected

    def test_option_value_may_look_like_program(self) -> None:
        assert split_argv(["--log-file", "out.log", "prog"]) == [
            "--log-file",
            "out.log",
            "--",
            "prog",
        ]


class TestUsage:
    def test_no_program_prints_usage_and_exits_2(self, console: Console) -> None:
        with console.capture() as capture:
            exit_code = _run(console)

        assert exit_code == EXIT_USAGE_ERROR
        assert "Usage: ruc [OPTIONS] PROGRAM [ARGS...]" in capture.get()

    def test_flags_without_program_exit_2(self, console: Console) -> None:
        with console.capture():
            exit_code = _run(console, "--run", "5s", "--grace", "1s")

        assert exit_code == EXIT_USAGE_ERROR

    def test_invalid_run_duration(self, console: Console) -> None:
        with console.capture() as capture:
            exit_code = _run(console, "--run", "soon", "true")

        assert exit_code == EXIT_USAGE_ERROR
        assert "invalid duration: 'soon'" in capture.get()

    def test_negative_grace_duration(self, console: Console) -> None:
        with console.capture() as capture:
            exit_code = _run(console, "--grace=-1s", "true")

        assert exit_code == EXIT_USAGE_ERROR
        assert "must not be negative" in capture.get()

    def test_invalid_duration_from_environment(
        self, console: Console, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RUC_RUN", "whenever")

        with console.capture() as capture:
            exit_code = _run(console, "true")

        assert exit_code == EXIT_USAGE_ERROR
        assert "invalid duration: 'whenever'" in capture.get()


class TestBuildEventSink:
    def test_console_format(self, console: Console) -> None:
        sink = build_event_sink(
            log_format="console",
            log_level="info",
            log_stream=None,
            error_console=console,
        )
        assert isinstance(sink, ConsoleEventSink)

    def test_json_format(self) -> None:
        console = Console(file=io.StringIO())
        sink = build_event_sink(
            log_format="json",
            log_level="info",
            log_stream=None,
            error_console=console,
        )
        assert isinstance(sink, StructlogEventSink)

    def test_log_stream_switches_to_structlog(self, console: Console) -> None:
        sink = build_event_sink(
            log_format="console",
            log_level="info",
            log_stream=io.StringIO(),
            error_console=console,
        )
        assert isinstance(sink, StructlogEventSink)


class TestOpenLogStream:
    def test_no_file_yields_none(self) -> None:
        with open_log_stream(None) as stream:
            assert stream is None

    def test_appends_and_closes(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "ruc.log"
        log_file.parent.mkdir()
        _ = log_file.write_text("previous\n")

        with open_log_stream(log_file) as stream:
            assert stream is not None
            _ = stream.write("next\n")

        assert stream.closed
        assert log_file.read_text() == "previous\nnext\n"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        log_file = tmp_path / "a" / "b" / "ruc.log"

        with open_log_stream(log_file):
            pass

        assert log_file.exists()


class TestSupervise:
    @pytest.fixture
    def supervisor_cls(self, mocker: MockerFixture) -> MagicMock:
        supervisor_cls = mocker.patch("ruc.cli._app.Supervisor")
        supervisor_cls.return_value.run = mocker.AsyncMock(return_value=None)
        return supervisor_cls

    def test_builds_config_from_options(
        self, console: Console, supervisor_cls: MagicMock
    ) -> None:
        with console.capture():
            exit_code = _run(
                console,
                "--run", "1m30s",
                "-g", "500ms",
                "--stop-on-signal",
                "--",
                "server", "--port", "8080",
            )

        assert exit_code == EXIT_SUCCESS
        config = supervisor_cls.call_args.args[0]
        assert config.command == ("server", "--port", "8080")
        assert config.run_period == 90
        assert config.grace_period == 0.5
        assert config.stop_on_signal is True
        supervisor_cls.return_value.run.assert_awaited_once()

    @pytest.mark.parametrize(
        "command",
        [
            ("sort", "-r", "file"),
            ("grep", "-g", "foo", "."),
            ("prog", "--run", "x"),
            ("ls", "-l"),
        ],
    )
    def test_program_arguments_are_passed_through(
        self,
        console: Console,
        supervisor_cls: MagicMock,
        command: tuple[str, ...],
    ) -> None:
        with console.capture():
            exit_code = _run(console, "--run", "5s", *command)

        assert exit_code == EXIT_SUCCESS
        config = supervisor_cls.call_args.args[0]
        assert config.command == command
        assert config.run_period == 5

    def test_single_dash_run_and_grace(
        self, console: Console, supervisor_cls: MagicMock
    ) -> None:
        with console.capture():
            exit_code = _run(console, "-run", "5s", "-grace=1s", "prog")

        assert exit_code == EXIT_SUCCESS
        config = supervisor_cls.call_args.args[0]
        assert config.command == ("prog",)
        assert config.run_period == 5
        assert config.grace_period == 1

    def test_durations_from_environment(
        self,
        console: Console,
        supervisor_cls: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("RUC_RUN", "2s")
        monkeypatch.setenv("RUC_GRACE", "1")

        with console.capture():
            exit_code = _run(console, "sleep", "10")

        assert exit_code == EXIT_SUCCESS
        config = supervisor_cls.call_args.args[0]
        assert config.command == ("sleep", "10")
        assert config.run_period == 2
        assert config.grace_period == 1

    def test_launch_error_exits_1(
        self, console: Console, supervisor_cls: MagicMock
    ) -> None:
        supervisor_cls.return_value.run.side_effect = LaunchError(
            "Failed to start 'nope'", command=("nope",)
        )

        with console.capture():
            exit_code = _run(console, "nope")

        assert exit_code == EXIT_LAUNCH_ERROR

    def test_relay_disabled_where_signals_are_unsupported(
        self,
        console: Console,
        supervisor_cls: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("ruc.cli._app.RELAY_SIGNALS", False)

        with console.capture():
            exit_code = _run(console, "prog")

        assert exit_code == EXIT_SUCCESS
        assert supervisor_cls.call_args.kwargs["relay_signals"] is False

    def test_keyboard_interrupt_exits_130(
        self, console: Console, supervisor_cls: MagicMock
    ) -> None:
        supervisor_cls.return_value.run.side_effect = KeyboardInterrupt

        with console.capture():
            exit_code = _run(console, "prog")

        assert exit_code == EXIT_INTERRUPTED

    def test_log_file_is_closed_after_run(
        self,
        console: Console,
        supervisor_cls: MagicMock,
        mocker: MockerFixture,
        tmp_path: Path,
    ) -> None:
        streams: list[io.TextIOBase] = []
        real_build = build_event_sink

        def _record(**kwargs: object) -> object:
            streams.append(kwargs["log_stream"])  # pyright: ignore[reportArgumentType]
            return real_build(**kwargs)  # pyright: ignore[reportArgumentType]

        _ = mocker.patch("ruc.cli._app.build_event_sink", side_effect=_record)
        log_file = tmp_path / "ruc.log"

        with console.capture():
            exit_code = _run(console, "--log-file", str(log_file), "prog")

        assert exit_code == EXIT_SUCCESS
        assert len(streams) == 1
        assert streams[0].closed
        assert log_file.exists()


class TestMain:
    def test_splits_arguments_before_parsing(self, mocker: MockerFixture) -> None:
        supervisor_cls = mocker.patch("ruc.cli._app.Supervisor")
        supervisor_cls.return_value.run = mocker.AsyncMock(return_value=None)
        quiet = Console(file=io.StringIO())
        _ = mocker.patch("ruc.cli._app.Console", return_value=quiet)

        with pytest.raises(SystemExit) as exc_info:
            main(["-run", "5s", "sort", "-r", "file"])

        assert exc_info.value.code == EXIT_SUCCESS
        config = supervisor_cls.call_args.args[0]
        assert config.command == ("sort", "-r", "file")
        assert config.run_period == 5
