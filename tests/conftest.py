"""Shared test fixtures for ruc tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from _support import RecordingSink
from ruc.supervisor import SupervisorConfig

TESTS_DIR = Path(__file__).parent

# Suite directory -> marker added to every test collected below it
SUITE_MARKERS = {
    "unit": pytest.mark.unit,
    "integration": pytest.mark.integration,
    "properties": pytest.mark.property,
}


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        suite = Path(item.path).relative_to(TESTS_DIR).parts[0]
        if marker := SUITE_MARKERS.get(suite):
            item.add_marker(marker)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def console() -> Console:
    return Console(
        width=200,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Return an event sink that records everything it receives."""
    return RecordingSink()


@pytest.fixture
def make_config() -> Callable[..., SupervisorConfig]:
    """Return a factory for SupervisorConfig with short default periods."""

    def _make(*command: str, **overrides: Any) -> SupervisorConfig:  # noqa: ANN401
        values: dict[str, Any] = {"run_period": 5.0, "grace_period": 1.0}
        values.update(overrides)
        return SupervisorConfig(command=command, **values)

    return _make
