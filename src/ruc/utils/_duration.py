"""Parsing and formatting of human-readable durations.

Durations use the familiar ``1h2m3.5s`` notation: a sequence of decimal
numbers, each with a unit suffix (``ns``, ``us``, ``µs``, ``ms``, ``s``,
``m``, ``h``). A bare number is taken as seconds.
"""

import re

from ruc.exceptions import DurationError

_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # noqa: RUF001
    "μs": 1e-6,  # noqa: RUF001
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")  # noqa: RUF001
_BARE_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    Args:
        value: Duration such as ``"90s"``, ``"1m30s"``, ``"500ms"`` or ``"2.5"``.

    Returns:
        The duration in seconds.

    Raises:
        DurationError: If the string is empty, negative or malformed.
    """
    text = value.strip()
    if not text:
        msg = "duration must not be empty"
        raise DurationError(msg, value=value)

    if text.startswith("-"):
        msg = f"duration must not be negative: {value!r}"
        raise DurationError(msg, value=value)
    text = text.removeprefix("+")

    if _BARE_NUMBER.fullmatch(text):
        return float(text)

    total = 0.0
    position = 0
    for match in _COMPONENT.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        msg = f"invalid duration: {value!r}"
        raise DurationError(msg, value=value)

    return total


def format_duration(seconds: float) -> str:
    """Format seconds as a compact duration string, e.g. ``1m30s``.

    Args:
        seconds: Non-negative number of seconds.

    Returns:
        The formatted duration.
    """
    if seconds == 0:
        return "0s"

    if seconds < 1:
        return f"{seconds * 1000:g}ms"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    parts: list[str] = []
    if hours:
        parts.append(f"{int(hours)}h")
    if minutes:
        parts.append(f"{int(minutes)}m")
    if secs or not parts:
        parts.append(f"{secs:g}s")
    return "".join(parts)
