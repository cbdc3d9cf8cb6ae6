"""Command-line splitting between ruc's options and the supervised program.

Option parsing stops at the first token that is not one of ruc's own
options, so the supervised program receives every argument after its name
untouched, even ones that look like ruc options (``ruc sort -r file``).
The single-dash long spellings ``-run 5s`` and ``-grace=1s`` are accepted as
aliases of ``--run`` and ``--grace``.
"""

from collections.abc import Sequence

END_OF_OPTIONS = "--"

# Options that consume the next token as their value
VALUE_OPTIONS: frozenset[str] = frozenset(
    {"--run", "-r", "--grace", "-g", "--log-format", "--log-level", "--log-file"}
)

# Long option names that may also be spelled with a single dash
LONG_NAMES: frozenset[str] = frozenset(
    {
        "run",
        "grace",
        "stop-on-signal",
        "no-stop-on-signal",
        "log-format",
        "log-level",
        "log-file",
        "help",
        "version",
    }
)


def _long_form(token: str) -> str:
    name, sep, value = token.partition("=")
    if not name.startswith("--") and name[1:] in LONG_NAMES:
        return f"--{name[1:]}{sep}{value}"
    return token


def split_argv(tokens: Sequence[str]) -> list[str]:
    """Mark where ruc's options end and the supervised command begins.

    Inserts ``--`` before the program name so that nothing after it is
    parsed as a ruc option. Tokens are returned unchanged after an explicit
    ``--``.

    Args:
        tokens: Command-line arguments without the executable name.

    Returns:
        The arguments to hand to the cyclopts app.
    """
    result: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token == END_OF_OPTIONS:
            return [*result, *tokens[index:]]
        if token == "-" or not token.startswith("-"):
            return [*result, END_OF_OPTIONS, *tokens[index:]]

        option = _long_form(token)
        result.append(option)
        index += 1
        if option in VALUE_OPTIONS and index < len(tokens):
            result.append(tokens[index])
            index += 1

    return result
