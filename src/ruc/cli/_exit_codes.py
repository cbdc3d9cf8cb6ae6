"""Exit codes for the ruc command.

- 0: Stopped after a shutdown request (--stop-on-signal)
- 1: The supervised program could not be started
- 2: Usage error (missing program, invalid option value)
- 130: Interrupted where signals cannot be relayed (Windows Ctrl-C)

A second shutdown signal exits with 128 + the signal number.
"""

EXIT_SUCCESS: int = 0
EXIT_LAUNCH_ERROR: int = 1
EXIT_USAGE_ERROR: int = 2
EXIT_INTERRUPTED: int = 130
