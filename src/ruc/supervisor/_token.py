"""Level-triggered cancellation token shared by the relay and every cycle."""

from typing import final

import anyio


@final
class CancellationToken:
    """Set-once shutdown flag.

    Once raised the token stays raised: a cycle that starts waiting after
    the token was raised observes it immediately. Raising it again is a
    no-op. Must be created while an event loop is running.
    """

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = anyio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Return True once the token has been raised."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Return the reason given when the token was first raised."""
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """Raise the token.

        Args:
            reason: Optional description of why shutdown was requested.

        Returns:
            True if this call raised the token, False if it was already raised.
        """
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    async def wait(self) -> None:
        """Wait until the token is raised."""
        await self._event.wait()
