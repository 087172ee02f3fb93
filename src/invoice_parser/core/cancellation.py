"""Cancellation tokens for in-flight extraction calls."""

import threading


class CancellationToken:
    """Marks an extraction call as superseded.

    The backend call itself is not interrupted; a cancelled call discards
    its response instead of returning it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
