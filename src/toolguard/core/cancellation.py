"""CancellationToken — cooperative cancellation for tool loops.

A token is set once and stays set. Child tokens observe their parent, so
cancelling a session cancels every tool call spawned from it. Checking a token
never blocks.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._event = threading.Event()
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.is_cancelled()

    def child_token(self) -> CancellationToken:
        """Return a token that is cancelled whenever this one is."""
        return CancellationToken(parent=self)


def is_token_cancelled(cancellation_token: CancellationToken | None) -> bool:
    """True if a token is present and already cancelled. Never waits."""
    return cancellation_token is not None and cancellation_token.is_cancelled()
