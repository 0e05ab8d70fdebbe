"""Cooperative cancellation for directory digests.

A ``CancelToken`` is passed to every recursive call and every worker task.
Cancellation is a best-effort "stop producing new work" signal: running
file reads are never interrupted, their results are simply discarded.
"""

import threading
from typing import Optional

from .errors import CancelledError


class CancelToken:
    """Thread-safe cancellation signal.

    A token derived with ``child()`` observes its parent's cancellation, but
    cancelling the child never cancels the parent. The engine uses this to
    abandon the siblings of a failed task without cancelling the caller.
    """

    def __init__(self, parent: Optional["CancelToken"] = None):
        self._event = threading.Event()
        self._parent = parent
        self._timer: Optional[threading.Timer] = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancelToken":
        """Create a token that cancels itself after ``seconds``."""
        token = cls()
        token._timer = threading.Timer(seconds, token.cancel)
        token._timer.daemon = True
        token._timer.start()
        return token

    def cancel(self) -> None:
        """Signal cancellation to this token and every token derived from it."""
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        # Iterative: one token per directory level, trees may be very deep
        token = self
        while token is not None:
            if token._event.is_set():
                return True
            token = token._parent
        return False

    def raise_if_cancelled(self, path: Optional[str] = None) -> None:
        """Raise ``CancelledError`` if cancellation has been signaled."""
        if self.cancelled:
            raise CancelledError(path)

    def child(self) -> "CancelToken":
        return CancelToken(parent=self)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"
