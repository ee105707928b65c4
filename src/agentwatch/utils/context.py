"""Cancellation context passed through detection and subprocess calls.

A Context carries a cancellation flag and an optional deadline. Child
contexts created with ``with_timeout`` observe their parent, so cancelling
the outer context stops everything running under it.
"""

from __future__ import annotations

import threading
import time

from agentwatch.errors import DetectionCancelled


class Context:
    """Cancellation flag plus optional monotonic deadline."""

    def __init__(self, deadline: float | None = None, parent: Context | None = None) -> None:
        self._event = threading.Event()
        self._deadline = deadline
        self._parent = parent

    @classmethod
    def background(cls) -> Context:
        """Return a context that is never cancelled unless told to."""
        return cls()

    def with_timeout(self, seconds: float) -> Context:
        """Derive a child context that expires after ``seconds``.

        The child never outlives its parent's deadline.
        """
        deadline = time.monotonic() + seconds
        if self._deadline is not None:
            deadline = min(deadline, self._deadline)
        return Context(deadline=deadline, parent=self)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._event.set()

    def expired(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent is not None and self._parent.expired()

    def cancelled(self) -> bool:
        """True once cancelled explicitly, by a parent, or by the deadline."""
        if self._event.is_set():
            return True
        if self._parent is not None and self._parent.cancelled():
            return True
        return self.expired()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        """Raise DetectionCancelled if the context is done."""
        if self.cancelled():
            reason = "deadline exceeded" if self.expired() else "context cancelled"
            raise DetectionCancelled(reason)
