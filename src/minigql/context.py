"""Cooperative cancellation for request execution.

A :class:`Context` carries an optional deadline and an explicit cancel flag
down the call chain. The client checks it before any network activity and
turns the remaining time into the transport timeout for the exchange.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from minigql.exceptions import ContextCancelledError, ContextError, DeadlineExceededError


class Context:
    """Cancellation token with an optional monotonic deadline.

    Children derived with :meth:`with_cancel`, :meth:`with_timeout` or
    :meth:`with_deadline` are done whenever any ancestor is done, and inherit
    the earliest deadline in the chain.
    """

    def __init__(self, *, deadline: float | None = None, parent: Context | None = None) -> None:
        self._parent = parent
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

    @classmethod
    def background(cls) -> Context:
        """Return a context that is never cancelled and has no deadline."""
        return cls()

    @property
    def deadline(self) -> float | None:
        """Deadline on the :func:`time.monotonic` clock, if any."""
        return self._deadline

    def with_cancel(self) -> Context:
        return Context(parent=self)

    def with_deadline(self, deadline: float) -> Context:
        return Context(deadline=deadline, parent=self)

    def with_timeout(self, seconds: float) -> Context:
        return self.with_deadline(time.monotonic() + seconds)

    def cancel(self) -> None:
        """Mark this context (and its children) cancelled. Idempotent."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` once when this context or an ancestor is cancelled.

        The callback runs on the cancelling thread, or immediately when the
        context is already cancelled. Returns a function that unregisters it.
        """
        fired = threading.Lock()

        def once() -> None:
            if fired.acquire(blocking=False):
                callback()

        registered: list[Context] = []
        node: Context | None = self
        while node is not None:
            with node._lock:
                already_cancelled = node._cancelled.is_set()
                if not already_cancelled:
                    node._callbacks.append(once)
                    registered.append(node)
            if already_cancelled:
                once()
                break
            node = node._parent

        def unregister() -> None:
            for ctx in registered:
                ctx._discard(once)

        return unregister

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def remaining(self) -> float | None:
        """Seconds left before the deadline, clamped at zero; ``None`` without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def err(self) -> ContextError | None:
        """Return why the context is done, or ``None`` while it is still live.

        Explicit cancellation wins over an expired deadline.
        """
        if self._is_cancelled():
            return ContextCancelledError()
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceededError()
        return None

    def done(self) -> bool:
        return self.err() is not None

    def raise_if_done(self) -> None:
        err = self.err()
        if err is not None:
            raise err

    def _is_cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent._is_cancelled()

    def __repr__(self) -> str:
        return f"Context(deadline={self._deadline!r}, cancelled={self._is_cancelled()})"
