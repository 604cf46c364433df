"""
Per-call execution context: an optional deadline plus cooperative cancellation.

Tool handlers run synchronously on the calling thread. They observe the context by
passing `ctx.remaining()` as the request timeout of any client call they make and by
calling `ctx.raise_if_done()` between steps, so a cancelled or expired call returns
promptly instead of leaking a blocked request.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional, Tuple


class DeadlineExceeded(TimeoutError):
    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class Canceled(Exception):
    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class CallContext:
    def __init__(
        self,
        *,
        deadline: Optional[float] = None,
        parent: Optional["CallContext"] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._parent = parent
        self._cancelled = threading.Event()
        self._children: List["CallContext"] = []
        self._lock = threading.Lock()

        parent_deadline = parent.deadline if parent is not None else None
        if deadline is None:
            self._deadline = parent_deadline
        elif parent_deadline is None:
            self._deadline = deadline
        else:
            self._deadline = min(deadline, parent_deadline)

        if parent is not None:
            parent._attach(self)

    @classmethod
    def background(cls) -> "CallContext":
        return cls()

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def _attach(self, child: "CallContext") -> None:
        with self._lock:
            cancelled = self._cancelled.is_set()
            if not cancelled:
                self._children.append(child)
        if cancelled:
            child.cancel()

    def _detach(self, child: "CallContext") -> None:
        with self._lock:
            try:
                self._children.remove(child)
            except ValueError:
                pass

    def with_timeout(self, seconds: float) -> Tuple["CallContext", Callable[[], None]]:
        """Derive a child bounded by `seconds` (and by this context's own deadline)."""
        child = CallContext(deadline=self._clock() + seconds, parent=self, clock=self._clock)
        return child, child.cancel

    def with_cancel(self) -> Tuple["CallContext", Callable[[], None]]:
        child = CallContext(parent=self, clock=self._clock)
        return child, child.cancel

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.cancel()
        if self._parent is not None:
            self._parent._detach(self)

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (never negative), or None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def _expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    def done(self) -> bool:
        return self._cancelled.is_set() or self._expired()

    def error(self) -> Optional[Exception]:
        # An expired deadline wins over a cancel issued afterwards by the timeout's own cleanup.
        if self._expired():
            return DeadlineExceeded()
        if self._cancelled.is_set():
            return Canceled()
        return None

    def raise_if_done(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`, waking early on cancellation or deadline.

        Returns True if the context finished while waiting.
        """
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._cancelled.wait(max(0.0, seconds))
        return self.done()
