"""
Operation context - cancellation and deadlines for blocking calls.
Threaded through every store read/write and every embedding call.
"""

import threading
import time
from typing import Callable, List, Optional

from .errors import DeadlineExceeded, OperationCancelled


class OperationContext:
    """
    Cancellation flag plus optional deadline.

    A context is shared between the caller and the blocking call: the caller
    may cancel() from any thread, and the backend checks expired() while it
    works. Callbacks registered with on_cancel() run once, on the cancelling
    thread, so a backend can interrupt a statement already in flight.
    """

    def __init__(self, deadline: Optional[float] = None):
        # Absolute time.monotonic() value, None means no deadline
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @classmethod
    def with_timeout(cls, seconds: float) -> "OperationContext":
        """Create a context whose deadline is `seconds` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        """Cancel the context and fire registered callbacks."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            callback()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def expired(self) -> bool:
        """True once cancelled or past the deadline."""
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise if the context has fired."""
        if self._cancelled.is_set():
            raise OperationCancelled("operation cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise DeadlineExceeded("operation deadline exceeded")

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback fired by cancel().

        Returns a function that unregisters the callback. If the context is
        already cancelled the callback runs immediately.
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)

                def remove():
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return remove

        callback()
        return lambda: None


def ensure_context(ctx: Optional[OperationContext]) -> OperationContext:
    """Return ctx, or a fresh context that never fires."""
    return ctx if ctx is not None else OperationContext()
