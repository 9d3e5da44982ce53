"""
Call context for registry service operations.

A CallContext carries cancellation and an optional deadline into every
remote call. Service implementations call ``ctx.check()`` before doing work
and use ``ctx.wait()`` instead of sleeping so a cancelled context aborts an
in-flight call promptly.
"""

import threading
import time

from .errors import ContextCancelled


class CallContext:
    """
    Cancellation handle passed to registry service calls.

    Example:
        >>> ctx = CallContext.with_timeout(30)
        >>> bucket.populate_iteration(ctx)

        >>> ctx = CallContext()
        >>> threading.Timer(5, ctx.cancel).start()
    """

    def __init__(self, deadline: float | None = None):
        self._cancelled = threading.Event()
        self._deadline = deadline

    @classmethod
    def background(cls) -> "CallContext":
        """A context that is never cancelled and has no deadline."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "CallContext":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or self.expired

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """
        Raise ContextCancelled if the context was cancelled or its deadline passed.
        """
        if self._cancelled.is_set():
            raise ContextCancelled("context cancelled")
        if self.expired:
            raise ContextCancelled("context deadline exceeded")

    def wait(self, seconds: float) -> None:
        """
        Block for up to ``seconds``, returning early and raising
        ContextCancelled if the context is cancelled or expires meanwhile.
        """
        remaining = self.remaining()
        timeout = seconds if remaining is None else min(seconds, remaining)
        self._cancelled.wait(timeout)
        self.check()
