"""
Execution Context

Cancellation and deadline carrier passed to every blocking operation:

    context = ExecutionContext().with_timeout(600)
    runner.run(['brew', 'install', 'wget'], context)

Contexts form a tree; cancelling a parent cancels all children.
"""

import signal
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from .errors import ContextCancelledError


class ExecutionContext:
    """Cancellable execution context with an optional deadline"""

    def __init__(self, deadline: Optional[float] = None,
                 parent: Optional['ExecutionContext'] = None):
        """
        Args:
            deadline: Absolute time.monotonic() value after which the context is done
            parent: Context whose cancellation propagates to this one
        """
        self._event = threading.Event()
        # Reentrant: cancel() can run from a SIGINT handler on the main thread
        self._lock = threading.RLock()
        self._callbacks: List[Callable[[], None]] = []
        self._reason: Optional[str] = None
        self._deadline = deadline
        self._parent = parent

    def with_timeout(self, seconds: float) -> 'ExecutionContext':
        """Create a child context that expires after the given number of seconds"""
        deadline = time.monotonic() + seconds
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return ExecutionContext(deadline=deadline, parent=self)

    def child(self) -> 'ExecutionContext':
        """Create a child context sharing this context's deadline"""
        return ExecutionContext(deadline=self.deadline, parent=self)

    def cancel(self, reason: str = 'context cancelled') -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Call callback once when this context or one of its parents is cancelled

        The callback runs right away when the context is already done. It may
        run on another thread or inside a signal handler, so it must not block.

        Returns:
            Function that unregisters the callback
        """
        guard = threading.Lock()

        def _once() -> None:
            if guard.acquire(blocking=False):
                callback()

        chain = []
        node: Optional[ExecutionContext] = self
        while node is not None:
            chain.append(node)
            node = node._parent

        for node in chain:
            with node._lock:
                node._callbacks.append(_once)

        if self.cancelled:
            _once()

        def _remove() -> None:
            for node in chain:
                with node._lock:
                    if _once in node._callbacks:
                        node._callbacks.remove(_once)

        return _remove

    @property
    def deadline(self) -> Optional[float]:
        if self._parent is not None and self._parent.deadline is not None:
            if self._deadline is None:
                return self._parent.deadline
            return min(self._deadline, self._parent.deadline)
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self.reason is not None

    @property
    def reason(self) -> Optional[str]:
        """Why the context is done, or None while it is still live"""
        if self._event.is_set():
            return self._reason
        if self._parent is not None and self._parent.cancelled:
            return self._parent.reason
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return 'deadline exceeded'
        return None

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when there is no deadline"""
        deadline = self.deadline
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def check(self) -> None:
        """Raise ContextCancelledError if the context is done"""
        reason = self.reason
        if reason is not None:
            raise ContextCancelledError(reason)


@contextmanager
def cancel_on_interrupt(context: ExecutionContext) -> Iterator[ExecutionContext]:
    """Cancel the context on SIGINT instead of raising KeyboardInterrupt"""
    if threading.current_thread() is not threading.main_thread():
        yield context
        return

    def _handler(signum, frame):
        context.cancel('interrupted')

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield context
    finally:
        signal.signal(signal.SIGINT, previous)
