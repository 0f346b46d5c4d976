"""Cooperative cancellation for collection operations.

An ExecutionContext is passed explicitly through every long-running call.
It ends in exactly one of two ways: explicit cancellation or its deadline
elapsing. Ending a context ends all of its children with the same error;
ending a child never affects its parent, which is what lets callers tell an
internally-imposed bound apart from caller-driven cancellation.

Drivers poll the context (``ctx.err()``, ``check_context``) between blocking
steps and use ``ctx.wait()`` instead of ``time.sleep`` so waits are
abortable.
"""

import threading
import time
from collections.abc import Callable
from types import TracebackType

from metaingest.collectors.errors import (
    CollectorError,
    DeadlineExceededError,
    ErrorCode,
    OperationCancelledError,
    as_collector_error,
)


class ContextError(Exception):
    """Base class for the reasons an execution context ended."""


class ContextCancelled(ContextError):
    """The context was explicitly cancelled."""

    def __init__(self) -> None:
        super().__init__("context canceled")


class ContextDeadlineExceeded(ContextError):
    """The context's deadline elapsed."""

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class ExecutionContext:
    """Cancellation token with an optional deadline and a parent chain.

    Deadlines are expressed on the ``time.monotonic()`` clock. Instances are
    safe to share across threads.
    """

    def __init__(
        self,
        parent: "ExecutionContext | None" = None,
        deadline: float | None = None,
        *,
        cancellable: bool = True,
    ) -> None:
        """Initialize the context.

        Prefer the ``background``/``with_cancel``/``with_timeout``/
        ``with_deadline`` constructors, which also link the child to its
        parent.

        Args:
            parent: Parent context, or None for a root.
            deadline: Monotonic time at which the context expires.
            cancellable: False only for the never-ending background root.
        """
        self._parent = parent
        self._deadline = deadline
        self._cancellable = cancellable
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._err: ContextError | None = None
        self._children: set[ExecutionContext] = set()
        self._callbacks: list[Callable[[], object]] = []
        self._timer: threading.Timer | None = None

    @classmethod
    def background(cls) -> "ExecutionContext":
        """Get the root context, which never ends."""
        return _BACKGROUND

    @classmethod
    def with_cancel(cls, parent: "ExecutionContext") -> "ExecutionContext":
        """Derive a child that can be cancelled independently.

        The child inherits the parent's deadline.
        """
        return cls._derive(parent, parent.deadline)

    @classmethod
    def with_deadline(
        cls, parent: "ExecutionContext", deadline: float
    ) -> "ExecutionContext":
        """Derive a child that expires at a monotonic deadline.

        The effective deadline never exceeds the parent's.
        """
        if parent.deadline is not None:
            deadline = min(deadline, parent.deadline)
        return cls._derive(parent, deadline)

    @classmethod
    def with_timeout(
        cls, parent: "ExecutionContext", timeout: float
    ) -> "ExecutionContext":
        """Derive a child that expires ``timeout`` seconds from now."""
        return cls.with_deadline(parent, time.monotonic() + timeout)

    @classmethod
    def _derive(
        cls, parent: "ExecutionContext", deadline: float | None
    ) -> "ExecutionContext":
        child = cls(parent=parent, deadline=deadline)
        parent._attach(child)
        if deadline is not None and not child.done():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                child._finish(ContextDeadlineExceeded())
            else:
                timer = threading.Timer(remaining, child._expire)
                timer.daemon = True
                with child._lock:
                    child._timer = timer
                timer.start()
        return child

    @property
    def parent(self) -> "ExecutionContext | None":
        """Get the parent context (None for roots)."""
        return self._parent

    @property
    def deadline(self) -> float | None:
        """Get the monotonic deadline, or None if unbounded."""
        return self._deadline

    def remaining(self) -> float | None:
        """Get seconds left before the deadline, or None if unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def err(self) -> ContextError | None:
        """Get the reason the context ended, or None while it is live."""
        if self._err is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self._finish(ContextDeadlineExceeded())
        return self._err

    def done(self) -> bool:
        """Check whether the context has ended."""
        return self.err() is not None

    def cancel(self) -> None:
        """Cancel the context and all of its children.

        Has no effect on a context that already ended, nor on the
        background root.
        """
        if self._cancellable:
            self._finish(ContextCancelled())

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the context ends or ``timeout`` seconds pass.

        This is the abortable replacement for ``time.sleep``.

        Args:
            timeout: Maximum seconds to wait; None waits for the context.

        Returns:
            True if the context has ended.
        """
        limit = self.remaining()
        if limit is not None:
            timeout = limit if timeout is None else min(timeout, limit)
        if timeout is None and not self._cancellable:
            msg = "waiting on the background context without a timeout never returns"
            raise ValueError(msg)
        self._done.wait(timeout)
        return self.done()

    def add_done_callback(self, callback: Callable[[], object]) -> None:
        """Register a callback invoked once when the context ends.

        Runs immediately if the context already ended. Callbacks may run
        on a timer thread.
        """
        with self._lock:
            if self._err is None:
                self._callbacks.append(callback)
                return
        callback()

    def _attach(self, child: "ExecutionContext") -> None:
        if not self._cancellable and self._deadline is None:
            return
        with self._lock:
            err = self._err
            if err is None:
                self._children.add(child)
                return
        child._finish(err)

    def _detach(self, child: "ExecutionContext") -> None:
        with self._lock:
            self._children.discard(child)

    def _expire(self) -> None:
        self._finish(ContextDeadlineExceeded())

    def _finish(self, err: ContextError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            children = list(self._children)
            self._children.clear()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
            timer = self._timer
            self._timer = None
        self._done.set()
        if timer is not None:
            timer.cancel()
        if self._parent is not None:
            self._parent._detach(self)
        for child in children:
            child._finish(err)
        for callback in callbacks:
            callback()

    def __enter__(self) -> "ExecutionContext":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()


_BACKGROUND = ExecutionContext(cancellable=False)


def wrap_context_error(
    ctx: ExecutionContext, source: str, operation: str
) -> CollectorError | None:
    """Classify why a context ended as a CollectorError.

    Call this after an operation failed because its context ended.

    Args:
        ctx: The context to inspect.
        source: Source type for the resulting error.
        operation: Operation name for the resulting error.

    Returns:
        DeadlineExceededError if the deadline elapsed, OperationCancelledError
        for explicit (or any other) cancellation, None if the context is live.
    """
    err = ctx.err()
    if err is None:
        return None
    if isinstance(err, ContextDeadlineExceeded):
        return DeadlineExceededError(source, operation, err)
    return OperationCancelledError(source, operation, err)


def check_context(
    ctx: ExecutionContext, source: str, operation: str
) -> CollectorError | None:
    """Poll a context before a unit of work.

    Returns:
        None while the context is live, else the classified context error.
    """
    if ctx.err() is None:
        return None
    return wrap_context_error(ctx, source, operation)


def is_context_error(err: BaseException | None) -> bool:
    """Check if an error indicates cancellation or an elapsed deadline."""
    return is_cancelled(err) or is_deadline_exceeded(err)


def is_cancelled(err: BaseException | None) -> bool:
    """Check if an error indicates the operation was cancelled."""
    if isinstance(err, ContextCancelled):
        return True
    found = as_collector_error(err)
    return found is not None and found.code == ErrorCode.CANCELLED


def is_deadline_exceeded(err: BaseException | None) -> bool:
    """Check if an error indicates the deadline was exceeded."""
    if isinstance(err, ContextDeadlineExceeded):
        return True
    found = as_collector_error(err)
    return found is not None and found.code == ErrorCode.DEADLINE_EXCEEDED
