"""Unit tests for execution contexts and cancellation helpers."""

import threading
import time

import pytest

from metaingest.collectors.context import (
    ContextCancelled,
    ContextDeadlineExceeded,
    ExecutionContext,
    check_context,
    is_cancelled,
    is_context_error,
    is_deadline_exceeded,
    wrap_context_error,
)
from metaingest.collectors.errors import (
    DeadlineExceededError,
    ErrorCode,
    NetworkError,
    OperationCancelledError,
)


class TestBackground:
    """Tests for the root context."""

    @pytest.mark.unit
    def test_background_never_ends(self) -> None:
        """The background context is live and has no deadline."""
        ctx = ExecutionContext.background()
        assert ctx.err() is None
        assert not ctx.done()
        assert ctx.deadline is None
        assert ctx.remaining() is None

    @pytest.mark.unit
    def test_background_cannot_be_cancelled(self) -> None:
        """cancel() on the background context has no effect."""
        ctx = ExecutionContext.background()
        ctx.cancel()
        assert ctx.err() is None

    @pytest.mark.unit
    def test_background_wait_requires_timeout(self) -> None:
        """Waiting forever on the background context is rejected."""
        with pytest.raises(ValueError, match="never returns"):
            ExecutionContext.background().wait()

    @pytest.mark.unit
    def test_background_wait_with_timeout_returns_false(self) -> None:
        """A timed wait on the background context simply elapses."""
        assert ExecutionContext.background().wait(0.01) is False


class TestCancellation:
    """Tests for explicit cancellation."""

    @pytest.mark.unit
    def test_cancel_sets_error(self) -> None:
        """Cancelling ends the context with ContextCancelled."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        ctx.cancel()
        assert isinstance(ctx.err(), ContextCancelled)
        assert ctx.done()

    @pytest.mark.unit
    def test_first_error_wins(self) -> None:
        """A context ends once; later events do not change its error."""
        ctx = ExecutionContext.with_timeout(ExecutionContext.background(), 0.01)
        ctx.cancel()
        time.sleep(0.03)
        assert isinstance(ctx.err(), ContextCancelled)

    @pytest.mark.unit
    def test_parent_cancel_propagates(self) -> None:
        """Cancelling a parent ends every descendant with the same error."""
        parent = ExecutionContext.with_cancel(ExecutionContext.background())
        child = ExecutionContext.with_cancel(parent)
        grandchild = ExecutionContext.with_timeout(child, 60)
        parent.cancel()
        assert isinstance(child.err(), ContextCancelled)
        assert isinstance(grandchild.err(), ContextCancelled)

    @pytest.mark.unit
    def test_child_cancel_does_not_affect_parent(self) -> None:
        """Ending a child never ends its parent."""
        parent = ExecutionContext.with_cancel(ExecutionContext.background())
        child = ExecutionContext.with_cancel(parent)
        child.cancel()
        assert child.done()
        assert parent.err() is None

    @pytest.mark.unit
    def test_derive_from_ended_parent(self) -> None:
        """A child of an ended parent starts ended."""
        parent = ExecutionContext.with_cancel(ExecutionContext.background())
        parent.cancel()
        child = ExecutionContext.with_cancel(parent)
        assert isinstance(child.err(), ContextCancelled)

    @pytest.mark.unit
    def test_context_manager_cancels_on_exit(self) -> None:
        """Leaving the with-block cancels the context."""
        with ExecutionContext.with_cancel(ExecutionContext.background()) as ctx:
            assert not ctx.done()
        assert isinstance(ctx.err(), ContextCancelled)

    @pytest.mark.unit
    def test_done_callback(self) -> None:
        """Callbacks run once when the context ends, or immediately after."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        calls: list[str] = []
        ctx.add_done_callback(lambda: calls.append("first"))
        ctx.cancel()
        ctx.cancel()
        ctx.add_done_callback(lambda: calls.append("late"))
        assert calls == ["first", "late"]


class TestDeadlines:
    """Tests for deadline-bounded contexts."""

    @pytest.mark.unit
    def test_timeout_elapses(self) -> None:
        """A timed context ends with ContextDeadlineExceeded."""
        ctx = ExecutionContext.with_timeout(ExecutionContext.background(), 0.02)
        assert ctx.wait() is True
        assert isinstance(ctx.err(), ContextDeadlineExceeded)

    @pytest.mark.unit
    def test_non_positive_timeout_ends_immediately(self) -> None:
        """A zero timeout yields an already-expired context."""
        ctx = ExecutionContext.with_timeout(ExecutionContext.background(), 0)
        assert isinstance(ctx.err(), ContextDeadlineExceeded)

    @pytest.mark.unit
    def test_child_deadline_capped_by_parent(self) -> None:
        """A child cannot outlive its parent's deadline."""
        parent = ExecutionContext.with_timeout(ExecutionContext.background(), 1.0)
        child = ExecutionContext.with_timeout(parent, 60)
        assert child.deadline == parent.deadline

    @pytest.mark.unit
    def test_with_cancel_inherits_deadline(self) -> None:
        """with_cancel keeps the parent's deadline."""
        parent = ExecutionContext.with_timeout(ExecutionContext.background(), 5)
        child = ExecutionContext.with_cancel(parent)
        assert child.deadline == parent.deadline

    @pytest.mark.unit
    def test_parent_deadline_propagates(self) -> None:
        """A parent's elapsed deadline ends its children."""
        parent = ExecutionContext.with_timeout(ExecutionContext.background(), 0.02)
        child = ExecutionContext.with_cancel(parent)
        assert child.wait(1.0) is True
        assert isinstance(child.err(), ContextDeadlineExceeded)

    @pytest.mark.unit
    def test_child_timeout_does_not_end_parent(self) -> None:
        """A child's own deadline leaves the parent live."""
        parent = ExecutionContext.with_cancel(ExecutionContext.background())
        child = ExecutionContext.with_timeout(parent, 0.01)
        child.wait()
        assert isinstance(child.err(), ContextDeadlineExceeded)
        assert parent.err() is None

    @pytest.mark.unit
    def test_remaining_decreases(self) -> None:
        """remaining() reports the time left, never negative."""
        ctx = ExecutionContext.with_timeout(ExecutionContext.background(), 10)
        remaining = ctx.remaining()
        assert remaining is not None
        assert 0 < remaining <= 10


class TestWait:
    """Tests for abortable waits."""

    @pytest.mark.unit
    def test_wait_elapses_without_end(self) -> None:
        """A wait shorter than the context's life returns False."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        start = time.monotonic()
        assert ctx.wait(0.05) is False
        assert time.monotonic() - start >= 0.04

    @pytest.mark.unit
    def test_wait_aborted_by_cancel(self) -> None:
        """Cancelling from another thread wakes a waiter early."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        threading.Timer(0.02, ctx.cancel).start()
        start = time.monotonic()
        assert ctx.wait(5.0) is True
        assert time.monotonic() - start < 2.0


class TestHelpers:
    """Tests for classification helpers."""

    @pytest.mark.unit
    def test_check_context_live(self) -> None:
        """A live context yields no error."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        assert check_context(ctx, "mysql", "list_tables") is None
        assert wrap_context_error(ctx, "mysql", "list_tables") is None

    @pytest.mark.unit
    def test_check_context_cancelled(self) -> None:
        """Explicit cancellation is classified as CANCELLED."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        ctx.cancel()
        err = check_context(ctx, "mysql", "list_tables")
        assert isinstance(err, OperationCancelledError)
        assert err.code == ErrorCode.CANCELLED
        assert err.source == "mysql"
        assert err.operation == "list_tables"
        assert isinstance(err.cause, ContextCancelled)

    @pytest.mark.unit
    def test_wrap_context_error_deadline(self) -> None:
        """An elapsed deadline is classified as DEADLINE_EXCEEDED."""
        ctx = ExecutionContext.with_timeout(ExecutionContext.background(), 0)
        err = wrap_context_error(ctx, "hive", "fetch_table_statistics")
        assert isinstance(err, DeadlineExceededError)
        assert err.retryable is True

    @pytest.mark.unit
    def test_predicates(self) -> None:
        """Predicates accept raw context errors and classified errors."""
        assert is_cancelled(ContextCancelled())
        assert is_cancelled(OperationCancelledError("mysql", "x"))
        assert is_deadline_exceeded(ContextDeadlineExceeded())
        assert is_deadline_exceeded(DeadlineExceededError("mysql", "x"))
        assert is_context_error(ContextCancelled())
        assert is_context_error(DeadlineExceededError("mysql", "x"))
        assert not is_context_error(NetworkError("mysql", "x"))
        assert not is_context_error(ValueError("x"))
        assert not is_context_error(None)
