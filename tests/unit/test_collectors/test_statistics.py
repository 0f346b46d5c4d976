"""Unit tests for bounded-time statistics collection."""

import threading
import time
from collections.abc import Generator

import pytest

from metaingest.collectors.context import ExecutionContext
from metaingest.collectors.errors import (
    DeadlineExceededError,
    ErrorCode,
    OperationCancelledError,
    QueryError,
)
from metaingest.collectors.metrics import CollectorMetrics
from metaingest.collectors.models import TableStatistics
from metaingest.collectors.statistics import (
    WARNING_NO_DATA,
    WARNING_PARTIAL,
    StatisticsCollector,
    fetch_table_statistics_with_timeout,
    get_statistics_timeout,
)
from tests.helpers.fake_collector import FakeCollector


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None]:
    """Reset singleton before and after each test."""
    CollectorMetrics.reset()
    yield
    CollectorMetrics.reset()


def cooperative(rows_per_tick: int = 10, tick: float = 0.005):
    """Build a collect function that counts rows until its context ends."""

    def collect(ctx: ExecutionContext) -> TableStatistics:
        rows = 0
        while not ctx.wait(tick):
            rows += rows_per_tick
        return TableStatistics(row_count=rows)

    return collect


class TestGetStatisticsTimeout:
    """Tests for timeout conversion."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, 0.0), (-5, 0.0), (30, 30.0), (1, 1.0)],
    )
    def test_conversion(self, seconds: int, expected: float) -> None:
        """Non-positive budgets disable the timeout."""
        assert get_statistics_timeout(seconds) == expected


class TestEndedContext:
    """Tests for calls made with a context that already ended."""

    @pytest.mark.unit
    @pytest.mark.parametrize("timeout", [0, 5.0])
    def test_cancelled_context_skips_driver(self, timeout: float) -> None:
        """A cancelled context raises CANCELLED without calling the driver."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        ctx.cancel()
        calls: list[ExecutionContext] = []

        def collect(inner: ExecutionContext) -> TableStatistics:
            calls.append(inner)
            return TableStatistics(row_count=1)

        with pytest.raises(OperationCancelledError):
            StatisticsCollector(timeout, "mysql").collect_with_timeout(ctx, collect)
        assert calls == []

    @pytest.mark.unit
    @pytest.mark.parametrize("timeout", [0, 5.0])
    def test_expired_context_skips_driver(self, timeout: float) -> None:
        """An expired deadline raises DEADLINE_EXCEEDED without calling the driver."""
        ctx = ExecutionContext.with_timeout(ExecutionContext.background(), 0)
        collector = FakeCollector()

        with pytest.raises(DeadlineExceededError):
            fetch_table_statistics_with_timeout(
                ctx, collector, "db", "public", "users", timeout, "mysql"
            )
        assert collector.calls == []
        assert CollectorMetrics.get_instance().get_soft_timeouts("mysql") == 0


class TestUnbounded:
    """Tests with the time bound disabled."""

    @pytest.mark.unit
    def test_returns_complete_result(self) -> None:
        """Without a bound, the call's result is complete."""
        sc = StatisticsCollector(0, "mysql")
        result = sc.collect_with_timeout(
            ExecutionContext.background(), lambda ctx: TableStatistics(row_count=5)
        )
        assert result.statistics is not None
        assert result.statistics.row_count == 5
        assert not result.is_partial
        assert not result.timeout_reached
        assert result.warning == ""
        assert result.collection_duration >= 0

    @pytest.mark.unit
    def test_driver_error_propagates(self) -> None:
        """Driver failures propagate unchanged."""
        error = QueryError("mysql", "fetch_table_statistics")

        def fail(ctx: ExecutionContext) -> TableStatistics:
            raise error

        with pytest.raises(QueryError) as exc_info:
            StatisticsCollector(0, "mysql").collect_with_timeout(
                ExecutionContext.background(), fail
            )
        assert exc_info.value is error

    @pytest.mark.unit
    def test_failure_after_cancel_is_classified(self) -> None:
        """A failure while the caller's context ended raises CANCELLED."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())

        def fail(inner: ExecutionContext) -> TableStatistics:
            inner.cancel()
            raise RuntimeError("driver aborted")

        with pytest.raises(OperationCancelledError) as exc_info:
            StatisticsCollector(0, "mysql").collect_with_timeout(ctx, fail)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestBounded:
    """Tests with a soft time bound."""

    @pytest.mark.unit
    def test_fast_call_is_complete(self) -> None:
        """A call finishing within the bound yields a complete result."""
        sc = StatisticsCollector(5.0, "mysql")
        result = sc.collect_with_timeout(
            ExecutionContext.background(), lambda ctx: TableStatistics(row_count=9)
        )
        assert result.statistics is not None
        assert result.statistics.row_count == 9
        assert not result.is_partial
        assert not result.timeout_reached

    @pytest.mark.unit
    def test_soft_timeout_with_partial_data(self) -> None:
        """A cooperative driver's progress is returned as partial."""
        sc = StatisticsCollector(0.05, "mysql")
        result = sc.collect_with_timeout(ExecutionContext.background(), cooperative())
        assert result.is_partial
        assert result.timeout_reached
        assert result.warning
        assert result.statistics is not None
        assert result.collection_duration >= 0.04

    @pytest.mark.unit
    def test_soft_timeout_without_data(self) -> None:
        """A driver that never returns yields empty partial statistics."""
        release = threading.Event()

        def stuck(ctx: ExecutionContext) -> TableStatistics:
            release.wait(2.0)
            return TableStatistics(row_count=1)

        start = time.monotonic()
        try:
            result = StatisticsCollector(0.05, "mysql").collect_with_timeout(
                ExecutionContext.background(), stuck
            )
        finally:
            release.set()

        assert time.monotonic() - start < 1.0
        assert result.is_partial
        assert result.timeout_reached
        assert result.warning == WARNING_NO_DATA
        assert result.statistics is not None
        assert result.statistics.row_count == 0
        assert result.statistics.collected_at is not None

    @pytest.mark.unit
    def test_driver_context_error_after_bound_is_soft(self) -> None:
        """A driver raising on its ended context still yields a partial result."""

        def abort(ctx: ExecutionContext) -> TableStatistics:
            ctx.wait()
            raise DeadlineExceededError("mysql", "fetch_table_statistics")

        result = StatisticsCollector(0.02, "mysql").collect_with_timeout(
            ExecutionContext.background(), abort
        )
        assert result.is_partial
        assert result.timeout_reached

    @pytest.mark.unit
    def test_other_driver_error_propagates(self) -> None:
        """Non-context driver failures propagate unchanged."""

        def fail(ctx: ExecutionContext) -> TableStatistics:
            raise QueryError("mysql", "fetch_table_statistics")

        with pytest.raises(QueryError):
            StatisticsCollector(5.0, "mysql").collect_with_timeout(
                ExecutionContext.background(), fail
            )

    @pytest.mark.unit
    def test_caller_cancellation_is_hard(self) -> None:
        """Cancelling the caller's context raises CANCELLED, not a partial result."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        threading.Timer(0.02, ctx.cancel).start()

        with pytest.raises(OperationCancelledError) as exc_info:
            StatisticsCollector(5.0, "mysql").collect_with_timeout(ctx, cooperative())
        assert exc_info.value.code == ErrorCode.CANCELLED
        assert exc_info.value.operation == "fetch_table_statistics"

    @pytest.mark.unit
    def test_caller_deadline_is_hard(self) -> None:
        """The caller's own deadline raises DEADLINE_EXCEEDED."""
        ctx = ExecutionContext.with_timeout(ExecutionContext.background(), 0.03)
        with pytest.raises(DeadlineExceededError):
            StatisticsCollector(5.0, "mysql").collect_with_timeout(ctx, cooperative())

    @pytest.mark.unit
    def test_soft_timeout_leaves_caller_live(self) -> None:
        """The soft bound never ends the caller's context."""
        ctx = ExecutionContext.with_cancel(ExecutionContext.background())
        StatisticsCollector(0.02, "mysql").collect_with_timeout(ctx, cooperative())
        assert ctx.err() is None

    @pytest.mark.unit
    def test_soft_timeout_recorded(self) -> None:
        """Soft timeouts are counted for the source."""
        StatisticsCollector(0.02, "hive").collect_with_timeout(
            ExecutionContext.background(), cooperative()
        )
        assert CollectorMetrics.get_instance().get_soft_timeouts("hive") == 1


class TestFetchTableStatisticsWithTimeout:
    """Tests for the collector convenience wrapper."""

    @pytest.mark.unit
    def test_uses_collector(self) -> None:
        """The collector's statistics are returned for the table."""
        collector = FakeCollector()
        result = fetch_table_statistics_with_timeout(
            ExecutionContext.background(), collector, "db", "public", "users", 5.0, "mysql"
        )
        assert result.statistics is not None
        assert result.statistics.row_count == 100
        assert not result.is_partial
        assert collector.calls == [("fetch_table_statistics", "db.public.users")]

    @pytest.mark.unit
    def test_warning_texts(self) -> None:
        """Warning texts are distinct for partial and empty results."""
        assert WARNING_PARTIAL != WARNING_NO_DATA
        assert "partial" in WARNING_PARTIAL
