"""Bounded-time statistics collection.

Statistics queries (row counts, column profiles) can be slow on large
tables. The wrapper gives each collection a soft time bound: when only the
bound elapses, the caller gets whatever the driver produced, flagged as
partial, instead of an error. Cancellation or a deadline coming from the
caller's own context is never softened and is always raised.
"""

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass

import structlog

from metaingest.collectors.base import Collector
from metaingest.collectors.context import (
    ExecutionContext,
    is_context_error,
    wrap_context_error,
)
from metaingest.collectors.metrics import CollectorMetrics
from metaingest.collectors.models import TableStatistics


logger = structlog.get_logger()

OPERATION = "fetch_table_statistics"

WARNING_PARTIAL = "statistics collection timed out, returning partial results"
WARNING_NO_DATA = "statistics collection timed out before any data could be collected"


@dataclass(frozen=True)
class StatisticsResult:
    """Outcome of a bounded statistics collection.

    Attributes:
        statistics: Collected statistics; may be partial.
        is_partial: True when the time bound cut the collection short.
        timeout_reached: True when the time bound elapsed.
        warning: Explanation when the result is partial.
        collection_duration: Time spent, in seconds.
    """

    statistics: TableStatistics | None
    is_partial: bool = False
    timeout_reached: bool = False
    warning: str = ""
    collection_duration: float = 0.0


def get_statistics_timeout(seconds: int) -> float:
    """Convert a configured time budget to a timeout.

    Args:
        seconds: Configured budget in whole seconds.

    Returns:
        The budget as float seconds; 0.0 (no timeout) when not positive.
    """
    if seconds <= 0:
        return 0.0
    return float(seconds)


class StatisticsCollector:
    """Runs statistics collection under a soft time bound."""

    def __init__(self, timeout: float, source: str) -> None:
        """Initialize the statistics collector.

        Args:
            timeout: Soft time bound in seconds; <= 0 disables it.
            source: Source type for errors, logs and metrics.
        """
        self._timeout = timeout
        self._source = source
        self._metrics = CollectorMetrics.get_instance()
        self._log = logger.bind(component="statistics", source=source)

    @property
    def timeout(self) -> float:
        """Get the soft time bound in seconds."""
        return self._timeout

    def collect_with_timeout(
        self,
        ctx: ExecutionContext,
        collect_fn: Callable[[ExecutionContext], TableStatistics],
    ) -> StatisticsResult:
        """Run collect_fn, returning partial results if the bound elapses.

        collect_fn receives a context that ends when the bound elapses; it
        should poll it and return the statistics gathered so far.

        Args:
            ctx: Caller's execution context.
            collect_fn: Statistics collection function.

        Returns:
            StatisticsResult, partial if the bound elapsed.

        Raises:
            OperationCancelledError: If the caller's context was cancelled.
            DeadlineExceededError: If the caller's deadline elapsed.
            CollectorError: Any other driver failure, unchanged.
        """
        ctx_err = wrap_context_error(ctx, self._source, OPERATION)
        if ctx_err is not None:
            raise ctx_err

        if self._timeout <= 0:
            return self._collect_unbounded(ctx, collect_fn)

        start = time.monotonic()
        child = ExecutionContext.with_timeout(ctx, self._timeout)
        future: Future[TableStatistics] = Future()
        wake = threading.Event()
        future.add_done_callback(lambda _: wake.set())
        child.add_done_callback(wake.set)

        worker = threading.Thread(
            target=self._run_worker,
            args=(child, collect_fn, future),
            name=f"statistics-{self._source}",
            daemon=True,
        )
        worker.start()

        try:
            wake.wait()
            return self._resolve(ctx, child, future, time.monotonic() - start)
        finally:
            child.cancel()

    def _collect_unbounded(
        self,
        ctx: ExecutionContext,
        collect_fn: Callable[[ExecutionContext], TableStatistics],
    ) -> StatisticsResult:
        start = time.monotonic()
        try:
            stats = collect_fn(ctx)
        except Exception as e:
            ctx_err = wrap_context_error(ctx, self._source, OPERATION)
            if ctx_err is not None:
                raise ctx_err from e
            raise
        return StatisticsResult(
            statistics=stats,
            collection_duration=time.monotonic() - start,
        )

    @staticmethod
    def _run_worker(
        child: ExecutionContext,
        collect_fn: Callable[[ExecutionContext], TableStatistics],
        future: "Future[TableStatistics]",
    ) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            stats = collect_fn(child)
        except Exception as e:  # noqa: BLE001
            future.set_exception(e)
        else:
            future.set_result(stats)

    def _resolve(
        self,
        ctx: ExecutionContext,
        child: ExecutionContext,
        future: "Future[TableStatistics]",
        duration: float,
    ) -> StatisticsResult:
        """Decide the outcome once the call finished or the child ended."""
        driver_error = future.exception() if future.done() else None

        # Caller's context takes precedence over the soft bound
        ctx_err = wrap_context_error(ctx, self._source, OPERATION)
        if ctx_err is not None:
            if driver_error is not None:
                raise ctx_err from driver_error
            raise ctx_err

        timed_out = child.done()

        if future.done():
            if driver_error is not None:
                if timed_out and is_context_error(driver_error):
                    return self._soft_timeout(None, duration)
                raise driver_error
            stats = future.result()
            if timed_out:
                return self._soft_timeout(stats, duration)
            return StatisticsResult(statistics=stats, collection_duration=duration)

        return self._soft_timeout(None, duration)

    def _soft_timeout(
        self, stats: TableStatistics | None, duration: float
    ) -> StatisticsResult:
        self._metrics.record_soft_timeout(self._source)
        warning = WARNING_PARTIAL if stats is not None else WARNING_NO_DATA
        self._log.warning(
            "statistics_soft_timeout",
            timeout_seconds=self._timeout,
            duration_seconds=round(duration, 4),
            has_data=stats is not None,
        )
        return StatisticsResult(
            statistics=stats if stats is not None else TableStatistics(),
            is_partial=True,
            timeout_reached=True,
            warning=warning,
            collection_duration=duration,
        )


def fetch_table_statistics_with_timeout(  # noqa: PLR0913
    ctx: ExecutionContext,
    collector: Collector,
    catalog: str,
    schema: str,
    table: str,
    timeout: float,
    source: str,
) -> StatisticsResult:
    """Fetch one table's statistics under a soft time bound.

    Args:
        ctx: Caller's execution context.
        collector: Driver to invoke.
        catalog: Catalog name.
        schema: Schema name.
        table: Table name.
        timeout: Soft time bound in seconds; <= 0 disables it.
        source: Source type for errors and logs.

    Returns:
        StatisticsResult, partial if the bound elapsed.
    """

    def collect(child: ExecutionContext) -> TableStatistics:
        return collector.fetch_table_statistics(child, catalog, schema, table)

    return StatisticsCollector(timeout, source).collect_with_timeout(ctx, collect)
