"""Batch operations with partial failure handling.

A batch never stops early: every input item ends up either as a result or
as a FailureItem, so callers always get an exact account of what was
collected and what was not.
"""

import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict

from metaingest.collectors.base import Collector
from metaingest.collectors.context import (
    ContextError,
    ExecutionContext,
    check_context,
    wrap_context_error,
)
from metaingest.collectors.errors import get_error_code
from metaingest.collectors.metrics import CollectorMetrics
from metaingest.collectors.models import PartitionInfo, TableMetadata, TableStatistics
from metaingest.config.schemas.retry import RetryConfig
from metaingest.matcher.matcher import RuleMatcher
from metaingest.retry.retry import call_with_retry


logger = structlog.get_logger()

T = TypeVar("T")


class FailureItem(BaseModel):
    """One item a batch failed to process.

    Attributes:
        item: Item identifier (catalog.schema.table, or a catalog name).
        error: Error message.
        error_code: Error code, empty when the error was not classified.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    item: str
    error: str
    error_code: str = ""


class PartialResult(Generic[T]):
    """Results and failures of a batch operation.

    Invariant: total_count == success_count + failure_count
    == len(results) + len(failures). Mutations are atomic; once frozen by the
    batch that produced it, the result can no longer be modified.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: list[T] = []
        self._failures: list[FailureItem] = []
        self._frozen = False

    def add_result(self, result: T) -> None:
        """Record a successful item.

        Raises:
            RuntimeError: If the result has been frozen.
        """
        with self._lock:
            self._ensure_mutable()
            self._results.append(result)

    def add_failure(self, item: str, error: BaseException) -> None:
        """Record a failed item.

        Args:
            item: Item identifier.
            error: The failure; its code is recorded when classified.

        Raises:
            RuntimeError: If the result has been frozen.
        """
        code = get_error_code(error)
        failure = FailureItem(
            item=item,
            error=str(error),
            error_code=code.value if code is not None else "",
        )
        with self._lock:
            self._ensure_mutable()
            self._failures.append(failure)

    def freeze(self) -> None:
        """Make the result read-only."""
        with self._lock:
            self._frozen = True

    def _ensure_mutable(self) -> None:
        if self._frozen:
            msg = "PartialResult is frozen"
            raise RuntimeError(msg)

    @property
    def frozen(self) -> bool:
        """Check if the result is read-only."""
        return self._frozen

    @property
    def results(self) -> tuple[T, ...]:
        """Get successful results in processing order."""
        with self._lock:
            return tuple(self._results)

    @property
    def failures(self) -> tuple[FailureItem, ...]:
        """Get failures in processing order."""
        with self._lock:
            return tuple(self._failures)

    @property
    def success_count(self) -> int:
        """Get the number of successful items."""
        with self._lock:
            return len(self._results)

    @property
    def failure_count(self) -> int:
        """Get the number of failed items."""
        with self._lock:
            return len(self._failures)

    @property
    def total_count(self) -> int:
        """Get the number of processed items."""
        with self._lock:
            return len(self._results) + len(self._failures)

    def has_failures(self) -> bool:
        """Check if any item failed."""
        return self.failure_count > 0

    def is_complete(self) -> bool:
        """Check if every item succeeded."""
        return self.failure_count == 0

    def failed_items(self) -> list[str]:
        """Get identifiers of failed items."""
        return [f.item for f in self.failures]

    def to_dict(self) -> dict[str, object]:
        """Export counts and failures (results are left to the caller)."""
        with self._lock:
            return {
                "total_count": len(self._results) + len(self._failures),
                "success_count": len(self._results),
                "failure_count": len(self._failures),
                "failures": [f.model_dump() for f in self._failures],
            }

    def __repr__(self) -> str:
        return (
            f"PartialResult(success_count={self.success_count}, "
            f"failure_count={self.failure_count})"
        )


class BatchCollector:
    """Runs a collector operation over many items, tolerating failures.

    Provides:
    - Per-item failure isolation (one table failing doesn't stop others)
    - Context polling before each item; once the context ends, the
      remaining items are recorded as failures without calling the driver
    - Optional per-item retries for transient failures
    - Optional table-name scoping before any call is made
    """

    def __init__(
        self,
        collector: Collector,
        source: str,
        *,
        retry_config: RetryConfig | None = None,
        table_matcher: RuleMatcher | None = None,
    ) -> None:
        """Initialize the batch collector.

        Args:
            collector: Driver to invoke.
            source: Source type for errors, logs and metrics.
            retry_config: Retry policy for each per-item call; None disables
                retries.
            table_matcher: Scoping rule applied to table names; names it
                rejects are dropped and not counted.
        """
        self._collector = collector
        self._source = source
        self._retry_config = retry_config
        self._table_matcher = table_matcher
        self._metrics = CollectorMetrics.get_instance()
        self._log = logger.bind(component="batch", source=source)

    @property
    def collector(self) -> Collector:
        """Get the wrapped collector."""
        return self._collector

    def fetch_all_table_metadata(
        self,
        ctx: ExecutionContext,
        catalog: str,
        schema: str,
        tables: list[str],
    ) -> PartialResult[TableMetadata]:
        """Fetch metadata for multiple tables.

        Args:
            ctx: Execution context.
            catalog: Catalog name.
            schema: Schema name.
            tables: Table names, processed in order.

        Returns:
            Frozen PartialResult with one entry per in-scope table.
        """
        return self._run_tables(
            ctx,
            "fetch_all_table_metadata",
            catalog,
            schema,
            tables,
            self._collector.fetch_table_metadata,
        )

    def fetch_all_table_statistics(
        self,
        ctx: ExecutionContext,
        catalog: str,
        schema: str,
        tables: list[str],
    ) -> PartialResult[TableStatistics]:
        """Fetch statistics for multiple tables.

        Returns:
            Frozen PartialResult with one entry per in-scope table.
        """
        return self._run_tables(
            ctx,
            "fetch_all_table_statistics",
            catalog,
            schema,
            tables,
            self._collector.fetch_table_statistics,
        )

    def fetch_all_partitions(
        self,
        ctx: ExecutionContext,
        catalog: str,
        schema: str,
        tables: list[str],
    ) -> PartialResult[list[PartitionInfo]]:
        """Fetch partition information for multiple tables.

        Returns:
            Frozen PartialResult with one partition list per in-scope table.
        """
        return self._run_tables(
            ctx,
            "fetch_all_partitions",
            catalog,
            schema,
            tables,
            self._collector.fetch_partitions,
        )

    def list_all_schemas(
        self, ctx: ExecutionContext, catalogs: list[str]
    ) -> PartialResult[list[str]]:
        """List schemas for multiple catalogs.

        Item identifiers are the catalog names.

        Returns:
            Frozen PartialResult with one schema list per catalog.
        """
        items: list[tuple[str, Callable[[ExecutionContext], list[str]]]] = [
            (catalog, self._bind_catalog(catalog)) for catalog in catalogs
        ]
        return self._run(ctx, "list_all_schemas", items)

    def _bind_catalog(self, catalog: str) -> Callable[[ExecutionContext], list[str]]:
        def call(ctx: ExecutionContext) -> list[str]:
            return self._collector.list_schemas(ctx, catalog)

        return call

    def _run_tables(  # noqa: PLR0913
        self,
        ctx: ExecutionContext,
        operation: str,
        catalog: str,
        schema: str,
        tables: list[str],
        fetch: Callable[[ExecutionContext, str, str, str], T],
    ) -> PartialResult[T]:
        if self._table_matcher is not None:
            in_scope = self._table_matcher.filter(tables)
            if len(in_scope) != len(tables):
                self._log.debug(
                    "batch_tables_filtered",
                    operation=operation,
                    dropped_count=len(tables) - len(in_scope),
                )
            tables = in_scope

        def bind(table: str) -> Callable[[ExecutionContext], T]:
            def call(ctx: ExecutionContext) -> T:
                return fetch(ctx, catalog, schema, table)

            return call

        items = [(f"{catalog}.{schema}.{table}", bind(table)) for table in tables]
        return self._run(ctx, operation, items)

    def _run(
        self,
        ctx: ExecutionContext,
        operation: str,
        items: list[tuple[str, Callable[[ExecutionContext], T]]],
    ) -> PartialResult[T]:
        """Process items in order, recording each as a result or a failure."""
        start_time_ns = time.perf_counter_ns()
        result: PartialResult[T] = PartialResult()
        log = self._log.bind(operation=operation)
        log.info("batch_started", item_count=len(items))

        for item, call in items:
            ctx_err = check_context(ctx, self._source, operation)
            if ctx_err is not None:
                result.add_failure(item, ctx_err)
                self._metrics.record_failure(self._source, ctx_err.code)
                continue

            try:
                value = self._invoke(ctx, operation, call)
            except Exception as e:  # noqa: BLE001
                error: BaseException = e
                if isinstance(e, ContextError):
                    error = wrap_context_error(ctx, self._source, operation) or e
                result.add_failure(item, error)
                self._metrics.record_failure(self._source, get_error_code(error))
                log.warning("batch_item_failed", item=item, error=str(error))
                continue

            result.add_result(value)

        result.freeze()
        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_success(self._source, operation, result.success_count)
        self._metrics.record_duration(self._source, operation, duration_ms)

        log.info(
            "batch_complete",
            total_count=result.total_count,
            success_count=result.success_count,
            failure_count=result.failure_count,
            duration_ms=round(duration_ms, 2),
        )
        return result

    def _invoke(
        self,
        ctx: ExecutionContext,
        operation: str,
        call: Callable[[ExecutionContext], T],
    ) -> T:
        if self._retry_config is None:
            return call(ctx)
        return call_with_retry(
            ctx,
            self._retry_config,
            call,
            source=self._source,
            operation=operation,
        )
