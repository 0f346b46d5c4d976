"""In-memory collector used across tests."""

from collections.abc import Callable

from metaingest.collectors.base import BaseCollector
from metaingest.collectors.context import ExecutionContext
from metaingest.collectors.errors import ConnectionClosedError, NotFoundError
from metaingest.collectors.models import (
    CatalogInfo,
    Column,
    HealthStatus,
    ListOptions,
    PartitionInfo,
    TableListResult,
    TableMetadata,
    TableStatistics,
)


class FakeCollector(BaseCollector):
    """Collector serving a fixed catalog/schema/table tree.

    Attributes:
        calls: (operation, item) for every driver call, in order.
    """

    def __init__(
        self,
        source_type: str = "mysql",
        *,
        tree: dict[str, dict[str, list[str]]] | None = None,
        failures: dict[str, BaseException] | None = None,
        flaky: dict[str, list[BaseException]] | None = None,
        on_call: Callable[[str, str], None] | None = None,
        **kwargs: object,
    ) -> None:
        """Initialize the fake.

        Args:
            source_type: Source type reported by the collector.
            tree: catalog -> schema -> table names.
            failures: item -> error raised on every call for that item.
            flaky: item -> errors raised on successive calls, then success.
            on_call: Hook invoked with (operation, item) before each call.
            **kwargs: Passed to BaseCollector.
        """
        super().__init__(source_type, **kwargs)  # type: ignore[arg-type]
        self._tree = tree or {"db": {"public": ["users", "orders", "items"]}}
        self._failures = failures or {}
        self._flaky = {k: list(v) for k, v in (flaky or {}).items()}
        self._on_call = on_call
        self.connected = False
        self.closed = False
        self.calls: list[tuple[str, str]] = []

    def _enter(self, operation: str, item: str) -> None:
        self.calls.append((operation, item))
        if self.closed:
            raise ConnectionClosedError(self.source_type, operation)
        if self._on_call is not None:
            self._on_call(operation, item)
        if item in self._failures:
            raise self._failures[item]
        pending = self._flaky.get(item)
        if pending:
            raise pending.pop(0)

    def connect(self, ctx: ExecutionContext) -> None:
        self.check_context(ctx, "connect")
        self.connected = True

    def close(self) -> None:
        self.closed = True

    def health_check(self, ctx: ExecutionContext) -> HealthStatus:
        return HealthStatus(connected=self.connected and not self.closed)

    def discover_catalogs(self, ctx: ExecutionContext) -> list[CatalogInfo]:
        self._enter("discover_catalogs", "")
        return [CatalogInfo(catalog=name, type="database") for name in self._tree]

    def list_schemas(self, ctx: ExecutionContext, catalog: str) -> list[str]:
        self._enter("list_schemas", catalog)
        if catalog not in self._tree:
            raise NotFoundError(self.source_type, "list_schemas", catalog)
        return list(self._tree[catalog])

    def list_tables(
        self,
        ctx: ExecutionContext,
        catalog: str,
        schema: str,
        opts: ListOptions | None = None,
    ) -> TableListResult:
        self._enter("list_tables", f"{catalog}.{schema}")
        names = self._tree.get(catalog, {}).get(schema, [])
        names = self.filter_names(names, opts.filter if opts else None)
        return TableListResult(tables=names, total_count=len(names))

    def fetch_table_metadata(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> TableMetadata:
        item = f"{catalog}.{schema}.{table}"
        self._enter("fetch_table_metadata", item)
        return TableMetadata(
            source_category=self.category,
            source_type=self.source_type,
            catalog=catalog,
            schema=schema,
            name=table,
            columns=[Column(ordinal_position=1, name="id", type="bigint")],
        )

    def fetch_table_statistics(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> TableStatistics:
        self._enter("fetch_table_statistics", f"{catalog}.{schema}.{table}")
        return TableStatistics(row_count=100, data_size_bytes=4096)

    def fetch_partitions(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> list[PartitionInfo]:
        self._enter("fetch_partitions", f"{catalog}.{schema}.{table}")
        return [PartitionInfo(name="p0", type="RANGE", columns=["id"])]
