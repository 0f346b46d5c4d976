"""Collector contract and base class for data source drivers."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from metaingest.collectors.category import DataSourceCategory, get_category_by_type
from metaingest.collectors.context import ExecutionContext, check_context
from metaingest.collectors.models import (
    CatalogInfo,
    HealthStatus,
    ListOptions,
    PartitionInfo,
    TableListResult,
    TableMetadata,
    TableStatistics,
)
from metaingest.config.schemas.matching import MatchingRule, PatternType
from metaingest.matcher.matcher import RuleMatcher


if TYPE_CHECKING:
    from metaingest.config.schemas.connector import ConnectorConfig


@runtime_checkable
class Collector(Protocol):
    """Protocol for metadata collectors.

    A collector owns one connection to one data source. The engine only
    invokes this contract; every call receives the execution context and
    raises CollectorError subclasses on failure. A collector instance is
    used serially.
    """

    @property
    def category(self) -> DataSourceCategory | None:
        """Get the data source category."""
        ...

    @property
    def source_type(self) -> str:
        """Get the source type (mysql, kafka, ...)."""
        ...

    def connect(self, ctx: ExecutionContext) -> None:
        """Open the connection."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...

    def health_check(self, ctx: ExecutionContext) -> HealthStatus:
        """Check connectivity."""
        ...

    def discover_catalogs(self, ctx: ExecutionContext) -> list[CatalogInfo]:
        """List the catalogs the source exposes."""
        ...

    def list_schemas(self, ctx: ExecutionContext, catalog: str) -> list[str]:
        """List schema names in a catalog."""
        ...

    def list_tables(
        self,
        ctx: ExecutionContext,
        catalog: str,
        schema: str,
        opts: ListOptions | None = None,
    ) -> TableListResult:
        """List table names in a schema."""
        ...

    def fetch_table_metadata(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> TableMetadata:
        """Fetch structural metadata for one table."""
        ...

    def fetch_table_statistics(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> TableStatistics:
        """Fetch statistics for one table."""
        ...

    def fetch_partitions(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> list[PartitionInfo]:
        """Fetch partition information for one table."""
        ...


class BaseCollector(ABC):
    """Abstract base class for collectors.

    Provides identity (source type and category), context polling and name
    filtering shared by all driver implementations.
    """

    def __init__(
        self,
        source_type: str,
        *,
        category: DataSourceCategory | None = None,
        config: "ConnectorConfig | None" = None,
    ) -> None:
        """Initialize the base collector.

        Args:
            source_type: Source type such as "mysql".
            category: Category; inferred from source_type when omitted.
            config: Connector configuration the collector was built from.
        """
        self._source_type = source_type
        self._category = category or get_category_by_type(source_type)
        self._config = config

    @property
    def category(self) -> DataSourceCategory | None:
        """Get the data source category."""
        return self._category

    @property
    def source_type(self) -> str:
        """Get the source type."""
        return self._source_type

    @property
    def config(self) -> "ConnectorConfig | None":
        """Get the connector configuration, if any."""
        return self._config

    def check_context(self, ctx: ExecutionContext, operation: str) -> None:
        """Raise the classified context error if the context has ended.

        Args:
            ctx: Execution context to poll.
            operation: Operation name for the error.

        Raises:
            OperationCancelledError: If the context was cancelled.
            DeadlineExceededError: If the context's deadline elapsed.
        """
        err = check_context(ctx, self._source_type, operation)
        if err is not None:
            raise err

    def filter_names(
        self, names: Iterable[str], rule: MatchingRule | None
    ) -> list[str]:
        """Apply a ListOptions filter to a list of names.

        Uses the connector's pattern type and case sensitivity when a
        configuration is attached, else glob and case-insensitive.

        Args:
            names: Names to filter.
            rule: Include/exclude rule; None keeps every name.

        Returns:
            Matching names in input order.
        """
        if rule is None:
            return list(names)
        pattern_type = PatternType.GLOB
        case_sensitive = False
        if self._config is not None and self._config.matching is not None:
            pattern_type = self._config.matching.pattern_type
            case_sensitive = self._config.matching.case_sensitive
        matcher = RuleMatcher(
            rule, pattern_type, case_sensitive, source=self._source_type
        )
        return matcher.filter(names)

    @abstractmethod
    def connect(self, ctx: ExecutionContext) -> None:
        """Open the connection."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection."""

    @abstractmethod
    def health_check(self, ctx: ExecutionContext) -> HealthStatus:
        """Check connectivity."""

    @abstractmethod
    def discover_catalogs(self, ctx: ExecutionContext) -> list[CatalogInfo]:
        """List the catalogs the source exposes."""

    @abstractmethod
    def list_schemas(self, ctx: ExecutionContext, catalog: str) -> list[str]:
        """List schema names in a catalog."""

    @abstractmethod
    def list_tables(
        self,
        ctx: ExecutionContext,
        catalog: str,
        schema: str,
        opts: ListOptions | None = None,
    ) -> TableListResult:
        """List table names in a schema."""

    @abstractmethod
    def fetch_table_metadata(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> TableMetadata:
        """Fetch structural metadata for one table."""

    @abstractmethod
    def fetch_table_statistics(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> TableStatistics:
        """Fetch statistics for one table."""

    @abstractmethod
    def fetch_partitions(
        self, ctx: ExecutionContext, catalog: str, schema: str, table: str
    ) -> list[PartitionInfo]:
        """Fetch partition information for one table."""
