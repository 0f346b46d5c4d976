"""Normalized metadata models produced by collectors."""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from metaingest.collectors.category import DataSourceCategory
from metaingest.config.schemas.matching import MatchingRule


class TableType(str, Enum):
    """Kind of table-like object a source exposes."""

    TABLE = "TABLE"
    VIEW = "VIEW"
    EXTERNAL_TABLE = "EXTERNAL_TABLE"
    MATERIALIZED_VIEW = "MATERIALIZED_VIEW"
    COLLECTION = "COLLECTION"  # MongoDB
    TOPIC = "TOPIC"  # Kafka
    QUEUE = "QUEUE"  # RabbitMQ
    BUCKET = "BUCKET"  # Object storage
    KEYSPACE = "KEYSPACE"  # Redis
    INDEX = "INDEX"  # Elasticsearch


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MetadataModel(BaseModel):
    """Base model for collected metadata: immutable, no unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class Column(MetadataModel):
    """Column definition.

    Attributes:
        ordinal_position: 1-based position in the table.
        name: Column name.
        type: Normalized type name.
        source_type: Type name as reported by the source.
        nullable: Whether NULL values are allowed.
        raw: Source-specific extra attributes.
    """

    ordinal_position: Annotated[int, Field(ge=0)] = 0
    name: Annotated[str, Field(min_length=1)]
    type: str = ""
    source_type: str = ""
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    nullable: bool = True
    default: str | None = None
    comment: str = ""
    is_primary_key: bool = False
    is_partition_column: bool = False
    is_auto_increment: bool = False
    raw: dict[str, Any] = Field(default_factory=dict)


class Index(MetadataModel):
    """Index definition."""

    name: str
    columns: list[str] = Field(default_factory=list)
    unique: bool = False
    type: str = ""
    comment: str = ""


class PartitionInfo(MetadataModel):
    """Partition information."""

    name: str
    type: str = ""
    columns: list[str] = Field(default_factory=list)
    expression: str = ""
    values_count: Annotated[int, Field(ge=0)] = 0


class StorageInfo(MetadataModel):
    """Storage information (mainly for Hive and data lakes)."""

    format: str = ""
    location: str = ""
    input_format: str = ""
    output_format: str = ""
    serde: str = ""
    compressed: bool = False


class TopNItem(MetadataModel):
    """One entry of a top-N value frequency list."""

    value: Any
    count: Annotated[int, Field(ge=0)]


class ColumnStats(MetadataModel):
    """Per-column statistics."""

    name: str
    distinct_count: int | None = None
    null_count: int | None = None
    min: Any = None
    max: Any = None
    avg: float | None = None
    top_n: list[TopNItem] = Field(default_factory=list)


class TableStatistics(MetadataModel):
    """Table-level statistics.

    A negative row_count or data_size_bytes means the value is unknown.
    """

    row_count: int = 0
    data_size_bytes: int = 0
    partition_count: Annotated[int, Field(ge=0)] = 0
    column_stats: list[ColumnStats] = Field(default_factory=list)
    collected_at: datetime = Field(default_factory=_utcnow)


class TableMetadata(MetadataModel):
    """Normalized metadata for one table-like object."""

    source_category: DataSourceCategory | None = None
    source_type: str = ""
    catalog: str
    schema_name: str = Field(alias="schema")
    name: Annotated[str, Field(min_length=1)]
    type: TableType = TableType.TABLE
    comment: str = ""
    columns: list[Column] = Field(default_factory=list)
    partitions: list[PartitionInfo] = Field(default_factory=list)
    indexes: list[Index] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    storage: StorageInfo | None = None
    stats: TableStatistics | None = None
    properties: dict[str, str] = Field(default_factory=dict)
    last_refreshed_at: datetime = Field(default_factory=_utcnow)
    inferred_schema: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @property
    def qualified_name(self) -> str:
        """Get the catalog.schema.name identifier."""
        return f"{self.catalog}.{self.schema_name}.{self.name}"


class CatalogInfo(MetadataModel):
    """A catalog (database, cluster, keyspace...) exposed by a source."""

    catalog: str
    type: str = ""
    description: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class HealthStatus(MetadataModel):
    """Result of a collector health check.

    Attributes:
        connected: Whether the source is reachable.
        latency_ms: Round-trip latency in milliseconds.
        version: Server version reported by the source.
        message: Optional diagnostic message.
    """

    connected: bool
    latency_ms: Annotated[float, Field(ge=0.0)] = 0.0
    version: str = ""
    message: str = ""


class ListOptions(MetadataModel):
    """Paging and filtering options for listing tables."""

    page_token: str = ""
    page_size: Annotated[int, Field(ge=0)] = 0
    filter: MatchingRule | None = None


class TableListResult(MetadataModel):
    """One page of table names."""

    tables: list[str] = Field(default_factory=list)
    next_page_token: str = ""
    total_count: Annotated[int, Field(ge=0)] = 0
