"""Connector configuration schema."""

from enum import Enum
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

from metaingest.collectors.category import DataSourceCategory, get_category_by_type
from metaingest.config.schemas.matching import MatchingConfig
from metaingest.config.schemas.retry import RetryConfig


class StatisticsLevel(str, Enum):
    """Depth of statistics collection."""

    TABLE = "table"
    COLUMN = "column"
    FULL = "full"


class Credentials(BaseModel):
    """Credentials for connecting to a source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    user: str = ""
    password: SecretStr = SecretStr("")


class ConnectionProps(BaseModel):
    """Connection pool and timeout properties."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    connection_timeout: Annotated[int, Field(ge=0, le=3600)] = 30
    max_open_conns: Annotated[int, Field(ge=0)] = 10
    max_idle_conns: Annotated[int, Field(ge=0)] = 5
    conn_max_lifetime: Annotated[int, Field(ge=0)] = 3600
    extra: dict[str, str] = Field(default_factory=dict)


class CollectOptions(BaseModel):
    """Which optional metadata to collect."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    partitions: bool = True
    indexes: bool = True
    comments: bool = True
    statistics: bool = False


class ColumnStatsOptions(BaseModel):
    """Column statistics options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = False
    include_top_n: bool = False
    top_n_count: Annotated[int, Field(ge=0)] = 10
    include_min_max: bool = True
    include_avg: bool = True
    columns: list[str] = Field(
        default_factory=list, description="Columns to profile; empty means all"
    )


class StatisticsConfig(BaseModel):
    """Statistics collection configuration.

    Attributes:
        enabled: Whether statistics are collected.
        level: Depth of collection.
        max_time_seconds: Soft time budget per table; 0 disables the bound.
        max_rows: Row scan limit; 0 means unlimited.
        column_stats: Column statistics options.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = False
    level: StatisticsLevel = StatisticsLevel.TABLE
    max_time_seconds: Annotated[int, Field(ge=0)] = 0
    max_rows: Annotated[int, Field(ge=0)] = 0
    column_stats: ColumnStatsOptions | None = None

    @property
    def timeout(self) -> float:
        """Get the soft statistics timeout in seconds (0.0 = unbounded)."""
        from metaingest.collectors.statistics import get_statistics_timeout

        return get_statistics_timeout(self.max_time_seconds)


class ConnectorConfig(BaseModel):
    """Configuration for a single connector.

    Attributes:
        id: Unique identifier for the connector.
        type: Source type (mysql, postgres, hive, kafka, ...).
        category: Optional category; must agree with type when both are known.
        endpoint: host, host:port, or a URL-style connection string.
        credentials: Connection credentials.
        properties: Connection properties.
        matching: Include/exclude scoping rules.
        collect: Optional metadata toggles.
        statistics: Statistics collection options.
        retry: Retry policy for driver calls.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Annotated[str, Field(min_length=1, max_length=100, pattern=r"^[a-z0-9_-]+$")]
    type: Annotated[str, Field(min_length=1)]
    category: DataSourceCategory | None = None
    endpoint: Annotated[str, Field(min_length=1)]
    credentials: Credentials = Field(default_factory=Credentials)
    properties: ConnectionProps = Field(default_factory=ConnectionProps)
    matching: MatchingConfig | None = None
    collect: CollectOptions = Field(default_factory=CollectOptions)
    statistics: StatisticsConfig = Field(default_factory=StatisticsConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        """Normalize the source type to lowercase."""
        v = v.strip().lower()
        if not v:
            msg = "type is required"
            raise ValueError(msg)
        return v

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate host:port endpoints have a non-empty host and numeric port."""
        v = v.strip()
        if not v:
            msg = "endpoint is required"
            raise ValueError(msg)
        if "://" in v or ":" not in v:
            return v
        parts = v.split(":")
        if len(parts) != 2:  # noqa: PLR2004
            msg = "invalid host:port format"
            raise ValueError(msg)
        host, port = (p.strip() for p in parts)
        if not host:
            msg = "host cannot be empty"
            raise ValueError(msg)
        if not port.isdigit():
            msg = "port must be numeric"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_category_matches_type(self) -> "ConnectorConfig":
        """Ensure an explicit category agrees with the type's category."""
        expected = get_category_by_type(self.type)
        if self.category is not None and expected is not None:
            if expected != self.category:
                msg = (
                    f"category '{self.category.value}' does not match type "
                    f"'{self.type}' (expected category: '{expected.value}')"
                )
                raise ValueError(msg)
        return self

    @property
    def resolved_category(self) -> DataSourceCategory | None:
        """Get the explicit category, or the one inferred from the type."""
        return self.category or get_category_by_type(self.type)


class ConnectorsConfig(BaseModel):
    """Root configuration for connectors.yaml.

    Attributes:
        version: Schema version.
        connectors: Connector configurations.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    connectors: list[ConnectorConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "ConnectorsConfig":
        """Ensure all connector IDs are unique."""
        ids = [c.id for c in self.connectors]
        duplicates = [id_ for id_ in ids if ids.count(id_) > 1]
        if duplicates:
            msg = f"Duplicate connector IDs found: {set(duplicates)}"
            raise ValueError(msg)
        return self
