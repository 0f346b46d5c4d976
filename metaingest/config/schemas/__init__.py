"""Configuration schema definitions."""

from metaingest.config.schemas.connector import (
    CollectOptions,
    ColumnStatsOptions,
    ConnectionProps,
    ConnectorConfig,
    ConnectorsConfig,
    Credentials,
    StatisticsConfig,
    StatisticsLevel,
)
from metaingest.config.schemas.matching import MatchingConfig, MatchingRule, PatternType
from metaingest.config.schemas.retry import RetryConfig


__all__ = [
    "CollectOptions",
    "ColumnStatsOptions",
    "ConnectionProps",
    "ConnectorConfig",
    "ConnectorsConfig",
    "Credentials",
    "MatchingConfig",
    "MatchingRule",
    "PatternType",
    "RetryConfig",
    "StatisticsConfig",
    "StatisticsLevel",
]
