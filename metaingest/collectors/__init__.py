"""Collector framework for extracting metadata from heterogeneous sources.

Batch, statistics and runner layers build on the retry engine and the
matcher; import them from their modules (metaingest.collectors.batch,
metaingest.collectors.statistics, metaingest.collectors.runner).
"""

from metaingest.collectors.base import BaseCollector, Collector
from metaingest.collectors.category import (
    CategoryInfo,
    DataSourceCategory,
    get_all_categories,
    get_category_by_type,
    get_category_info,
    is_valid_category,
)
from metaingest.collectors.context import (
    ContextCancelled,
    ContextDeadlineExceeded,
    ContextError,
    ExecutionContext,
    check_context,
    is_cancelled,
    is_context_error,
    is_deadline_exceeded,
    wrap_context_error,
)
from metaingest.collectors.error_hints import format_collector_error, get_error_hint
from metaingest.collectors.errors import (
    AuthError,
    CollectorError,
    ConnectionClosedError,
    DeadlineExceededError,
    ErrorCode,
    InferenceError,
    InvalidConfigError,
    NetworkError,
    NotFoundError,
    OperationCancelledError,
    OperationTimeoutError,
    ParseError,
    PermissionDeniedError,
    QueryError,
    UnsupportedFeatureError,
    as_collector_error,
    error_is,
    get_error_category,
    get_error_code,
    is_retryable,
)
from metaingest.collectors.metrics import CollectorMetrics
from metaingest.collectors.models import (
    CatalogInfo,
    Column,
    ColumnStats,
    HealthStatus,
    Index,
    ListOptions,
    PartitionInfo,
    StorageInfo,
    TableListResult,
    TableMetadata,
    TableStatistics,
    TableType,
    TopNItem,
)


__all__ = [
    "AuthError",
    "BaseCollector",
    "CatalogInfo",
    "CategoryInfo",
    "Collector",
    "CollectorError",
    "CollectorMetrics",
    "Column",
    "ColumnStats",
    "ConnectionClosedError",
    "ContextCancelled",
    "ContextDeadlineExceeded",
    "ContextError",
    "DataSourceCategory",
    "DeadlineExceededError",
    "ErrorCode",
    "ExecutionContext",
    "HealthStatus",
    "Index",
    "InferenceError",
    "InvalidConfigError",
    "ListOptions",
    "NetworkError",
    "NotFoundError",
    "OperationCancelledError",
    "OperationTimeoutError",
    "ParseError",
    "PartitionInfo",
    "PermissionDeniedError",
    "QueryError",
    "StorageInfo",
    "TableListResult",
    "TableMetadata",
    "TableStatistics",
    "TableType",
    "TopNItem",
    "UnsupportedFeatureError",
    "as_collector_error",
    "check_context",
    "error_is",
    "format_collector_error",
    "get_all_categories",
    "get_category_by_type",
    "get_category_info",
    "get_error_category",
    "get_error_code",
    "get_error_hint",
    "is_cancelled",
    "is_context_error",
    "is_deadline_exceeded",
    "is_retryable",
    "is_valid_category",
    "wrap_context_error",
]
