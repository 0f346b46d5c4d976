"""Data source categories and the type-to-category catalog."""

from dataclasses import dataclass
from enum import Enum


class DataSourceCategory(str, Enum):
    """Classification of data sources by storage model.

    - RDBMS: Relational databases with structured schemas
    - DataWarehouse: Distributed/MPP warehouses with partitioned tables
    - DocumentDB: Schema-less document stores (schema must be inferred)
    - KeyValue: Key-value stores (key patterns, value types)
    - MessageQueue: Topics and queues, optionally with a schema registry
    - ObjectStorage: Buckets, object prefixes and file formats
    """

    RDBMS = "RDBMS"
    DATA_WAREHOUSE = "DataWarehouse"
    DOCUMENT_DB = "DocumentDB"
    KEY_VALUE = "KeyValue"
    MESSAGE_QUEUE = "MessageQueue"
    OBJECT_STORAGE = "ObjectStorage"


@dataclass(frozen=True)
class CategoryInfo:
    """Descriptive information about a data source category.

    Attributes:
        category: The category.
        display_name: Human-readable name.
        description: Short description of what is collected.
        types: Source types belonging to this category.
    """

    category: DataSourceCategory
    display_name: str
    description: str
    types: tuple[str, ...]


_ALL_CATEGORIES: tuple[CategoryInfo, ...] = (
    CategoryInfo(
        category=DataSourceCategory.RDBMS,
        display_name="Relational database",
        description="Structured schema, SQL queries",
        types=("mysql", "postgres", "oracle", "sqlserver"),
    ),
    CategoryInfo(
        category=DataSourceCategory.DATA_WAREHOUSE,
        display_name="Data warehouse / MPP",
        description="Distributed storage, partitioned tables",
        types=("hive", "clickhouse", "doris", "starrocks"),
    ),
    CategoryInfo(
        category=DataSourceCategory.DOCUMENT_DB,
        display_name="Document database",
        description="No fixed schema, requires inference",
        types=("mongodb", "elasticsearch"),
    ),
    CategoryInfo(
        category=DataSourceCategory.KEY_VALUE,
        display_name="Key-value store",
        description="Key patterns, data types",
        types=("redis", "etcd"),
    ),
    CategoryInfo(
        category=DataSourceCategory.MESSAGE_QUEUE,
        display_name="Message queue",
        description="Topics/queues, schema registry",
        types=("kafka", "rabbitmq", "rocketmq"),
    ),
    CategoryInfo(
        category=DataSourceCategory.OBJECT_STORAGE,
        display_name="Object storage",
        description="Buckets, object prefixes, file formats",
        types=("minio", "s3", "oss"),
    ),
)

_CATEGORY_BY_TYPE: dict[str, DataSourceCategory] = {
    type_name: info.category for info in _ALL_CATEGORIES for type_name in info.types
}


def get_all_categories() -> list[CategoryInfo]:
    """Get information about every known category.

    Returns:
        List of CategoryInfo in declaration order.
    """
    return list(_ALL_CATEGORIES)


def get_category_info(category: DataSourceCategory | str) -> CategoryInfo | None:
    """Look up the information for a category.

    Args:
        category: Category enum member or its string value.

    Returns:
        CategoryInfo, or None if the category is unknown.
    """
    for info in _ALL_CATEGORIES:
        if info.category == category:
            return info
    return None


def is_valid_category(category: DataSourceCategory | str) -> bool:
    """Check whether a category is one of the known categories."""
    return get_category_info(category) is not None


def get_category_by_type(type_name: str) -> DataSourceCategory | None:
    """Resolve the category a source type belongs to.

    Args:
        type_name: Source type such as "mysql" or "kafka".

    Returns:
        The owning category, or None for unknown types.
    """
    return _CATEGORY_BY_TYPE.get(type_name)
