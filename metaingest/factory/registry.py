"""Registry mapping source types to collector constructors."""

import threading
from collections.abc import Callable

import structlog

from metaingest.collectors.base import Collector
from metaingest.collectors.category import DataSourceCategory, is_valid_category
from metaingest.config.schemas.connector import ConnectorConfig


logger = structlog.get_logger()

CollectorCreator = Callable[[ConnectorConfig], Collector]


class FactoryError(Exception):
    """Raised when registering or creating a collector fails."""

    def __init__(
        self,
        operation: str,
        type_name: str,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            operation: Registry operation (register, create).
            type_name: Source type involved.
            message: Human-readable message.
            cause: Underlying exception, if any.
        """
        self.operation = operation
        self.type_name = type_name
        self.message = message
        self.cause = cause
        text = f"factory {operation} error for type '{type_name}': {message}"
        if cause is not None:
            text = f"{text}: {cause}"
        super().__init__(text)
        if cause is not None:
            self.__cause__ = cause


class CollectorRegistry:
    """Registry of collector creators, keyed by category and source type.

    Type names are unique across categories. Create one registry at
    application start, register drivers on it and pass it to whatever
    needs to build collectors.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._creators: dict[str, CollectorCreator] = {}
        self._categories: dict[str, DataSourceCategory] = {}
        self._log = logger.bind(component="registry")

    def register(
        self,
        category: DataSourceCategory,
        type_name: str,
        creator: CollectorCreator,
    ) -> None:
        """Register a collector type.

        Args:
            category: Category the type belongs to.
            type_name: Source type name.
            creator: Callable building a collector from a ConnectorConfig.

        Raises:
            FactoryError: If the category is invalid, the name is empty, the
                creator is not callable, or the type is already registered.
        """
        if not is_valid_category(category):
            raise FactoryError("register", type_name, f"invalid category: {category}")
        if not type_name.strip():
            raise FactoryError("register", type_name, "type name cannot be empty")
        if not callable(creator):
            raise FactoryError("register", type_name, "creator must be callable")

        with self._lock:
            if type_name in self._creators:
                existing = self._categories[type_name]
                raise FactoryError(
                    "register",
                    type_name,
                    f"type is already registered in category {existing.value}",
                )
            self._creators[type_name] = creator
            self._categories[type_name] = DataSourceCategory(category)

        self._log.debug(
            "collector_registered",
            type_name=type_name,
            category=DataSourceCategory(category).value,
        )

    def create(self, config: ConnectorConfig) -> Collector:
        """Build a collector for a connector configuration.

        Args:
            config: Validated connector configuration.

        Returns:
            A new, unconnected collector.

        Raises:
            FactoryError: If the type is unknown, registered under a different
                category, or the creator fails.
        """
        with self._lock:
            creator = self._creators.get(config.type)
            registered_category = self._categories.get(config.type)

        if creator is None or registered_category is None:
            all_types = self.list_all_types()
            if all_types:
                hint = f"; registered types are: {', '.join(all_types)}"
            else:
                hint = "; no collector types are registered"
            raise FactoryError("create", config.type, f"unknown collector type{hint}")

        if config.category is not None and config.category != registered_category:
            raise FactoryError(
                "create",
                config.type,
                f"category '{config.category.value}' does not match registered "
                f"category '{registered_category.value}'",
            )

        try:
            collector = creator(config)
        except Exception as e:
            raise FactoryError(
                "create", config.type, "failed to create collector", e
            ) from e

        self._log.info(
            "collector_created",
            connector_id=config.id,
            type_name=config.type,
            category=registered_category.value,
        )
        return collector

    def has_type(self, type_name: str) -> bool:
        """Check if a collector type is registered."""
        with self._lock:
            return type_name in self._creators

    def list_all_types(self) -> list[str]:
        """Get all registered types, sorted."""
        with self._lock:
            return sorted(self._creators)

    def list_by_category(self, category: DataSourceCategory) -> list[str]:
        """Get the registered types of one category, sorted."""
        with self._lock:
            return sorted(t for t, c in self._categories.items() if c == category)

    def list_types(self) -> dict[DataSourceCategory, list[str]]:
        """Get registered types grouped by category, each list sorted."""
        result: dict[DataSourceCategory, list[str]] = {}
        with self._lock:
            for type_name, category in self._categories.items():
                result.setdefault(category, []).append(type_name)
        return {category: sorted(types) for category, types in result.items()}
