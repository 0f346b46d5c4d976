"""Error taxonomy for the collector framework.

Every failure surfaced by the engine is a CollectorError carrying a closed
ErrorCode. The code decides whether the failure is retryable; the retry
engine, the batch collector and the statistics wrapper all classify failures
through the helpers in this module.
"""

from enum import Enum

from metaingest.collectors.category import DataSourceCategory, get_category_by_type


class ErrorCode(str, Enum):
    """Closed set of collector error codes."""

    AUTH = "AUTH_ERROR"
    NETWORK = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    NOT_FOUND = "NOT_FOUND"
    UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"
    INVALID_CONFIG = "INVALID_CONFIG"
    QUERY = "QUERY_ERROR"
    PARSE = "PARSE_ERROR"
    CONNECTION_CLOSED = "CONNECTION_CLOSED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CANCELLED = "CANCELLED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    INFERENCE = "INFERENCE_ERROR"


# Codes whose failures are expected to succeed when re-invoked
RETRYABLE_CODES: frozenset[ErrorCode] = frozenset(
    {
        ErrorCode.NETWORK,
        ErrorCode.TIMEOUT,
        ErrorCode.DEADLINE_EXCEEDED,
    }
)


class CollectorError(Exception):
    """Base exception for classified collector failures.

    Provides structured error information (code, category, source,
    operation and wrapped cause) for retry decisions, logging and
    per-item failure reporting.
    """

    def __init__(  # noqa: PLR0913
        self,
        code: ErrorCode,
        message: str,
        source: str = "",
        operation: str = "",
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
        retryable: bool | None = None,
    ) -> None:
        """Initialize the collector error.

        Args:
            code: Classification of the error.
            message: Human-readable error message.
            source: Source type that produced the error (mysql, kafka, ...).
            operation: Operation that failed (connect, list_tables, ...).
            cause: Underlying exception, if any.
            category: Source category; inferred from source when omitted.
            retryable: Override for the code's retryable default.
        """
        self._code = code
        self._message = message
        self._source = source
        self._operation = operation
        self._cause = cause
        self._category = category if category is not None else get_category_by_type(
            source
        )
        self._retryable = code in RETRYABLE_CODES if retryable is None else retryable
        super().__init__(self._render())
        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> ErrorCode:
        """Get the error code."""
        return self._code

    @property
    def message(self) -> str:
        """Get the human-readable message (without cause)."""
        return self._message

    @property
    def source(self) -> str:
        """Get the source type that produced the error."""
        return self._source

    @property
    def operation(self) -> str:
        """Get the operation that failed."""
        return self._operation

    @property
    def cause(self) -> BaseException | None:
        """Get the wrapped underlying exception."""
        return self._cause

    @property
    def category(self) -> DataSourceCategory | None:
        """Get the source category."""
        return self._category

    @property
    def retryable(self) -> bool:
        """Check whether re-invoking the operation may succeed."""
        return self._retryable

    def _render(self) -> str:
        category = self._category.value if self._category is not None else ""
        context = (
            f"(category={category}, source={self._source}, "
            f"operation={self._operation})"
        )
        if self._cause is not None:
            return f"[{self._code.value}] {self._message}: {self._cause} {context}"
        return f"[{self._code.value}] {self._message} {context}"

    def matches(self, other: BaseException | None) -> bool:
        """Compare two errors for classification purposes.

        Only the code is compared; source, operation and cause are ignored.

        Args:
            other: Error to compare against.

        Returns:
            True if other is a CollectorError with the same code.
        """
        return isinstance(other, CollectorError) and other.code == self._code

    def to_dict(self) -> dict[str, str | bool | None]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "code": self._code.value,
            "message": self._message,
            "category": self._category.value if self._category is not None else None,
            "source": self._source,
            "operation": self._operation,
            "cause": str(self._cause) if self._cause is not None else None,
            "retryable": self._retryable,
        }


class AuthError(CollectorError):
    """Authentication against the data source failed."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.AUTH, "authentication failed", source, operation, cause, category
        )


class NetworkError(CollectorError):
    """Transient network failure while talking to the data source."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.NETWORK, "network error", source, operation, cause, category
        )


class OperationTimeoutError(CollectorError):
    """A driver-level operation timed out."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.TIMEOUT,
            "operation timed out",
            source,
            operation,
            cause,
            category,
        )


class NotFoundError(CollectorError):
    """A catalog, schema, table or other resource does not exist."""

    def __init__(  # noqa: PLR0913
        self,
        source: str,
        operation: str,
        resource: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.NOT_FOUND,
            f"resource not found: {resource}",
            source,
            operation,
            cause,
            category,
        )
        self.resource = resource


class UnsupportedFeatureError(CollectorError):
    """The driver does not support the requested capability."""

    def __init__(
        self,
        source: str,
        operation: str,
        feature: str,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.UNSUPPORTED_FEATURE,
            f"unsupported feature: {feature}",
            source,
            operation,
            None,
            category,
        )
        self.feature = feature


class InvalidConfigError(CollectorError):
    """Configuration rejected before any call was made."""

    def __init__(
        self,
        source: str,
        field: str,
        reason: str,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.INVALID_CONFIG,
            f"invalid configuration: {field} - {reason}",
            source,
            "validate_config",
            None,
            category,
        )
        self.field = field
        self.reason = reason


class QueryError(CollectorError):
    """A metadata query failed on the data source."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.QUERY,
            "query execution failed",
            source,
            operation,
            cause,
            category,
        )


class ParseError(CollectorError):
    """A response from the data source could not be parsed."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.PARSE,
            "failed to parse response",
            source,
            operation,
            cause,
            category,
        )


class ConnectionClosedError(CollectorError):
    """The collector was used after its connection was closed."""

    def __init__(
        self,
        source: str,
        operation: str,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.CONNECTION_CLOSED,
            "connection is closed",
            source,
            operation,
            None,
            category,
        )


class PermissionDeniedError(CollectorError):
    """The credentials lack access to the requested resource."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.PERMISSION_DENIED,
            "permission denied",
            source,
            operation,
            cause,
            category,
        )


class OperationCancelledError(CollectorError):
    """The execution context was explicitly cancelled."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.CANCELLED,
            "operation cancelled",
            source,
            operation,
            cause,
            category,
        )


class DeadlineExceededError(CollectorError):
    """The execution context's deadline elapsed."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.DEADLINE_EXCEEDED,
            "deadline exceeded",
            source,
            operation,
            cause,
            category,
        )


class InferenceError(CollectorError):
    """Schema inference from sampled data failed."""

    def __init__(
        self,
        source: str,
        operation: str,
        cause: BaseException | None = None,
        category: DataSourceCategory | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.INFERENCE,
            "schema inference failed",
            source,
            operation,
            cause,
            category,
        )


def as_collector_error(err: BaseException | None) -> CollectorError | None:
    """Find the first CollectorError on an exception's cause chain.

    Args:
        err: Exception to inspect (may be None).

    Returns:
        The CollectorError, or None if the chain holds none.
    """
    seen: set[int] = set()
    current = err
    while current is not None and id(current) not in seen:
        if isinstance(current, CollectorError):
            return current
        seen.add(id(current))
        current = current.__cause__
    return None


def error_is(err: BaseException | None, target: CollectorError) -> bool:
    """Check whether an error chain contains an error of the target's code."""
    found = as_collector_error(err)
    return found is not None and target.matches(found)


def is_retryable(err: BaseException | None) -> bool:
    """Check whether an error should trigger a retry.

    Unclassified errors (and None) are treated as permanent.

    Args:
        err: Error to classify.

    Returns:
        The retryable flag of the classified error, else False.
    """
    found = as_collector_error(err)
    return found.retryable if found is not None else False


def get_error_code(err: BaseException | None) -> ErrorCode | None:
    """Get the error code of a classified error, or None."""
    found = as_collector_error(err)
    return found.code if found is not None else None


def get_error_category(err: BaseException | None) -> DataSourceCategory | None:
    """Get the source category of a classified error, or None."""
    found = as_collector_error(err)
    return found.category if found is not None else None
