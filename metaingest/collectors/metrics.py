"""Metrics collection for the collection engine."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

from metaingest.collectors.errors import ErrorCode


# Module-level singleton state
_metrics_instance: "CollectorMetrics | None" = None
_metrics_lock: Lock = Lock()


def _escape_label(value: str) -> str:
    """Escape a label value for the Prometheus text format."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


@dataclass
class CollectorMetrics:
    """Thread-safe metrics for collection operations.

    Tracks per-item outcomes, retries, statistics soft timeouts and timing
    per source. Use get_instance() for singleton access.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    # Successful items by (source, operation)
    items_by_source_operation: Counter[tuple[str, str]] = field(
        default_factory=Counter
    )

    # Failed items by (source, error code); unclassified failures use "UNKNOWN"
    failures_by_source_code: Counter[tuple[str, str]] = field(default_factory=Counter)

    # Retries by source
    retries_by_source: Counter[str] = field(default_factory=Counter)

    # Statistics soft timeouts by source
    soft_timeouts_by_source: Counter[str] = field(default_factory=Counter)

    # Last batch duration by (source, operation) in milliseconds
    duration_by_source_operation: dict[tuple[str, str], float] = field(
        default_factory=dict
    )

    total_items: int = 0
    total_failures: int = 0
    total_retries: int = 0

    @classmethod
    def get_instance(cls) -> "CollectorMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared CollectorMetrics instance.
        """
        global _metrics_instance  # noqa: PLW0603
        if _metrics_instance is None:
            with _metrics_lock:
                if _metrics_instance is None:
                    _metrics_instance = cls()
        return _metrics_instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        global _metrics_instance  # noqa: PLW0603
        with _metrics_lock:
            _metrics_instance = None

    def record_success(self, source: str, operation: str, count: int = 1) -> None:
        """Record successfully collected items.

        Args:
            source: Source type.
            operation: Operation that produced the items.
            count: Number of items.
        """
        with self._lock:
            self.items_by_source_operation[(source, operation)] += count
            self.total_items += count

    def record_failure(self, source: str, code: ErrorCode | None) -> None:
        """Record a failed item.

        Args:
            source: Source type.
            code: Error code, or None for unclassified failures.
        """
        label = code.value if code is not None else "UNKNOWN"
        with self._lock:
            self.failures_by_source_code[(source, label)] += 1
            self.total_failures += 1

    def record_retry(self, source: str) -> None:
        """Record one retry attempt."""
        with self._lock:
            self.retries_by_source[source] += 1
            self.total_retries += 1

    def record_soft_timeout(self, source: str) -> None:
        """Record a statistics collection that hit its soft time bound."""
        with self._lock:
            self.soft_timeouts_by_source[source] += 1

    def record_duration(self, source: str, operation: str, duration_ms: float) -> None:
        """Record batch duration.

        Args:
            source: Source type.
            operation: Batch operation name.
            duration_ms: Duration in milliseconds.
        """
        with self._lock:
            self.duration_by_source_operation[(source, operation)] = duration_ms

    def get_items_total(self, source: str | None = None) -> int:
        """Get total successful items.

        Args:
            source: Optional source to filter by.

        Returns:
            Total item count.
        """
        with self._lock:
            if source is None:
                return self.total_items
            return sum(
                count
                for (src, _), count in self.items_by_source_operation.items()
                if src == source
            )

    def get_failures_total(self, source: str | None = None) -> int:
        """Get total failed items.

        Args:
            source: Optional source to filter by.

        Returns:
            Total failure count.
        """
        with self._lock:
            if source is None:
                return self.total_failures
            return sum(
                count
                for (src, _), count in self.failures_by_source_code.items()
                if src == source
            )

    def get_retries_total(self, source: str | None = None) -> int:
        """Get total retries, optionally for one source."""
        with self._lock:
            if source is None:
                return self.total_retries
            return self.retries_by_source[source]

    def get_soft_timeouts(self, source: str) -> int:
        """Get the number of statistics soft timeouts for a source."""
        with self._lock:
            return self.soft_timeouts_by_source[source]

    def get_duration(self, source: str, operation: str) -> float | None:
        """Get the last recorded duration for a source and operation.

        Returns:
            Duration in milliseconds, or None if not recorded.
        """
        with self._lock:
            return self.duration_by_source_operation.get((source, operation))

    def to_prometheus_format(self) -> str:
        """Export metrics in Prometheus text format.

        Returns:
            Prometheus-formatted metrics string.
        """
        lines: list[str] = []

        lines.append(
            "# HELP metaingest_items_total Items collected by source and operation"
        )
        lines.append("# TYPE metaingest_items_total counter")
        with self._lock:
            for (source, operation), count in sorted(
                self.items_by_source_operation.items()
            ):
                lines.append(
                    f'metaingest_items_total{{source="{_escape_label(source)}",operation="{_escape_label(operation)}"}} {count}'
                )

            lines.append(
                "# HELP metaingest_failures_total Failed items by source and error code"
            )
            lines.append("# TYPE metaingest_failures_total counter")
            for (source, code), count in sorted(self.failures_by_source_code.items()):
                lines.append(
                    f'metaingest_failures_total{{source="{_escape_label(source)}",code="{_escape_label(code)}"}} {count}'
                )

            lines.append("# HELP metaingest_retries_total Retry attempts by source")
            lines.append("# TYPE metaingest_retries_total counter")
            for source, count in sorted(self.retries_by_source.items()):
                lines.append(
                    f'metaingest_retries_total{{source="{_escape_label(source)}"}} {count}'
                )

            lines.append(
                "# HELP metaingest_statistics_soft_timeouts_total "
                "Statistics collections cut short by their time bound"
            )
            lines.append("# TYPE metaingest_statistics_soft_timeouts_total counter")
            for source, count in sorted(self.soft_timeouts_by_source.items()):
                lines.append(
                    f'metaingest_statistics_soft_timeouts_total{{source="{_escape_label(source)}"}} {count}'
                )

            lines.append(
                "# HELP metaingest_batch_duration_ms Batch duration by source and operation"
            )
            lines.append("# TYPE metaingest_batch_duration_ms gauge")
            for (source, operation), duration in sorted(
                self.duration_by_source_operation.items()
            ):
                lines.append(
                    f'metaingest_batch_duration_ms{{source="{_escape_label(source)}",operation="{_escape_label(operation)}"}} {duration:.2f}'
                )

        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        """Export metrics as dictionary.

        Returns:
            Dictionary representation of all metrics.
        """
        with self._lock:
            return {
                "total_items": self.total_items,
                "total_failures": self.total_failures,
                "total_retries": self.total_retries,
                "items_by_source_operation": dict(self.items_by_source_operation),
                "failures_by_source_code": dict(self.failures_by_source_code),
                "retries_by_source": dict(self.retries_by_source),
                "soft_timeouts_by_source": dict(self.soft_timeouts_by_source),
                "duration_by_source_operation": dict(
                    self.duration_by_source_operation
                ),
            }
