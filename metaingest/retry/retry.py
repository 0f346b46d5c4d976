"""Retry engine with exponential backoff for transient collector failures."""

import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from metaingest.collectors.context import ExecutionContext
from metaingest.collectors.errors import as_collector_error, is_retryable
from metaingest.collectors.metrics import CollectorMetrics
from metaingest.config.schemas.retry import RetryConfig


logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """Outcome of a retried call.

    Attributes:
        value: Return value of the successful attempt (None on failure).
        error: Final error, or None on success.
        attempts: Number of calls made; 1 means no retry occurred.
        total_duration: Wall time across all attempts and waits, in seconds.
    """

    value: T | None
    error: BaseException | None
    attempts: int
    total_duration: float

    @property
    def success(self) -> bool:
        """Check if the call eventually succeeded."""
        return self.error is None


def calculate_backoff(config: RetryConfig, attempt: int) -> float:
    """Calculate the wait before the next attempt.

    Args:
        config: Retry configuration.
        attempt: The attempt that just failed, counted from 1.

    Returns:
        Backoff in seconds, never negative.
    """
    backoff = config.initial_backoff
    # Saturates at max_backoff without evaluating multiplier ** n
    for _ in range(attempt - 1):
        if backoff >= config.max_backoff:
            break
        backoff *= config.multiplier
    backoff = min(backoff, config.max_backoff)

    if config.jitter > 0:
        spread = backoff * config.jitter
        backoff += random.uniform(-spread, spread)  # noqa: S311

    return max(0.0, backoff)


def with_retry(
    ctx: ExecutionContext,
    config: RetryConfig,
    fn: Callable[[ExecutionContext], T],
    *,
    source: str = "",
    operation: str = "",
) -> RetryResult[T]:
    """Call fn until it succeeds, fails permanently, or attempts run out.

    Exceptions raised by fn are captured in the result, never propagated.
    The context is polled before every attempt; once it has ended, its error
    is returned without calling fn again.
    A failure observed after the context ended is reported as the context's
    own error regardless of retryability, and so is a context that ends
    during a backoff wait.

    Args:
        ctx: Execution context governing the calls and waits.
        config: Retry configuration.
        fn: Callable receiving the context.
        source: Source type for logs and metrics.
        operation: Operation name for logs.

    Returns:
        RetryResult with the value or the final error.
    """
    start = time.monotonic()
    log = logger.bind(component="retry", source=source, operation=operation)
    metrics = CollectorMetrics.get_instance()
    last_error: BaseException | None = None
    attempt = 0

    while attempt < config.max_attempts:
        ctx_err = ctx.err()
        if ctx_err is not None:
            return RetryResult(
                value=None,
                error=ctx_err,
                attempts=attempt,
                total_duration=time.monotonic() - start,
            )

        attempt += 1
        try:
            value = fn(ctx)
        except Exception as e:  # noqa: BLE001
            last_error = e
        else:
            return RetryResult(
                value=value,
                error=None,
                attempts=attempt,
                total_duration=time.monotonic() - start,
            )

        ctx_err = ctx.err()
        if ctx_err is not None:
            return RetryResult(
                value=None,
                error=ctx_err,
                attempts=attempt,
                total_duration=time.monotonic() - start,
            )

        if not is_retryable(last_error) or attempt >= config.max_attempts:
            break

        backoff = calculate_backoff(config, attempt)
        classified = as_collector_error(last_error)
        metrics.record_retry(source or (classified.source if classified else ""))
        log.debug(
            "retry_attempt",
            attempt=attempt + 1,
            backoff_seconds=round(backoff, 4),
            max_retries=config.max_retries,
            error_code=classified.code.value if classified else None,
        )

        if ctx.wait(backoff):
            return RetryResult(
                value=None,
                error=ctx.err(),
                attempts=attempt,
                total_duration=time.monotonic() - start,
            )

    if attempt > 1:
        log.warning(
            "retry_exhausted",
            attempts=attempt,
            error=str(last_error),
        )

    return RetryResult(
        value=None,
        error=last_error,
        attempts=attempt,
        total_duration=time.monotonic() - start,
    )


def call_with_retry(
    ctx: ExecutionContext,
    config: RetryConfig,
    fn: Callable[[ExecutionContext], T],
    *,
    source: str = "",
    operation: str = "",
) -> T:
    """Call fn with retries and return its value.

    Raises:
        BaseException: The final error when all attempts fail.
    """
    result = with_retry(ctx, config, fn, source=source, operation=operation)
    if result.error is not None:
        raise result.error
    return result.value  # type: ignore[return-value]


def call_with_retry_simple(
    ctx: ExecutionContext,
    config: RetryConfig,
    fn: Callable[[ExecutionContext], object],
    *,
    source: str = "",
    operation: str = "",
) -> None:
    """Call a function that returns nothing, with retries.

    Raises:
        BaseException: The final error when all attempts fail.
    """
    call_with_retry(ctx, config, fn, source=source, operation=operation)
