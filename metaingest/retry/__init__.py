"""Retry engine distinguishing transient from permanent failures.

This module provides:
- RetryConfig: validated backoff policy
- with_retry: retry loop returning a RetryResult
- call_with_retry / call_with_retry_simple: value-or-raise variants
- calculate_backoff: exponential backoff with jitter
"""

from metaingest.collectors.errors import is_retryable
from metaingest.config.schemas.retry import RetryConfig
from metaingest.retry.retry import (
    RetryResult,
    calculate_backoff,
    call_with_retry,
    call_with_retry_simple,
    with_retry,
)


__all__ = [
    "RetryConfig",
    "RetryResult",
    "calculate_backoff",
    "call_with_retry",
    "call_with_retry_simple",
    "is_retryable",
    "with_retry",
]
