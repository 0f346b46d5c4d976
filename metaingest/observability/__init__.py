"""Observability helpers."""

from metaingest.observability.logging import (
    bind_run_context,
    clear_run_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)


__all__ = [
    "bind_run_context",
    "clear_run_context",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
]
