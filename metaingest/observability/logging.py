"""Structured logging for the engine.

Every module logs through structlog with a ``component`` field. A runner
binds its ``run_id`` into the context-local log context for the length of a
run, so driver, batch and retry events emitted inside that run carry it
without passing it around.
"""

import logging
import sys
from typing import TextIO

import structlog

from metaingest.settings.app import EngineSettings


RUN_CONTEXT_KEYS = ("run_id",)


def _processor_chain(json_format: bool) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    chain.append(renderer)
    return chain


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Install the engine's structlog configuration.

    Args:
        level: Minimum level emitted (default: INFO).
        output: Stream receiving rendered events (default: stderr).
        json_format: Render JSON lines; otherwise a plain console layout.
    """
    structlog.configure(
        processors=_processor_chain(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    # Driver libraries log through the standard library
    logging.basicConfig(format="%(message)s", stream=output, level=level)


def configure_logging_from_settings(
    settings: EngineSettings, output: TextIO = sys.stderr
) -> None:
    """Configure logging from METAINGEST_LOG_LEVEL and METAINGEST_JSON_LOGS."""
    configure_logging(
        level=settings.log_level_value,
        output=output,
        json_format=settings.json_logs,
    )


def get_logger(component: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger, bound to a component name when one is given.

    Args:
        component: Value of the ``component`` field on every event.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger()
    if component is not None:
        logger = logger.bind(component=component)
    return logger


def bind_run_context(run_id: str) -> None:
    """Attach ``run_id`` to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(run_id=run_id)


def clear_run_context() -> None:
    """Detach the run fields bound by bind_run_context."""
    structlog.contextvars.unbind_contextvars(*RUN_CONTEXT_KEYS)
