"""
Structured logging for Game Tracker.

Every component logs through structlog with keyword context
(``source=``, ``path=``, ``source_id=``). Log lines go to stderr so
the JSON the CLI prints on stdout stays machine-readable.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.types import Processor

from game_tracker.config import LoggingConfig, get_settings


def _build_processors(config: LoggingConfig) -> list["Processor"]:
    """Processor chain for the configured output format."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if config.include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if config.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    return processors


def setup_logging(config: LoggingConfig | None = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        config: Logging section to apply (loaded settings if None)
    """
    config = config or get_settings().logging
    level = logging.getLevelName(config.level)

    structlog.configure(
        processors=_build_processors(config),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a logger with optional bound context.

    Example:
        >>> logger = get_logger(__name__, component="scanner", source="steam")
        >>> logger.warning("Skipping artifact", path="appmanifest_220.acf", reason="truncated")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


@contextmanager
def discovery_run_context(run_id: str) -> Iterator[None]:
    """
    Tag every log line emitted inside the block with ``run_id``.

    The context lives in contextvars, so it also reaches scanners
    running in ``asyncio.to_thread`` workers.
    """
    with structlog.contextvars.bound_contextvars(run_id=run_id):
        yield
