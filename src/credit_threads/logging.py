"""Structured logging for credit_threads.

Log events are snake_case event names with keyword context, e.g.
``logger.info("segment_rotated", conversation_id=..., segment_count=...)``.
Console output is the default; JSON output is meant for deployments that
ship logs to an aggregator. Both are picked from ``CREDIT_THREADS_LOGGING_*``
variables the first time this module is imported.

Work on a single conversation runs inside ``bind_conversation`` so that
every event of an append or a page read carries the conversation id,
including events logged by the store and cache layers underneath.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from credit_threads.config import LoggingSettings

__all__ = [
    "bind_conversation",
    "configure_logging",
    "get_logger",
]

# Driver loggers whose pool and heartbeat chatter drowns out append/read events
_DRIVER_LOGGERS = ("motor", "pymongo", "redis")


def configure_logging(
    level: int | str = logging.INFO,
    json_output: bool = False,
) -> None:
    """Configure structlog for the conversation log.

    Args:
        level: Logging level, as a number or a name such as "DEBUG"
        json_output: If True, output JSON; if False, pretty console output
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger, usually with the calling module's ``__name__``."""
    return structlog.get_logger(name)


@contextmanager
def bind_conversation(conversation_id: str, **extra: Any) -> Iterator[None]:
    """Attach conversation_id (and any extra keys) to events logged in the block.

    Example:
        with bind_conversation(conversation_id, operation="append"):
            await coordinator.append(conversation_id, message)
    """
    with structlog.contextvars.bound_contextvars(conversation_id=conversation_id, **extra):
        yield


_configured = False


def _ensure_configured() -> None:
    """Configure logging from the environment once per process."""
    global _configured
    if not _configured:
        settings = LoggingSettings()
        configure_logging(level=settings.level, json_output=settings.json_output)
        _configured = True


_ensure_configured()
