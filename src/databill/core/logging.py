"""Structured logging configuration using structlog.

Console output is used in development and JSON in production. Every event
carries the ``service`` name and, inside a :func:`correlation_scope`, the
correlation ID of the billing lookup or CSV import that produced it.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "databill"

correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return correlation_id_ctx.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID, generating a UUID4 when none is given."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    correlation_id_ctx.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    correlation_id_ctx.set(None)


@contextmanager
def correlation_scope(
    correlation_id: str | None = None, **context: Any
) -> Iterator[str]:
    """Tag every event logged inside the block with one correlation ID.

    An ID already set by the caller is reused so nested operations share it.
    Extra keyword arguments are bound to the structlog context for the
    duration of the block.

    Args:
        correlation_id: ID to use; defaults to the current one or a new UUID4.
        **context: Key-value pairs added to every event in the block.

    Yields:
        The correlation ID in effect.
    """
    previous = get_correlation_id()
    token = correlation_id_ctx.set(correlation_id or previous or str(uuid.uuid4()))
    try:
        with structlog.contextvars.bound_contextvars(**context):
            yield correlation_id_ctx.get() or ""
    finally:
        correlation_id_ctx.reset(token)


def add_correlation_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def add_service_context(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict["service"] = SERVICE_NAME
    return event_dict


def configure_logging(
    *,
    json_logs: bool = False,
    log_level: str = "INFO",
) -> None:
    """Route structlog and standard library logging through one handler.

    Args:
        json_logs: Render events as JSON lines instead of colored console text.
        log_level: Minimum level emitted by the root logger.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_correlation_id,
        add_service_context,
    ]

    renderer: Processor
    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Polars emits nothing useful below WARNING for CSV imports
    for noisy in ("polars", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, named after the caller's module by default."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


class LoggerMixin:
    """Gives a class a ``logger`` property named after the class.

    Usage:
        class UsageCsvImporter(LoggerMixin):
            async def import_csv(self, source):
                self.logger.info("csv_import_completed", imported=3)
    """

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)


def bind_contextvars(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_contextvars(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_contextvars() -> None:
    structlog.contextvars.clear_contextvars()
