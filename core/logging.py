"""
structlog setup for the search engine.

Modules log through ``get_logger(__name__)`` with keyword context
(``request_id``, ``provider``, ``error``). The dispatcher binds the request
and provider around each provider task, so provider code gets both on every
line without passing them along.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from structlog.typing import Processor

    from core.config import Settings

_SHARED_PROCESSORS: tuple[Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
)


def _output_processors(json_format: bool) -> list[Processor]:
    if json_format:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)]


def configure_logging(*, json_format: bool = False, log_level: str = "INFO") -> None:
    """
    Install the structlog configuration.

    Output goes to stderr, as JSON lines or through the console renderer.
    Standard library loggers of dependencies share the level; httpx is held
    at WARNING or stricter because it logs one INFO line per request.
    """
    level = logging.getLevelName(log_level.upper())

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, *_output_processors(json_format)],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def configure_from_settings(settings: Settings) -> None:
    """Apply ``log_level`` and ``log_json``; production always logs JSON."""
    configure_logging(json_format=settings.log_json or settings.is_production, log_level=settings.log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: object) -> None:
    """Bind values (e.g. ``session="map-1"``) for the rest of the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def bound_context(**kwargs: object) -> AbstractContextManager[None]:
    """
    Bind values for the duration of a ``with`` block.

    asyncio tasks copy the context when created, so values bound inside a
    provider task never show up in a sibling task.
    """
    return structlog.contextvars.bound_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
