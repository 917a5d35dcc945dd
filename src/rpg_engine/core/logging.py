"""Structured logging configuration for the RPG rules engine.

Logging goes through structlog so every engine event carries key-value
context (rolls, totals, save ids) that renders readably in development and
as JSON in production.

Example:
    >>> from rpg_engine.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Attack resolved", hit=True, damage=7)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from rpg_engine.core.config import get_settings


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty transport loggers used by the narrative provider client
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")


# =============================================================================
# Processors
# =============================================================================


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every log entry with the application name and version."""
    settings = get_settings()
    event_dict["app"] = "rpg_engine"
    event_dict["version"] = settings.app_version
    return event_dict


def drop_unset_fields(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Remove keys logged with a None value.

    Turn events log optional context such as ``check=None`` when no check
    was rolled; leaving those out keeps console output short.
    """
    return {key: value for key, value in event_dict.items() if value is not None}


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    *,
    level: str | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Logging level name. Defaults to ``Settings.log_level``.
        json_format: Render JSON lines instead of console output. Defaults
            to True outside debug mode.
        log_file: Optional path to a log file for persistent logging.

    Example:
        >>> configure_logging(level="DEBUG", json_format=False)
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    if json_format is None:
        json_format = settings.is_production

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        drop_unset_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Processor
    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format=STDLIB_FORMAT, level=log_level, stream=sys.stdout, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(STDLIB_FORMAT))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, typically with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every log entry until :func:`clear_context`.

    The game master binds ``save_id`` for the duration of a turn.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "STDLIB_FORMAT",
    "QUIET_LOGGERS",
    "add_app_context",
    "drop_unset_fields",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
