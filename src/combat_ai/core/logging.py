"""structlog setup for the combat AI.

Engine modules log through ``get_logger(__name__)`` and never configure
anything themselves; the host calls :func:`configure_logging` (or
:func:`configure_logging_from_settings`) once at start-up. Until then
structlog's defaults apply, which is what the test suite relies on.

Example:
    >>> from combat_ai.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Grapple resolved", attacker="orc-1", success=True)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from combat_ai.core.config import Settings


APP_NAME = "combat_ai"
STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty transport loggers pulled in by the remote oracle
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """structlog processor stamping each entry with ``app=combat_ai``."""
    event_dict["app"] = APP_NAME
    return event_dict


def _build_processors(json_format: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


def _configure_stdlib(numeric_level: int, log_file: str | None) -> None:
    logging.basicConfig(format=STDLIB_FORMAT, level=numeric_level, stream=sys.stdout, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_file:
        handler = logging.FileHandler(log_file)
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(STDLIB_FORMAT))
        logging.getLogger().addHandler(handler)


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Level name, case-insensitive. Unknown names fall back to INFO.
        json_format: Render JSON lines instead of the colored console format.
        log_file: Also write standard library records (openai, httpx) here.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=_build_processors(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configure_stdlib(numeric_level, log_file)


def configure_logging_from_settings(settings: Settings, *, log_file: str | None = None) -> None:
    """Apply ``settings.log_level`` and ``settings.json_logs``."""
    configure_logging(level=settings.log_level, json_format=settings.json_logs, log_file=log_file)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every following log entry in this context.

    The registry binds ``combatant_id`` while a decision is being made, so
    fatigue and grapple logs emitted underneath carry it too.

    Example:
        >>> bind_context(encounter="bridge-ambush", round=3)
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "add_app_context",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
