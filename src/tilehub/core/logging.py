"""
Structured logging for tilehub.

The API, the CLI and library code share one structlog configuration. Every
degraded path (cache read failure, open breaker, unparseable model output)
logs a snake_case event with key/value context, and the ids of the build in
progress (``request_id``, ``idea_hash``, ``tile``) ride along through
contextvars.

Architecture:
    ::

        configure_logging(level, json_format, service)
            │
            ▼
          TimeStamper(iso)
          merge_contextvars        ← LogContext(idea_hash=..., tile=...)
          add_log_level / add_logger_name
          _add_service
          _short_idea_hash         (console only)
          _ecs_field_names         (JSON only)
          JSONRenderer | ConsoleRenderer  → stderr

    Logs go to stderr so ``tilehub build --json`` keeps stdout parseable.

Examples:
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> with LogContext(idea_hash="4f0c1d...", tile="sentiment"):
    ...     logger.info("tile_generated", confidence=0.8)

Tags:
    logging, structlog, observability, tilehub
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service = {"name": "tilehub"}

# Console lines are read by people; 12 hex chars are enough to tell ideas apart.
_CONSOLE_HASH_CHARS = 12


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service["name"])
    return event_dict


def _short_idea_hash(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    idea_hash = event_dict.get("idea_hash")
    if isinstance(idea_hash, str) and len(idea_hash) > _CONSOLE_HASH_CHARS:
        event_dict["idea_hash"] = idea_hash[:_CONSOLE_HASH_CHARS]
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename to the Elastic Common Schema names log shippers expect."""
    for ours, ecs in (("timestamp", "@timestamp"), ("level", "log.level"), ("logger", "log.logger")):
        if ours in event_dict:
            event_dict[ecs] = event_dict.pop(ours)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "tilehub",
) -> None:
    """Configure structlog (and stdlib logging for uvicorn/httpx) once per process.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        json_format: ``None`` picks JSON when stderr is not a terminal.
        service: Value of ``service.name`` on every event.
    """
    _service["name"] = service
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.dev.set_exc_info,
        _add_service,
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            _ecs_field_names,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [_short_idea_hash, structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


class LogContext:
    """Bind keys for the duration of a block, restoring any outer values on exit.

    Nesting is expected: the API binds ``request_id``, the orchestrator then
    binds ``idea_hash`` and ``tile`` per tile.
    """

    def __init__(self, **values: Any):
        self._values = values
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._values)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc_info: Any) -> None:
        self.__exit__(*exc_info)


__all__ = ["configure_logging", "get_logger", "LogContext"]
