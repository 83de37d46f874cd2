"""
Structured logging for record-spine.

Library modules log through ``get_logger(__name__)`` with event-style names
and keyword fields:

    query.exec               statement, params (count), dialect
    migration.table_created  table, columns
    migration.column_added   table, column, data_type
    migration.table_dropped  table
    migration.failed         table, column, error

The migrator runs each table inside ``log_scope(table=...)``, so the
``query.exec`` events it triggers (DDL, inspection and the model's own
callback statements) carry the table they belong to.

Output is a structlog chain rendered by the stdlib ``logging`` module, so
applications and pytest's ``caplog`` see it as ordinary records.  JSON
output renames ``timestamp``/``level`` to their ECS names.

Examples:
    >>> from recordspine.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> get_logger(__name__).info("migration.table_created", table="users")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Statements longer than this are cut in log output.
MAX_STATEMENT_LENGTH = 500

_service_name = "recordspine"


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _shorten_statement(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Cut long SQL so bulk ``INSERT`` statements do not flood the log."""
    statement = event_dict.get("statement")
    if isinstance(statement, str) and len(statement) > MAX_STATEMENT_LENGTH:
        event_dict["statement"] = statement[:MAX_STATEMENT_LENGTH] + "..."
        event_dict["statement_length"] = len(statement)
    return event_dict


def _ecs_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def _processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
        _shorten_statement,
    ]
    if add_timestamp:
        chain.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        chain += [
            structlog.processors.format_exc_info,
            _ecs_names,
            structlog.processors.JSONRenderer(),
        ]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "recordspine",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for record-spine and the host application.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for JSON unless
            stdout is a terminal
        service: Value of the ``service.name`` field
        add_timestamp: Include an ISO timestamp
    """
    global _service_name
    _service_name = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    numeric_level = getattr(logging, level.upper())
    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Structured logger for ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)


@contextmanager
def log_scope(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every event logged inside the block.

    Example:
        with log_scope(batch="nightly"):
            migrator.migrate(User(), Order())
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield


__all__ = [
    "MAX_STATEMENT_LENGTH",
    "configure_logging",
    "get_logger",
    "log_scope",
]
