"""Structured logging for observability.

Every record is a structlog event dict. Batch and project identifiers are
bound through contextvars so that log lines emitted deep inside the browser
or PDF layers still carry `operation_id` / `project_number`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from structlog.types import Processor

from ..config.settings import get_settings

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging() -> None:
    """Configure structured logging (JSON unless `log_format=console`)."""
    settings = get_settings()
    log_level = _LEVELS.get(settings.log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)
        # Portuguese user-facing messages stay readable in the JSON output.
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=settings.service_name)


@contextmanager
def log_context(*, operation_id: Optional[str] = None, project_number: Optional[int] = None) -> Iterator[None]:
    """Bind batch/project identifiers for every log line inside the block."""
    values = {"operation_id": operation_id, "project_number": project_number}
    with structlog.contextvars.bound_contextvars(**{k: v for k, v in values.items() if v is not None}):
        yield


def get_logger(name: str | None = None):
    return structlog.get_logger(name)
