"""Structured logging setup for the vector pipe process.

Every module logs through ``structlog``; this module wires it onto the
stdlib root logger once at startup. Output is JSON lines by default or a
console layout for local runs. Process-wide context (the service name plus
anything passed as keyword arguments, e.g. ``env``) is bound through
contextvars, so it also reaches the consumer thread's log lines.

Typical usage
- Call ``configure_logging("vector-pipe", level, fmt, env=...)`` in ``main``
- Log via ``structlog.get_logger(name)``; pass a logger into ``ConsumerLoop``
  to redirect its outcome lines
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory, add_logger_name

LOG_FORMATS = ("json", "console")


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
    **context: Any
) -> None:
    """Configure structlog for the process.

    Parameters
    - service_name: Bound as ``service`` on every line
    - log_level: ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` (case-insensitive)
    - log_format: ``json`` or ``console``
    - context: Extra process-wide fields bound alongside ``service``

    Raises ``ValueError`` for an unknown level or format.
    """
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format}")
    level = _resolve_level(log_level)

    # force: a second call (tests, re-exec) replaces the earlier handler.
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_logger_name,
    ]
    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name, **context)


def log_performance(operation: str, duration_ms: float, **kwargs: Any) -> None:
    """Log the duration of one unit of work on the ``performance`` logger."""
    structlog.get_logger("performance").info(
        "Operation completed",
        operation=operation,
        duration_ms=round(duration_ms, 3),
        **kwargs
    )
