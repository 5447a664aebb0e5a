# src/batchscrub/core/logging.py
"""Structured logging for batchscrub.

structlog and stdlib logging share one processor chain: stdlib records
(SQLAlchemy, dynaconf) are routed through ProcessorFormatter, so both
render as the same JSON or console lines. Output goes to stderr; stdout
belongs to the CLI's event stream.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError
from structlog.stdlib import ProcessorFormatter

# SQLAlchemy logs every statement and pool checkout at INFO/DEBUG. One
# UPDATE per window is noise next to the window_checkpointed line.
_NOISY_LOGGERS: tuple[str, ...] = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
)

# Event keys that may carry a database URL
_DSN_KEYS = frozenset({"url", "dsn", "database_url"})


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    # Always present on records that went through ProcessorFormatter
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _hide_dsn_passwords(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Render any logged database URL with its password masked."""
    for key in _DSN_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str):
            try:
                event_dict[key] = make_url(value).render_as_string(hide_password=True)
            except ArgumentError:
                pass  # not a URL; log as given
    return event_dict


def _renderers(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        _remove_internal_fields,
        structlog.dev.ConsoleRenderer(colors=True),
    ]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Safe to call more than once; each call replaces the root handler.

    Args:
        json_output: If True, output JSON. If False, human-readable.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        stream: Destination (default: the current sys.stderr).
    """
    log_level = getattr(logging, level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        _hide_dsn_passwords,
    ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure logging; cached loggers would go stale
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=_renderers(json_output), foreign_pre_chain=shared_processors))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Never make noisy loggers less restrictive than the root level
    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


@contextmanager
def bound_run_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every log line emitted inside the block.

    Example:
        with bound_run_context(target="users.email", transformer="scrub_email"):
            controller.run()
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
