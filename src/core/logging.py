"""Structured logging setup."""

import logging
import sys
from typing import Any

import structlog

from core.config import settings

_configured = False


def setup_logging(level: str | None = None, json: bool | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    render_json = settings.log_json if json is None else json

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if _configured:
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )
        return

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if render_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )

    # SQLAlchemy and Alembic log through the stdlib; keep them on one stream.
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root_logger.handlers = [handler]
    for name in ("sqlalchemy", "alembic"):
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers.clear()
        stdlib_logger.propagate = True

    _configured = True


def bind_log_context(**values: Any) -> None:
    """Bind values (request id, actor id, ...) to every log line in this context."""
    structlog.contextvars.bind_contextvars(
        **{key: str(value) for key, value in values.items() if value is not None}
    )


def clear_log_context() -> None:
    """Drop all context-bound log values."""
    structlog.contextvars.clear_contextvars()
