"""Structured logging with structlog.

Two context variables tag every event without threading loggers through
the call stack:
- ``request_id_ctx``: set per HTTP request by RequestIdMiddleware
- ``log_context_ctx``: fields of the forecast currently running
  (model_type, config_hash, group), set by ``log_context()``

Both survive ``run_in_threadpool``, which copies the caller's context into
the worker thread.
"""

import logging
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

from demandcast.core.config import get_settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
log_context_ctx: ContextVar[dict[str, Any] | None] = ContextVar("log_context", default=None)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:  # noqa: ANN401
    """Tag every log event inside the block with ``fields``.

    Nested blocks merge with the enclosing one; inner values win.

    Example:
        with log_context(model_type="arima", config_hash="ab12"):
            model.fit(series)  # forecasting.fit_completed carries both
    """
    token = log_context_ctx.set({**(log_context_ctx.get() or {}), **fields})
    try:
        yield
    finally:
        log_context_ctx.reset(token)


def add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add request_id from context to log events."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_log_context(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add the running forecast's fields; explicit event fields take precedence."""
    for key, value in (log_context_ctx.get() or {}).items():
        event_dict.setdefault(key, value)
    return event_dict


def configure_logging() -> None:
    """Configure structlog for the application.

    JSON lines in deployed environments, colored console output when
    LOG_FORMAT=console. Events below LOG_LEVEL are dropped at the bound
    logger, so per-step forecasting.arima_step events cost nothing at INFO.
    """
    settings = get_settings()

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_request_id,
            add_log_context,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a logger for a DemandCast module.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        structlog logger; request_id and forecast fields are added by processors.
    """
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger
