"""Structured logging configuration using structlog.

Every log line emitted while a webhook is handled carries the delivery's
request ID plus the lifecycle identifiers bound by ``bind_event_context``
(event type, app, account and board), so one delivery can be followed
from receipt to the board write.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

import structlog

from lifecycle_relay.config import Settings, get_settings

# Correlation ID of the webhook delivery being handled
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

EVENT_CONTEXT_KEYS = ("event_type", "app_id", "account_id", "board_id")

# Noisy client libraries, capped at WARNING
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "azure",
    "azure.identity",
    "kiota_http",
    "msgraph",
)


def add_request_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add request ID to log entries if available."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def _renderers(settings: Settings) -> list[structlog.typing.Processor]:
    if settings.is_development:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    # JSON lines for the log aggregator
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structured logging for the application."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level, logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            add_request_id,
            *_renderers(settings),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance (typically for ``__name__``)."""
    return structlog.get_logger(name)


def bind_event_context(
    *,
    event_type: str | None = None,
    app_id: str | None = None,
    account_id: str | None = None,
    board_id: str | None = None,
) -> None:
    """Attach lifecycle identifiers to every log line of this delivery.

    Identifiers that are None are skipped so partial payloads do not add
    empty keys.
    """
    values = {
        "event_type": event_type,
        "app_id": app_id,
        "account_id": account_id,
        "board_id": board_id,
    }
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in values.items() if value is not None}
    )


def clear_event_context() -> None:
    """Drop identifiers bound by ``bind_event_context``."""
    structlog.contextvars.unbind_contextvars(*EVENT_CONTEXT_KEYS)


def generate_request_id() -> str:
    """Generate a new request correlation ID."""
    return str(uuid4())[:8]
