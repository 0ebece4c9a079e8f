"""Delivery timing middleware.

Logs how long each webhook delivery took together with what the handler
did with it. The handler records the event type and dispatch outcome on
``request.state``; this middleware reads them back after the response.

A delivery is flagged as slow once it outlasts the item lookup retry
budget, i.e. the total time the dispatcher may sleep waiting for a new
item to become visible.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from lifecycle_relay.config import Settings
from lifecycle_relay.core.logging import get_logger

logger = get_logger(__name__)

# Floor for the slow threshold when retries are disabled
MIN_SLOW_DELIVERY_MS = 1000.0

# request.state attributes set by the webhook handler
STATE_EVENT_TYPE = "lifecycle_event_type"
STATE_OUTCOME = "lifecycle_outcome"


def retry_budget_ms(find_attempts: int, find_delay_seconds: float) -> float:
    """Total sleep the lookup retry may add to one delivery, in ms."""
    return max(find_attempts - 1, 0) * find_delay_seconds * 1000


def slow_threshold_ms(settings: Settings) -> float:
    """Duration above which a delivery is logged as slow."""
    return max(
        retry_budget_ms(settings.find_retry_attempts, settings.find_retry_delay_seconds),
        MIN_SLOW_DELIVERY_MS,
    )


def record_delivery(
    request: Request,
    *,
    event_type: str | None = None,
    outcome: str | None = None,
) -> None:
    """Record what the handler did with a delivery for the timing log."""
    if event_type is not None:
        setattr(request.state, STATE_EVENT_TYPE, event_type)
    if outcome is not None:
        setattr(request.state, STATE_OUTCOME, outcome)


class TimingMiddleware(BaseHTTPMiddleware):
    """Log delivery duration and outcome, flagging deliveries that outlast retries."""

    def __init__(self, app: ASGIApp, slow_threshold_ms: float) -> None:
        super().__init__(app)
        self.slow_threshold_ms = slow_threshold_ms

    async def dispatch(self, request: Request, call_next) -> Response:
        state = request.state
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
            "event_type": getattr(state, STATE_EVENT_TYPE, None),
            "outcome": getattr(state, STATE_OUTCOME, None),
        }
        log_data = {key: value for key, value in log_data.items() if value is not None}

        if duration_ms > self.slow_threshold_ms:
            logger.warning(
                "slow_delivery",
                slow_threshold_ms=self.slow_threshold_ms,
                **log_data,
            )
        else:
            logger.debug("delivery_timing", **log_data)

        response.headers["X-Response-Time-Ms"] = str(duration_ms)
        return response
