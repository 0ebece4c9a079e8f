"""Marketplace lifecycle webhook endpoints."""

import json

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, Response, status
from pydantic import ValidationError

from lifecycle_relay.api.deps import (
    DispatcherDep,
    NotifierDep,
    ResolverDep,
    SettingsDep,
)
from lifecycle_relay.core.exceptions import (
    BadRequestError,
    ConfigurationError,
    MondayAPIError,
)
from lifecycle_relay.core.logging import (
    bind_event_context,
    clear_event_context,
    get_logger,
)
from lifecycle_relay.core.rate_limit import limiter, webhook_limit
from lifecycle_relay.middleware.preflight import preflight_response
from lifecycle_relay.middleware.timing import record_delivery
from lifecycle_relay.schemas.lifecycle import (
    LifecycleEvent,
    LifecycleWebhookPayload,
    LifecycleWebhookResponse,
)
from lifecycle_relay.services.field_mapper import map_event_to_columns
from lifecycle_relay.services.lifecycle_dispatcher import DispatchOutcome

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

OUTCOME_MESSAGES: dict[DispatchOutcome, tuple[str, str]] = {
    DispatchOutcome.CREATED: ("processed", "Webhook processed successfully."),
    DispatchOutcome.UPDATED: ("processed", "Webhook processed successfully."),
    DispatchOutcome.NOT_FOUND: (
        "not_found",
        "No board item found for this account; update skipped.",
    ),
    DispatchOutcome.IGNORED: ("ignored", "Event type ignored."),
}


def parse_lifecycle_event(body: bytes) -> LifecycleEvent:
    """Parse a raw webhook body into a LifecycleEvent.

    Raises:
        BadRequestError: If the body is not a JSON object or misses required fields
    """
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise BadRequestError("Invalid request body") from e

    if not isinstance(payload, dict):
        raise BadRequestError("Invalid request body")

    try:
        webhook_payload = LifecycleWebhookPayload.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            "lifecycle_webhook_invalid_payload",
            errors=[
                {"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()
            ],
        )
        raise BadRequestError("Invalid payload data") from e

    raw_data = payload.get("data")
    return LifecycleEvent.from_payload(
        webhook_payload, raw_data if isinstance(raw_data, dict) else None
    )


@router.options("/lifecycle")
async def lifecycle_webhook_preflight() -> Response:
    """Answer CORS preflight requests with an empty 200."""
    return preflight_response()


@router.get("/lifecycle")
@limiter.limit(webhook_limit)
async def lifecycle_webhook_health(request: Request) -> dict[str, str]:
    """Health check endpoint for marketplace webhook configuration.

    This endpoint can be used to verify the webhook URL is accessible.
    """
    return {"status": "ok", "service": "lifecycle-webhook"}


@router.post("/lifecycle", response_model=LifecycleWebhookResponse)
@limiter.limit(webhook_limit)
async def handle_lifecycle_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: SettingsDep,
    resolver: ResolverDep,
    dispatcher: DispatcherDep,
    notifier: NotifierDep,
) -> LifecycleWebhookResponse:
    """Handle an incoming marketplace lifecycle event.

    Install events create a board item. Uninstall and subscription events
    update the existing item for the account. Other event types are
    acknowledged and ignored. A summary email is queued after the board
    has been updated.
    """
    clear_event_context()

    try:
        if not settings.is_monday_configured:
            raise ConfigurationError("MONDAY_API_TOKEN is not configured")

        event = parse_lifecycle_event(await request.body())
        record_delivery(request, event_type=event.type)
        bind_event_context(
            event_type=event.type,
            app_id=event.app_id,
            account_id=event.account_id,
        )
        logger.info("lifecycle_webhook_received", kind=event.kind.value)

        target = resolver.resolve(event.app_id)
        if target is None:
            raise BadRequestError("No board mapping found for app.")
        bind_event_context(board_id=target.board_id)

        column_values = map_event_to_columns(event, settings.columns)
        logger.debug("lifecycle_column_values_built", column_values=column_values)

        outcome = await dispatcher.dispatch(event, target, column_values)

    except BadRequestError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except ConfigurationError as e:
        logger.error("lifecycle_webhook_misconfigured", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error.",
        )
    except MondayAPIError as e:
        logger.error(
            "lifecycle_webhook_failed",
            error=str(e),
            error_type=type(e).__name__,
            **e.log_context(),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error handling webhook event.",
        )

    if outcome != DispatchOutcome.IGNORED:
        background_tasks.add_task(notifier.notify, event)

    record_delivery(request, outcome=outcome.value)
    response_status, message = OUTCOME_MESSAGES[outcome]
    logger.info("lifecycle_webhook_processed", outcome=outcome.value)

    return LifecycleWebhookResponse(
        status=response_status,
        message=message,
        event_type=event.type,
    )
