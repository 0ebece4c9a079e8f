"""Dispatch of lifecycle events onto Monday.com item operations."""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from lifecycle_relay.core.logging import get_logger
from lifecycle_relay.core.retry import retry_with_delay
from lifecycle_relay.schemas.board import BoardTarget, ColumnMap
from lifecycle_relay.schemas.lifecycle import LifecycleEvent, LifecycleEventKind
from lifecycle_relay.services.field_mapper import (
    MondayColumnFormatter,
    item_name_for,
)
from lifecycle_relay.services.monday_service import MondayService

logger = get_logger(__name__)

# Status label written to the item for each update event
STATUS_LABELS: dict[LifecycleEventKind, str] = {
    LifecycleEventKind.UNINSTALL: "Uninstalled",
    LifecycleEventKind.SUBSCRIPTION_CREATED: "Subscription Created",
    LifecycleEventKind.SUBSCRIPTION_CANCELLED: "Subscription Cancelled",
    LifecycleEventKind.SUBSCRIPTION_RENEWED: "Subscription Renewed",
    LifecycleEventKind.SUBSCRIPTION_CHANGED: "Subscription Changed",
}

# Update events that also carry the new plan
PLAN_UPDATE_KINDS: frozenset[LifecycleEventKind] = frozenset(
    {
        LifecycleEventKind.SUBSCRIPTION_CREATED,
        LifecycleEventKind.SUBSCRIPTION_CHANGED,
    }
)


class DispatchOutcome(str, Enum):
    """Result of dispatching one event."""

    CREATED = "created"
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    IGNORED = "ignored"


class LifecycleDispatcher:
    """Stateless switch from event kind to upsert protocol calls."""

    def __init__(
        self,
        monday: MondayService,
        columns: ColumnMap,
        find_attempts: int = 3,
        find_delay_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.monday = monday
        self.columns = columns
        self.find_attempts = find_attempts
        self.find_delay_seconds = find_delay_seconds
        self._sleep = sleep

    def column_deltas_for(self, event: LifecycleEvent) -> dict[str, Any]:
        """Get the partial column update for an update-type event."""
        deltas: dict[str, Any] = {
            self.columns.status: MondayColumnFormatter.format_status(
                STATUS_LABELS[event.kind]
            )
        }
        if event.kind in PLAN_UPDATE_KINDS:
            deltas[self.columns.plan_id] = MondayColumnFormatter.format_text(
                event.data.plan_id
            )
        return deltas

    async def dispatch(
        self,
        event: LifecycleEvent,
        target: BoardTarget,
        column_values: dict[str, Any],
    ) -> DispatchOutcome:
        """Apply one lifecycle event to the board.

        Args:
            event: Parsed lifecycle event
            target: Resolved destination board
            column_values: Full column set built for the event

        Returns:
            What happened on the board

        Raises:
            MondayAPIError: If a create, search or update call fails
        """
        if event.kind == LifecycleEventKind.INSTALL:
            await self.monday.create_item(item_name_for(event), column_values, target)
            return DispatchOutcome.CREATED

        if event.kind in STATUS_LABELS:
            return await self._update_existing(event, target)

        logger.info(
            "lifecycle_event_ignored",
            event_type=event.type,
            kind=event.kind.value,
        )
        return DispatchOutcome.IGNORED

    async def find_item_with_retry(self, account_id: str | None, board_id: str) -> str | None:
        """Find the account's item, retrying while it is not yet visible."""
        return await retry_with_delay(
            lambda: self.monday.find_item_by_account_id(account_id, board_id),
            max_attempts=self.find_attempts,
            delay_seconds=self.find_delay_seconds,
            sleep=self._sleep,
            operation_name="find_item_by_account_id",
        )

    async def _update_existing(
        self,
        event: LifecycleEvent,
        target: BoardTarget,
    ) -> DispatchOutcome:
        if not event.account_id:
            logger.warning(
                "lifecycle_update_skipped_no_account_id",
                event_type=event.type,
                board_id=target.board_id,
            )
            return DispatchOutcome.NOT_FOUND

        item_id = await self.find_item_with_retry(event.account_id, target.board_id)

        if item_id is None:
            # Not an error: the install may never have reached the board
            logger.warning(
                "lifecycle_update_skipped_item_not_found",
                event_type=event.type,
                account_id=event.account_id,
                board_id=target.board_id,
                attempts=self.find_attempts,
            )
            return DispatchOutcome.NOT_FOUND

        await self.monday.update_item(
            item_id, self.column_deltas_for(event), target.board_id
        )
        return DispatchOutcome.UPDATED
