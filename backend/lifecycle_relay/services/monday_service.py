"""Monday.com item upsert client.

Creates, finds and updates the board item that tracks one marketplace
account. Every call goes through typed GraphQL variables; column values are
sent as a JSON string, which is what the ``JSON`` scalar expects.
"""

import json
from dataclasses import dataclass, field
from typing import Any

import httpx

from lifecycle_relay.config import Settings
from lifecycle_relay.core.exceptions import (
    MondayAPIError,
    RemoteCreateError,
    RemoteUpdateError,
)
from lifecycle_relay.core.logging import get_logger
from lifecycle_relay.schemas.board import (
    ACCOUNT_TIER_LABELS,
    DEFAULT_ACCOUNT_TIER,
    BoardTarget,
    ColumnMap,
)

logger = get_logger(__name__)

MONDAY_API_URL = "https://api.monday.com/v2"
DEFAULT_PAGE_SIZE = 500

ITEMS_PAGE_QUERY = """
query ($boardId: [ID!]!, $limit: Int!, $columnIds: [String!]) {
    boards(ids: $boardId) {
        items_page(limit: $limit) {
            cursor
            items {
                id
                name
                column_values(ids: $columnIds) {
                    id
                    text
                }
            }
        }
    }
}
"""

NEXT_ITEMS_PAGE_QUERY = """
query ($cursor: String!, $limit: Int!, $columnIds: [String!]) {
    next_items_page(cursor: $cursor, limit: $limit) {
        cursor
        items {
            id
            name
            column_values(ids: $columnIds) {
                id
                text
            }
        }
    }
}
"""

CREATE_ITEM_MUTATION = """
mutation create_item(
    $board_id: ID!,
    $item_name: String!,
    $column_values: JSON,
    $group_id: String
) {
    create_item(
        board_id: $board_id,
        item_name: $item_name,
        column_values: $column_values,
        group_id: $group_id
    ) {
        id
        name
    }
}
"""

UPDATE_ITEM_MUTATION = """
mutation change_multiple_column_values(
    $board_id: ID!,
    $item_id: ID!,
    $column_values: JSON!
) {
    change_multiple_column_values(
        board_id: $board_id,
        item_id: $item_id,
        column_values: $column_values
    ) {
        id
        name
    }
}
"""


@dataclass(frozen=True)
class MondayConfig:
    """Explicit client configuration; the service never reads settings itself."""

    api_token: str
    columns: ColumnMap = field(default_factory=ColumnMap)
    api_url: str = MONDAY_API_URL
    api_version: str = "2024-10"
    page_size: int = DEFAULT_PAGE_SIZE
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "MondayConfig":
        return cls(
            api_token=settings.monday_api_token,
            columns=settings.columns,
            api_url=settings.monday_api_url,
            api_version=settings.monday_api_version,
            page_size=settings.monday_page_size,
            timeout=settings.monday_timeout_seconds,
        )


def _first_error_message(errors: Any) -> str:
    """Extract the first message from a GraphQL ``errors`` list."""
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
        return str(first)
    return "Unknown Monday API error"


class MondayService:
    """Client for the Monday.com item upsert protocol."""

    def __init__(
        self,
        config: MondayConfig,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.api_url,
                headers={
                    "Authorization": self.config.api_token,
                    "API-Version": self.config.api_version,
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client if this service created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _execute_query(
        self,
        query: str,
        variables: dict[str, Any],
        *,
        operation: str,
        error_cls: type[MondayAPIError] = MondayAPIError,
        board_id: str | None = None,
        account_id: str | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL query and return its ``data`` object.

        Raises:
            error_cls: On transport failure, an ``errors`` list, a non-2xx
                status, or a response without a ``data`` object
        """
        context = {
            "operation": operation,
            "board_id": board_id,
            "account_id": account_id,
        }
        client = await self._get_client()

        try:
            response = await client.post("", json={"query": query, "variables": variables})
        except httpx.HTTPError as e:
            request_error = error_cls(f"Monday API request failed: {e}", **context)
            logger.error(
                "monday_request_failed",
                error=str(e),
                error_type=type(e).__name__,
                **request_error.log_context(),
            )
            raise request_error from e

        try:
            body = response.json()
        except ValueError:
            body = None

        error: MondayAPIError | None = None
        if isinstance(body, dict) and body.get("errors"):
            error = error_cls(
                _first_error_message(body["errors"]), response=body, **context
            )
        elif isinstance(body, dict) and body.get("error_message"):
            # Legacy error shape, still returned for auth and complexity errors
            error = error_cls(str(body["error_message"]), response=body, **context)
        elif response.is_error:
            error = error_cls(
                f"Monday API returned HTTP {response.status_code}",
                response=body if body is not None else response.text,
                **context,
            )
        elif not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            error = error_cls(
                "Unexpected Monday API response shape",
                response=body if body is not None else response.text,
                **context,
            )

        if error is not None:
            logger.error("monday_api_error", error=str(error), **error.log_context())
            raise error

        return body["data"]

    async def get_board_items(
        self,
        board_id: str,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: str | None = None,
        column_ids: list[str] | None = None,
    ) -> tuple[list[dict[str, Any]], str | None]:
        """
        Get items from a board with pagination.

        Returns tuple of (items, next_cursor). next_cursor is None on the
        last page.
        """
        variables: dict[str, Any] = {"limit": limit, "columnIds": column_ids}

        if cursor:
            variables["cursor"] = cursor
            data = await self._execute_query(
                NEXT_ITEMS_PAGE_QUERY,
                variables,
                operation="next_items_page",
                board_id=board_id,
            )
            page = data.get("next_items_page")
        else:
            variables["boardId"] = [board_id]
            data = await self._execute_query(
                ITEMS_PAGE_QUERY,
                variables,
                operation="items_page",
                board_id=board_id,
            )
            boards = data.get("boards")
            if not boards:
                raise MondayAPIError(
                    "Board not found or not accessible with this token",
                    operation="items_page",
                    board_id=board_id,
                    response=data,
                )
            page = boards[0].get("items_page")

        if not isinstance(page, dict):
            raise MondayAPIError(
                "Unexpected items page shape",
                operation="next_items_page" if cursor else "items_page",
                board_id=board_id,
                response=data,
            )

        items = page.get("items") or []
        next_cursor = page.get("cursor") or None

        return items, next_cursor

    def _get_column_value(self, item: dict[str, Any], column_id: str) -> str:
        """Extract text value from a column."""
        if not column_id:
            return ""
        for col in item.get("column_values") or []:
            if col.get("id") == column_id:
                return col.get("text", "") or ""
        return ""

    async def find_item_by_account_id(
        self,
        account_id: str | int | None,
        board_id: str,
    ) -> str | None:
        """Find the item whose account ID column equals ``account_id``.

        Scans the board page by page and filters locally: results are never
        assumed to be pre-filtered by the server. Stops at the first match.

        Returns:
            The matching item ID, or None when the board has no match

        Raises:
            MondayAPIError: If a page request fails
        """
        target = str(account_id).strip() if account_id is not None else ""
        if not target:
            logger.warning("monday_item_lookup_skipped", reason="no account_id")
            return None

        column_id = self.config.columns.account_id
        cursor: str | None = None
        pages_scanned = 0

        while True:
            items, cursor = await self.get_board_items(
                board_id,
                limit=self.config.page_size,
                cursor=cursor,
                column_ids=[column_id],
            )
            pages_scanned += 1

            for item in items:
                if item.get("id") is None:
                    continue
                if self._get_column_value(item, column_id).strip() == target:
                    logger.info(
                        "monday_item_found",
                        board_id=board_id,
                        account_id=target,
                        item_id=str(item["id"]),
                        pages_scanned=pages_scanned,
                    )
                    return str(item["id"])

            if not cursor:
                break

        logger.info(
            "monday_item_not_found",
            board_id=board_id,
            account_id=target,
            pages_scanned=pages_scanned,
        )
        return None

    def _validated_column_values(self, column_values: dict[str, Any]) -> dict[str, Any]:
        """Copy ``column_values`` with the account tier forced onto a known label."""
        values = dict(column_values)
        tier_column = self.config.columns.account_tier
        tier = values.get(tier_column)
        label = tier.get("label") if isinstance(tier, dict) else tier

        normalized = label.strip().lower() if isinstance(label, str) else None
        if normalized in ACCOUNT_TIER_LABELS:
            values[tier_column] = {"label": normalized}
        else:
            logger.warning(
                "invalid_account_tier_replaced",
                label=label,
                replacement=DEFAULT_ACCOUNT_TIER,
            )
            values[tier_column] = {"label": DEFAULT_ACCOUNT_TIER}
        return values

    async def create_item(
        self,
        item_name: str,
        column_values: dict[str, Any],
        target: BoardTarget,
    ) -> str:
        """Create a new item on the target board.

        Args:
            item_name: Name of the new item
            column_values: Dict mapping column IDs to formatted values
            target: Board (and optional group) to create the item in

        Returns:
            ID of the created item

        Raises:
            RemoteCreateError: If creation fails
        """
        values = self._validated_column_values(column_values)
        account_id = values.get(self.config.columns.account_id) or None

        variables: dict[str, Any] = {
            "board_id": target.board_id,
            "item_name": item_name,
            "column_values": json.dumps(values),
        }
        if target.group_id:
            variables["group_id"] = target.group_id

        data = await self._execute_query(
            CREATE_ITEM_MUTATION,
            variables,
            operation="create_item",
            error_cls=RemoteCreateError,
            board_id=target.board_id,
            account_id=account_id,
        )

        created_item = data.get("create_item")
        if not isinstance(created_item, dict) or not created_item.get("id"):
            error = RemoteCreateError(
                "create_item response did not include an item id",
                operation="create_item",
                board_id=target.board_id,
                account_id=account_id,
                response=data,
            )
            logger.error("monday_api_error", error=str(error), **error.log_context())
            raise error

        item_id = str(created_item["id"])
        logger.info(
            "monday_item_created",
            board_id=target.board_id,
            group_id=target.group_id,
            item_id=item_id,
            item_name=item_name,
            account_id=account_id,
        )
        return item_id

    async def update_item(
        self,
        item_id: str,
        column_deltas: dict[str, Any],
        board_id: str,
    ) -> None:
        """Apply ``column_deltas`` to an existing item.

        Only the supplied columns are sent; other columns keep their values.

        Raises:
            RemoteUpdateError: If the update fails
        """
        variables = {
            "board_id": board_id,
            "item_id": item_id,
            "column_values": json.dumps(column_deltas),
        }

        data = await self._execute_query(
            UPDATE_ITEM_MUTATION,
            variables,
            operation="change_multiple_column_values",
            error_cls=RemoteUpdateError,
            board_id=board_id,
        )

        if not isinstance(data.get("change_multiple_column_values"), dict):
            error = RemoteUpdateError(
                "change_multiple_column_values response did not include the item",
                operation="change_multiple_column_values",
                board_id=board_id,
                response=data,
            )
            logger.error("monday_api_error", error=str(error), **error.log_context())
            raise error

        logger.info(
            "monday_item_updated",
            board_id=board_id,
            item_id=item_id,
            updated_fields=list(column_deltas.keys()),
        )
