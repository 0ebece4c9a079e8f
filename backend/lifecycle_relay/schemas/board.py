"""Static Monday.com board tables.

These tables are read-only for the lifetime of the process. Configuration
may override entries at startup (see ``Settings.board_targets`` and
``Settings.columns``) but nothing mutates them while requests are served.
"""

from dataclasses import dataclass, fields
from typing import Any


@dataclass(frozen=True)
class BoardTarget:
    """Destination board (and optional group) for one marketplace app."""

    board_id: str
    group_id: str | None = None

    @classmethod
    def from_config(cls, value: Any) -> "BoardTarget":
        """Build a target from a board ID or a ``{"board_id", "group_id"}`` dict."""
        if isinstance(value, dict):
            board_id = value.get("board_id")
            if not board_id:
                raise ValueError("Board map entries require a board_id")
            group_id = value.get("group_id")
            return cls(
                board_id=str(board_id),
                group_id=str(group_id) if group_id else None,
            )
        if value is None or str(value).strip() == "":
            raise ValueError("Board map entries require a board_id")
        return cls(board_id=str(value))


@dataclass(frozen=True)
class ColumnMap:
    """Monday column IDs for each field written by the relay."""

    email: str = "email__1"
    first_name: str = "text8__1"
    last_name: str = "text9__1"
    timestamp: str = "date4"
    slug: str = "text__1"
    company_name: str = "text1__1"
    app_id: str = "text3__1"
    cluster: str = "text0__1"
    max_users: str = "text7__1"
    account_id: str = "text2__1"
    plan_id: str = "text21__1"
    country: str = "country__1"
    account_tier: str = "status__1"
    status: str = "status_1__1"

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


# Marketplace app ID -> destination board
DEFAULT_BOARD_MAP: dict[str, BoardTarget] = {
    "10142077": BoardTarget(board_id="7517528529"),
}

# Labels configured on the account tier status column
ACCOUNT_TIER_LABELS: frozenset[str] = frozenset(
    {
        "pro",
        "standard",
        "enterprise",
        "free",
        "basic",
    }
)

DEFAULT_ACCOUNT_TIER = "free"
