"""Mapping of lifecycle events onto Monday.com column values."""

from collections.abc import Callable
from datetime import datetime
from typing import Any

from lifecycle_relay.core.countries import get_country_name
from lifecycle_relay.schemas.board import DEFAULT_ACCOUNT_TIER, ColumnMap
from lifecycle_relay.schemas.lifecycle import LifecycleEvent

DEFAULT_ITEM_NAME = "Unnamed Account"


class MondayColumnFormatter:
    """Utility class for formatting Monday.com column values."""

    @staticmethod
    def format_email(email: str, display_text: str | None = None) -> dict[str, str]:
        """Format email column value.

        Monday.com email columns require both 'email' and 'text' fields.
        """
        return {
            "email": email,
            "text": display_text or email,
        }

    @staticmethod
    def format_text(value: Any) -> str:
        """Format text column value; None becomes an empty string."""
        if value is None:
            return ""
        return str(value)

    @staticmethod
    def format_status(label: str) -> dict[str, str]:
        """Format status column value."""
        return {"label": label}

    @staticmethod
    def format_date(value: datetime | str | None) -> dict[str, str]:
        """Format date column value as ``{"date": "YYYY-MM-DD"}``.

        ISO-8601 strings keep only the part before ``T``. Missing values
        produce an empty date instead of failing.
        """
        if isinstance(value, datetime):
            return {"date": value.strftime("%Y-%m-%d")}
        if not value:
            return {"date": ""}
        return {"date": value.split("T")[0].strip()}

    @staticmethod
    def format_country(country_code: str, country_name: str) -> dict[str, str]:
        """Format country column value.

        Monday.com country columns require 'countryCode' (ISO-2) and 'countryName'.
        """
        return {
            "countryCode": country_code,
            "countryName": country_name,
        }


def split_name(user_name: Any) -> tuple[str, str]:
    """Split a full name into (first name, last name).

    The first word is the first name and the remaining words form the
    last name. Missing, blank or non-string names give ("", "").
    """
    if not isinstance(user_name, str):
        return "", ""
    parts = user_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def normalize_account_tier(account_tier: str | None) -> str:
    """Lower-case the tier label, defaulting to ``free`` when absent.

    Membership in the closed label list is checked when the item is
    created, not here.
    """
    if not account_tier:
        return DEFAULT_ACCOUNT_TIER
    return account_tier.strip().lower() or DEFAULT_ACCOUNT_TIER


def item_name_for(event: LifecycleEvent) -> str:
    """Get the board item name for an event."""
    return event.data.account_name or DEFAULT_ITEM_NAME


def map_event_to_columns(
    event: LifecycleEvent,
    columns: ColumnMap,
    country_lookup: Callable[[str | None], str] = get_country_name,
) -> dict[str, Any]:
    """Build the full column value set for an event.

    Pure function: never raises on missing optional fields.

    Args:
        event: Parsed lifecycle event
        columns: Monday column IDs to write to
        country_lookup: Country code to display name resolver

    Returns:
        Dict mapping Monday column IDs to formatted values
    """
    data = event.data
    fmt = MondayColumnFormatter
    first_name, last_name = split_name(data.user_name)
    email = data.user_email or ""
    country_code = data.user_country or ""

    return {
        columns.email: fmt.format_email(email),
        columns.first_name: first_name,
        columns.last_name: last_name,
        columns.timestamp: fmt.format_date(data.timestamp),
        columns.slug: fmt.format_text(data.account_slug),
        columns.company_name: fmt.format_text(data.account_name),
        columns.app_id: fmt.format_text(data.app_id),
        columns.cluster: fmt.format_text(data.user_cluster),
        columns.max_users: fmt.format_text(data.account_max_users),
        columns.account_id: fmt.format_text(data.account_id),
        columns.plan_id: fmt.format_text(data.plan_id),
        columns.country: fmt.format_country(
            country_code, country_lookup(country_code) or ""
        ),
        columns.account_tier: fmt.format_status(
            normalize_account_tier(data.account_tier)
        ),
    }
