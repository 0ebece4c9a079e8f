"""Tests for mapping lifecycle events onto Monday.com columns."""

from datetime import datetime

import pytest

from lifecycle_relay.schemas.board import ColumnMap
from lifecycle_relay.schemas.lifecycle import (
    LifecycleEvent,
    LifecycleEventData,
    LifecycleEventKind,
)
from lifecycle_relay.services.field_mapper import (
    MondayColumnFormatter,
    item_name_for,
    map_event_to_columns,
    normalize_account_tier,
    split_name,
)


def make_event(kind=LifecycleEventKind.INSTALL, **data) -> LifecycleEvent:
    data.setdefault("app_id", "10142077")
    return LifecycleEvent(kind=kind, type=kind.value, data=LifecycleEventData(**data))


class TestSplitName:
    """Tests for split_name."""

    def test_first_and_last(self):
        assert split_name("Jane Doe") == ("Jane", "Doe")

    def test_multi_word_last_name(self):
        assert split_name("Jane van der Berg") == ("Jane", "van der Berg")

    def test_single_word(self):
        assert split_name("Cher") == ("Cher", "")

    def test_extra_whitespace(self):
        assert split_name("  Jane   Doe  ") == ("Jane", "Doe")

    @pytest.mark.parametrize("value", [None, "", "   ", 42, {"first": "Jane"}])
    def test_missing_or_invalid(self, value):
        assert split_name(value) == ("", "")


class TestMondayColumnFormatter:
    """Tests for column value formatting."""

    def test_format_email(self):
        assert MondayColumnFormatter.format_email("a@b.com") == {
            "email": "a@b.com",
            "text": "a@b.com",
        }

    def test_format_email_display_text(self):
        assert MondayColumnFormatter.format_email("a@b.com", "Jane") == {
            "email": "a@b.com",
            "text": "Jane",
        }

    def test_format_text_none(self):
        assert MondayColumnFormatter.format_text(None) == ""

    def test_format_text_number(self):
        assert MondayColumnFormatter.format_text(25) == "25"

    def test_format_status(self):
        assert MondayColumnFormatter.format_status("pro") == {"label": "pro"}

    def test_format_date_iso_string(self):
        assert MondayColumnFormatter.format_date("2024-01-01T00:00:00Z") == {
            "date": "2024-01-01"
        }

    def test_format_date_datetime(self):
        assert MondayColumnFormatter.format_date(datetime(2024, 3, 9, 12)) == {
            "date": "2024-03-09"
        }

    def test_format_date_missing(self):
        assert MondayColumnFormatter.format_date(None) == {"date": ""}

    def test_format_country(self):
        assert MondayColumnFormatter.format_country("US", "United States") == {
            "countryCode": "US",
            "countryName": "United States",
        }


class TestNormalizeAccountTier:
    """Tests for account tier defaulting."""

    def test_defaults_to_free(self):
        assert normalize_account_tier(None) == "free"
        assert normalize_account_tier("") == "free"

    def test_lower_cases(self):
        assert normalize_account_tier("Pro") == "pro"

    def test_does_not_validate(self):
        """Closed-list validation happens at item creation, not here."""
        assert normalize_account_tier("platinum") == "platinum"


class TestMapEventToColumns:
    """Tests for map_event_to_columns."""

    @pytest.fixture
    def columns(self):
        return ColumnMap()

    def test_full_install_event(self, columns):
        event = make_event(
            account_id=555,
            account_name="Acme",
            account_slug="acme",
            account_tier="pro",
            account_max_users=25,
            plan_id="basic_monthly",
            user_name="Jane Doe",
            user_email="jane@acme.com",
            user_country="US",
            user_cluster="other",
            timestamp="2024-01-01T00:00:00Z",
        )

        values = map_event_to_columns(event, columns)

        assert values == {
            columns.email: {"email": "jane@acme.com", "text": "jane@acme.com"},
            columns.first_name: "Jane",
            columns.last_name: "Doe",
            columns.timestamp: {"date": "2024-01-01"},
            columns.slug: "acme",
            columns.company_name: "Acme",
            columns.app_id: "10142077",
            columns.cluster: "other",
            columns.max_users: "25",
            columns.account_id: "555",
            columns.plan_id: "basic_monthly",
            columns.country: {"countryCode": "US", "countryName": "United States"},
            columns.account_tier: {"label": "pro"},
        }

    def test_minimal_event_never_fails(self, columns):
        """Only app_id present: every other column gets an empty default."""
        values = map_event_to_columns(make_event(), columns)

        assert values[columns.first_name] == ""
        assert values[columns.last_name] == ""
        assert values[columns.timestamp] == {"date": ""}
        assert values[columns.max_users] == ""
        assert values[columns.plan_id] == ""
        assert values[columns.account_id] == ""
        assert values[columns.email] == {"email": "", "text": ""}
        assert values[columns.country] == {"countryCode": "", "countryName": ""}
        assert values[columns.account_tier] == {"label": "free"}

    def test_unknown_country_has_empty_name(self, columns):
        values = map_event_to_columns(make_event(user_country="ZZ"), columns)

        assert values[columns.country] == {"countryCode": "ZZ", "countryName": ""}

    def test_country_lookup_is_injectable(self, columns):
        values = map_event_to_columns(
            make_event(user_country="US"),
            columns,
            country_lookup=lambda code: f"name-of-{code}",
        )

        assert values[columns.country]["countryName"] == "name-of-US"

    def test_invalid_tier_passes_through(self, columns):
        """The mapper leaves tier validation to create_item."""
        values = map_event_to_columns(make_event(account_tier="Gold"), columns)

        assert values[columns.account_tier] == {"label": "gold"}

    def test_custom_column_ids(self):
        columns = ColumnMap(first_name="fname", status="state")

        values = map_event_to_columns(make_event(user_name="Jane Doe"), columns)

        assert values["fname"] == "Jane"
        assert "state" not in values

    def test_mapping_is_deterministic(self, columns):
        event = make_event(user_name="Jane Doe", account_id="555")

        assert map_event_to_columns(event, columns) == map_event_to_columns(
            event, columns
        )


class TestItemName:
    """Tests for item naming."""

    def test_account_name(self):
        assert item_name_for(make_event(account_name="Acme")) == "Acme"

    def test_unnamed_account(self):
        assert item_name_for(make_event()) == "Unnamed Account"
