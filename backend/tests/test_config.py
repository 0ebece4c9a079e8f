"""Tests for configuration loading and validation."""

import os
from unittest.mock import patch

import pytest

from lifecycle_relay.config import Settings
from lifecycle_relay.schemas.board import BoardTarget, ColumnMap


class TestConfigDefaults:
    """Test defaults used when the environment is empty."""

    def test_defaults(self):
        """Retry policy and page size default to the documented values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.find_retry_attempts == 3
        assert settings.find_retry_delay_seconds == 2.0
        assert settings.monday_page_size == 500
        assert settings.is_monday_configured is False
        assert settings.is_graph_email_configured is False

    def test_default_board_table(self):
        """The static app table is available without configuration."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.board_targets["10142077"] == BoardTarget("7517528529")

    def test_default_columns(self):
        """Column IDs default to the board's static IDs."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.columns == ColumnMap()

    def test_log_level_normalized(self):
        """Log level is upper-cased."""
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.log_level == "DEBUG"


class TestConfigMondaySettings:
    """Test Monday.com related settings."""

    def test_api_token_marks_configured(self):
        """Setting MONDAY_API_TOKEN enables the integration."""
        with patch.dict(os.environ, {"MONDAY_API_TOKEN": "token-123"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.is_monday_configured is True
        assert settings.monday_api_token == "token-123"

    def test_board_map_from_json(self):
        """BOARD_MAP JSON entries extend and override the static table."""
        env = {
            "BOARD_MAP": (
                '{"42": "1001", "10142077": {"board_id": "2002", "group_id": "topics"}}'
            ),
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        targets = settings.board_targets
        assert targets["42"] == BoardTarget("1001")
        assert targets["10142077"] == BoardTarget("2002", "topics")

    def test_board_map_numeric_keys(self):
        """Numeric app IDs in the board map are normalized to strings."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None, board_map={123: 456})

        assert settings.board_targets["123"] == BoardTarget("456")

    def test_board_map_rejects_entry_without_board_id(self):
        """Entries without a board ID fail at startup."""
        with (
            patch.dict(os.environ, {"BOARD_MAP": '{"42": {"group_id": "x"}}'}, clear=True),
            pytest.raises(ValueError, match="BOARD_MAP is invalid"),
        ):
            Settings(_env_file=None)

    def test_column_map_overrides(self):
        """COLUMN_MAP overrides individual column IDs."""
        env = {"COLUMN_MAP": '{"status": "status99", "account_id": "acct"}'}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.columns.status == "status99"
        assert settings.columns.account_id == "acct"
        assert settings.columns.email == ColumnMap().email

    def test_column_map_rejects_unknown_fields(self):
        """Unknown logical field names in COLUMN_MAP are rejected."""
        with (
            patch.dict(os.environ, {"COLUMN_MAP": '{"favourite_color": "x"}'}, clear=True),
            pytest.raises(ValueError, match="unknown fields"),
        ):
            Settings(_env_file=None)

    def test_page_size_must_be_positive(self):
        """A zero page size is rejected."""
        with (
            patch.dict(os.environ, {"MONDAY_PAGE_SIZE": "0"}, clear=True),
            pytest.raises(ValueError, match="MONDAY_PAGE_SIZE"),
        ):
            Settings(_env_file=None)

    def test_retry_attempts_must_be_positive(self):
        """At least one lookup attempt is required."""
        with (
            patch.dict(os.environ, {"FIND_RETRY_ATTEMPTS": "0"}, clear=True),
            pytest.raises(ValueError, match="FIND_RETRY_ATTEMPTS"),
        ):
            Settings(_env_file=None)

    def test_production_requires_api_token(self):
        """Production refuses to start without a Monday.com token."""
        with (
            patch.dict(os.environ, {"ENVIRONMENT": "production"}, clear=True),
            pytest.raises(ValueError, match="MONDAY_API_TOKEN is required"),
        ):
            Settings(_env_file=None)

    def test_development_allows_missing_token(self):
        """Development starts without a token; requests fail instead."""
        with patch.dict(os.environ, {"ENVIRONMENT": "development"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.is_monday_configured is False


class TestConfigNotificationSettings:
    """Test Graph email notification settings."""

    def test_graph_email_configured(self):
        """All Azure AD credentials plus sender and recipients are needed."""
        env = {
            "AZURE_AD_TENANT_ID": "tenant",
            "AZURE_AD_CLIENT_ID": "client",
            "AZURE_AD_CLIENT_SECRET": "secret",
            "NOTIFICATION_SENDER": "relay@example.com",
            "NOTIFICATION_RECIPIENTS": '["ops@example.com", "sales@example.com"]',
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.is_graph_email_configured is True
        assert settings.notification_recipients == [
            "ops@example.com",
            "sales@example.com",
        ]

    def test_graph_email_requires_recipients(self):
        """Without recipients there is nobody to notify."""
        env = {
            "AZURE_AD_TENANT_ID": "tenant",
            "AZURE_AD_CLIENT_ID": "client",
            "AZURE_AD_CLIENT_SECRET": "secret",
            "NOTIFICATION_SENDER": "relay@example.com",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.is_graph_email_configured is False

    def test_recipients_comma_separated_list(self):
        """Recipient lists passed directly are kept as given."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(
                _env_file=None,
                notification_recipients="ops@example.com, sales@example.com",
            )

        assert settings.notification_recipients == [
            "ops@example.com",
            "sales@example.com",
        ]
