"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Any, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lifecycle_relay.schemas.board import DEFAULT_BOARD_MAP, BoardTarget, ColumnMap


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # CORS (marketplace senders and browser test tools post from anywhere)
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    rate_limit_webhook: str = "120/minute"

    # Monday.com Integration
    monday_api_token: str = ""  # Required - checked per request
    monday_api_url: str = "https://api.monday.com/v2"
    monday_api_version: str = "2024-10"
    monday_timeout_seconds: float = 30.0
    monday_page_size: int = 500
    monday_default_board_id: str = ""
    allow_default_board: bool = False  # Unmapped apps are rejected unless set

    # app_id -> board_id, or app_id -> {"board_id": ..., "group_id": ...}
    board_map: dict[str, Any] = {}
    # Logical field name -> Monday column ID overrides
    column_map: dict[str, str] = {}

    # Item lookup retry (item may not be indexed right after install)
    find_retry_attempts: int = 3
    find_retry_delay_seconds: float = 2.0

    # Microsoft Graph email notifications (optional)
    notifications_enabled: bool = True
    azure_ad_tenant_id: str = ""
    azure_ad_client_id: str = ""
    azure_ad_client_secret: str = ""
    notification_sender: str = ""  # Mailbox the notification is sent from
    notification_recipients: list[str] = []

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper() if isinstance(v, str) else "INFO"

    @field_validator("cors_origins", "notification_recipients", mode="before")
    @classmethod
    def parse_string_list(cls, v: str | list[str]) -> list[str]:
        """Parse a list from a JSON string, a comma separated string or a list."""
        if isinstance(v, str):
            import json

            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("board_map", mode="before")
    @classmethod
    def parse_board_map(cls, v: Any) -> dict[str, Any]:
        """Normalize board map keys to strings (app IDs arrive as numbers)."""
        if isinstance(v, str):
            import json

            v = json.loads(v) if v.strip() else {}
        return {str(key): value for key, value in (v or {}).items()}

    @model_validator(mode="after")
    def validate_integration_settings(self) -> "Settings":
        """Validate Monday.com integration settings."""
        if self.monday_page_size < 1:
            raise ValueError("MONDAY_PAGE_SIZE must be a positive integer")

        if self.find_retry_attempts < 1:
            raise ValueError("FIND_RETRY_ATTEMPTS must be at least 1")

        if self.find_retry_delay_seconds < 0:
            raise ValueError("FIND_RETRY_DELAY_SECONDS cannot be negative")

        try:
            self.board_targets
        except ValueError as e:
            raise ValueError(f"BOARD_MAP is invalid: {e}") from e

        unknown_columns = set(self.column_map) - set(ColumnMap.field_names())
        if unknown_columns:
            raise ValueError(
                "COLUMN_MAP contains unknown fields: "
                + ", ".join(sorted(unknown_columns))
            )

        if self.environment == "production" and not self.monday_api_token:
            raise ValueError("MONDAY_API_TOKEN is required in production")

        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_monday_configured(self) -> bool:
        """Check if Monday.com integration is configured."""
        return bool(self.monday_api_token)

    @property
    def is_graph_email_configured(self) -> bool:
        """Check if Graph email notifications are configured."""
        return bool(
            self.azure_ad_tenant_id
            and self.azure_ad_client_id
            and self.azure_ad_client_secret
            and self.notification_sender
            and self.notification_recipients
        )

    @property
    def board_targets(self) -> dict[str, BoardTarget]:
        """Get the app ID to board table, configured entries taking precedence."""
        targets = dict(DEFAULT_BOARD_MAP)
        for app_id, value in self.board_map.items():
            targets[app_id] = BoardTarget.from_config(value)
        return targets

    @property
    def columns(self) -> ColumnMap:
        """Get the column ID table with configured overrides applied."""
        return ColumnMap(**self.column_map)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
