"""Marketplace lifecycle webhook Pydantic schemas."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "LifecycleEventKind",
    "LifecycleEventData",
    "LifecycleWebhookPayload",
    "LifecycleEvent",
    "LifecycleWebhookResponse",
]


class LifecycleEventKind(str, Enum):
    """Lifecycle event types sent by the marketplace."""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    SUBSCRIPTION_CREATED = "app_subscription_created"
    SUBSCRIPTION_CANCELLED = "app_subscription_cancelled"
    SUBSCRIPTION_RENEWED = "app_subscription_renewed"
    SUBSCRIPTION_CHANGED = "app_subscription_changed"
    TRIAL_SUBSCRIPTION_STARTED = "app_trial_subscription_started"
    UNKNOWN = "unknown"

    @classmethod
    def from_wire(cls, value: Any) -> "LifecycleEventKind":
        """Parse a wire ``type`` string; anything unrecognised is UNKNOWN."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.UNKNOWN


def _optional_str(value: Any) -> str | None:
    """Coerce numeric identifiers to str, keeping None and blanks as None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    text = str(value).strip()
    return text or None


class LifecycleEventData(BaseModel):
    """The ``data`` object of a lifecycle webhook.

    Only ``app_id`` is required. Numeric identifiers may arrive as numbers
    or strings and are normalized to strings.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    app_id: str
    account_id: str | None = None
    account_name: str | None = None
    account_slug: str | None = None
    account_tier: str | None = None
    account_max_users: str | None = None
    plan_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    user_country: str | None = None
    user_cluster: str | None = None
    timestamp: str | None = None

    @field_validator("app_id", mode="before")
    @classmethod
    def require_app_id(cls, v: Any) -> str:
        """Reject missing or blank app IDs."""
        app_id = _optional_str(v)
        if app_id is None:
            raise ValueError("app_id is required")
        return app_id

    @field_validator(
        "account_id",
        "account_name",
        "account_slug",
        "account_tier",
        "account_max_users",
        "plan_id",
        "user_name",
        "user_email",
        "user_country",
        "user_cluster",
        "timestamp",
        mode="before",
    )
    @classmethod
    def coerce_optional(cls, v: Any) -> str | None:
        return _optional_str(v)


class LifecycleWebhookPayload(BaseModel):
    """Inbound webhook body: ``{"type": ..., "data": {...}}``."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(default="", description="Marketplace event type")
    data: LifecycleEventData

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


class LifecycleEvent(BaseModel):
    """A parsed lifecycle event. Immutable; lives for one request."""

    model_config = ConfigDict(frozen=True)

    kind: LifecycleEventKind
    type: str
    data: LifecycleEventData
    raw_data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(
        cls,
        payload: LifecycleWebhookPayload,
        raw_data: dict[str, Any] | None = None,
    ) -> "LifecycleEvent":
        return cls(
            kind=LifecycleEventKind.from_wire(payload.type),
            type=payload.type,
            data=payload.data,
            raw_data=raw_data or {},
        )

    @property
    def app_id(self) -> str:
        return self.data.app_id

    @property
    def account_id(self) -> str | None:
        return self.data.account_id


class LifecycleWebhookResponse(BaseModel):
    """Acknowledgement returned to the marketplace."""

    status: str = Field(..., description="processed, ignored or not_found")
    message: str
    event_type: str | None = None
