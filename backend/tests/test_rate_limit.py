"""Tests for webhook rate limiting configuration."""

import inspect

from starlette.requests import Request

from lifecycle_relay.api.webhooks import (
    handle_lifecycle_webhook,
    lifecycle_webhook_health,
    lifecycle_webhook_preflight,
)
from lifecycle_relay.core.rate_limit import limiter, webhook_limit


def make_request(headers: dict[str, str] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/webhooks/lifecycle",
        "headers": [
            (key.lower().encode(), value.encode())
            for key, value in (headers or {}).items()
        ],
        "client": ("10.0.0.5", 4321),
    }
    return Request(scope)


class TestWebhookRateLimitConfiguration:
    """Verify rate limiting is configured on webhook endpoints."""

    def test_rate_limited_endpoints_accept_request(self):
        """Rate limited endpoints need the Request parameter."""
        for endpoint in (handle_lifecycle_webhook, lifecycle_webhook_health):
            assert "request" in inspect.signature(endpoint).parameters

    def test_webhook_endpoints_are_marked_for_limiting(self):
        marked = limiter._Limiter__marked_for_limiting

        assert "lifecycle_relay.api.webhooks.handle_lifecycle_webhook" in marked
        assert "lifecycle_relay.api.webhooks.lifecycle_webhook_health" in marked

    def test_preflight_not_rate_limited(self):
        """CORS preflight must always succeed."""
        name = f"lifecycle_relay.api.webhooks.{lifecycle_webhook_preflight.__name__}"

        assert name not in limiter._Limiter__marked_for_limiting

    def test_webhook_limit_format(self):
        limit = webhook_limit()

        count, period = limit.split("/")
        assert count.isdigit()
        assert period in ["second", "minute", "hour", "day"]


class TestRateLimitKey:
    """Tests for the limiter key."""

    def test_keyed_by_peer_address(self):
        assert limiter._key_func(make_request()) == "10.0.0.5"

    def test_forwarded_header_ignored(self):
        """Rotating X-Forwarded-For does not change the key."""
        first = make_request({"X-Forwarded-For": "203.0.113.7"})
        second = make_request({"X-Forwarded-For": "198.51.100.9"})

        assert limiter._key_func(first) == "10.0.0.5"
        assert limiter._key_func(second) == "10.0.0.5"
