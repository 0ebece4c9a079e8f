"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from lifecycle_relay.config import get_settings

settings = get_settings()

# Deliveries are unauthenticated, so they are keyed by the socket peer
# address. X-Forwarded-For is sender controlled and is not trusted.
# headers_enabled=False: the webhook handlers return models, not Responses,
# so slowapi has nothing to inject headers into.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    headers_enabled=False,
    enabled=settings.rate_limit_enabled,
)


def webhook_limit() -> str:
    """Get webhook endpoint rate limit."""
    return settings.rate_limit_webhook
