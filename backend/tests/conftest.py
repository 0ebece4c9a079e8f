"""Shared pytest fixtures."""

import pytest

from lifecycle_relay.core.rate_limit import limiter


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    """Keep the shared in-memory limiter from throttling test requests."""
    previous = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = previous
