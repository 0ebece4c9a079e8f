"""Core application utilities and configuration."""

from lifecycle_relay.core.logging import configure_logging, generate_request_id, get_logger

__all__ = ["configure_logging", "generate_request_id", "get_logger"]
