"""Core application exception classes.

This module provides the exception hierarchy for the relay. All custom
exceptions inherit from RelayError, enabling:
- A single except clause for every application error
- Mapping error categories onto HTTP status codes at the API edge
- Structured logging with the context needed for manual reconciliation

Exception Hierarchy:
    RelayError (base)
    +-- BadRequestError (malformed payload, unmapped app) -> 400
    +-- ConfigurationError (missing/invalid configuration) -> 500
    +-- ExternalServiceError (API/service failures) -> 500
        +-- MondayAPIError
            +-- RemoteCreateError
            +-- RemoteUpdateError
"""

from typing import Any


class RelayError(Exception):
    """Base exception for all relay application errors.

    Example:
        try:
            await dispatcher.dispatch(event, target, columns)
        except RelayError as e:
            logger.error("application_error", error=str(e), exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))
    """

    pass


# --- Category Exceptions ---


class BadRequestError(RelayError):
    """Exception for inbound requests that can never succeed as sent.

    Raised for:
    - Bodies that are not valid JSON
    - Payloads missing the ``data`` object or the ``app_id`` field
    - App IDs with no board mapping

    Terminal: the sender should not redeliver without changing the request.
    """

    pass


class ConfigurationError(RelayError):
    """Exception for missing or invalid configuration.

    Raised when required configuration is missing or invalid, such as
    the Monday.com API token. This indicates a deployment issue rather
    than a problem with the inbound event.
    """

    pass


class ExternalServiceError(RelayError):
    """Base exception for external service/API failures.

    Carries the failing operation name and any identifiers that help
    reconcile the board by hand afterwards.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        board_id: str | None = None,
        account_id: str | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.board_id = board_id
        self.account_id = account_id
        self.response = response

    def log_context(self) -> dict[str, Any]:
        """Get the non-empty identifiers for structured logging."""
        context = {
            "operation": self.operation,
            "board_id": self.board_id,
            "account_id": self.account_id,
            "raw_response": self.response,
        }
        return {key: value for key, value in context.items() if value is not None}


# --- Service-Specific Exceptions ---


class MondayAPIError(ExternalServiceError):
    """Exception for Monday.com GraphQL API failures.

    Raised when a response carries an ``errors`` list, when the HTTP call
    fails, or when the response does not have the expected shape.
    """

    pass


class RemoteCreateError(MondayAPIError):
    """Exception for a failed ``create_item`` mutation.

    Not retried: the marketplace redelivers failed webhooks.
    """

    pass


class RemoteUpdateError(MondayAPIError):
    """Exception for a failed ``change_multiple_column_values`` mutation."""

    pass
