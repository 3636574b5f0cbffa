# ruff: noqa: D107
"""Errors raised by calls to the chat backend.

Every failed remote call surfaces as a ``NetworkOrServerError``; the
subclasses only narrow the cause for logging and tests.
"""

from typing import Any

from .base import BaseAppException


class NetworkOrServerError(BaseAppException):
    """Any non-success result from a backend call, including transport failures."""

    def __init__(
        self,
        message: str = "Request to the chat backend failed",
        status_code: int | None = None,
        error_code: str = "NETWORK_OR_SERVER_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code, error_code, details)

    @property
    def is_transient(self) -> bool:
        """Whether an idempotent request may be retried."""
        return self.status_code is None or self.status_code >= 500


class ConversationNotFoundError(NetworkOrServerError):
    """Exception raised when a conversation does not exist for this tenant."""

    def __init__(
        self,
        message: str = "Conversation not found",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 404, "CONVERSATION_NOT_FOUND", details)


class TenantAccessError(NetworkOrServerError):
    """Exception raised when the backend rejects the tenant or user headers."""

    def __init__(
        self,
        message: str = "Access denied for this tenant",
        status_code: int = 403,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code, "TENANT_ACCESS_DENIED", details)


class RequestTimeoutError(NetworkOrServerError):
    """Exception raised when a backend request times out."""

    def __init__(
        self,
        message: str = "Request to the chat backend timed out",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, None, "REQUEST_TIMEOUT", details)


def map_http_error(
    status_code: int, message: str, details: dict[str, Any] | None = None
) -> NetworkOrServerError:
    """Map an HTTP status to the matching exception."""
    if status_code == 404:
        return ConversationNotFoundError(message, details)
    if status_code in (401, 403):
        return TenantAccessError(message, status_code, details)
    return NetworkOrServerError(message, status_code, details=details)
