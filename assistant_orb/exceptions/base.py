# ruff: noqa: D107
"""Base exception classes."""

from typing import Any


class BaseAppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}

        super().__init__(message)

    @property
    def detail(self) -> dict[str, Any]:
        return {"message": self.message, "error_code": self.error_code, "details": self.details}


class ConfigurationError(BaseAppException):
    """Exception raised when the session manager is not properly configured."""

    def __init__(
        self,
        message: str = "Assistant Orb is not properly configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, error_code="CONFIGURATION_ERROR", details=details)
