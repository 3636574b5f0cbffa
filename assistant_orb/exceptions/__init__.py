"""Exception hierarchy for Assistant Orb."""

from .base import BaseAppException, ConfigurationError
from .chat import (
    ConversationNotFoundError,
    NetworkOrServerError,
    RequestTimeoutError,
    TenantAccessError,
    map_http_error,
)

__all__ = [
    "BaseAppException",
    "ConfigurationError",
    "ConversationNotFoundError",
    "NetworkOrServerError",
    "RequestTimeoutError",
    "TenantAccessError",
    "map_http_error",
]
