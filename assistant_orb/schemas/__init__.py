# ruff: noqa: F401
"""Schemas package initialization."""

from .base import BaseSchema
from .chat import (
    ChatReply,
    ChatRequest,
    Conversation,
    ConversationCreate,
    ConversationId,
    Message,
    MessageContext,
    MessageCreate,
    MessageRole,
    PendingMessage,
    RecentEvent,
    TrackedEvent,
)
from .page import PageContext
