"""Chat schemas for the conversation and message resources."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, ConfigDict, Field

from .base import BaseSchema

ConversationId = int | str


class MessageRole(str, Enum):
    """Message role enumeration."""

    USER = "user"
    ASSISTANT = "assistant"


class Conversation(BaseSchema):
    """Schema for a conversation as listed by the backend."""

    id: ConversationId
    title: str | None = None
    message_count: int = Field(default=0, description="Number of messages in conversation")
    created_at: datetime | None = None

    model_config = ConfigDict(extra="ignore")


class Message(BaseSchema):
    """Schema for a persisted chat message."""

    id: ConversationId
    # Roles outside MessageRole (e.g. "system") are kept as plain strings
    role: MessageRole | str = Field(union_mode="left_to_right")
    content: str
    conversation_id: ConversationId
    pending: Literal[False] = Field(default=False, exclude=True)

    model_config = ConfigDict(extra="ignore")


class PendingMessage(BaseSchema):
    """Local echo of a user message that the backend has not confirmed yet.

    Its id is local and never compared with server ids; the entry is dropped
    when the authoritative message list is refetched.
    """

    id: str
    role: Literal[MessageRole.USER] = MessageRole.USER
    content: str
    conversation_id: ConversationId
    pending: Literal[True] = True


class RecentEvent(BaseSchema):
    """Schema for an entry of the recent platform events feed."""

    description: str = ""
    event_name: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(extra="allow")


class MessageContext(BaseSchema):
    """Context bundle attached to a user message and to the reply request."""

    page: str
    page_name: str
    recent_events: list[dict[str, Any]] = Field(default_factory=list)
    timestamp: datetime


class ConversationCreate(BaseSchema):
    """Schema for creating a conversation."""

    title: str = Field(..., max_length=255)


class MessageCreate(BaseSchema):
    """Schema for appending a message to a conversation."""

    content: str = Field(..., min_length=1)
    role: MessageRole = MessageRole.USER
    context: MessageContext | None = None


class ChatRequest(BaseSchema):
    """Schema for requesting a generated reply."""

    message: str = Field(..., min_length=1)
    conversation_id: ConversationId
    context: MessageContext | None = None


class ChatReply(BaseSchema):
    """Schema for the generated reply."""

    content: str = Field(validation_alias=AliasChoices("content", "response"))
    conversation_id: ConversationId | None = None

    model_config = ConfigDict(extra="allow")


class TrackedEvent(BaseSchema):
    """Schema for a telemetry event posted to the backend."""

    event_name: str
    event_properties: dict[str, Any] = Field(default_factory=dict)
    source: str = "web"
    user_agent: str | None = None
