"""Conversation store: the widget's conversation list, active conversation and messages."""

import asyncio
import itertools
import logging
import uuid

from assistant_orb.clients.api_client import AssistantApiClient
from assistant_orb.exceptions.chat import ConversationNotFoundError, NetworkOrServerError
from assistant_orb.schemas.chat import (
    ChatReply,
    Conversation,
    ConversationId,
    Message,
    MessageContext,
    PendingMessage,
)


logger = logging.getLogger(__name__)


class ConversationStore:
    """Owns the two pieces of shared chat state and synchronizes them with the backend.

    Message lists are kept per conversation id and a fetch result is only ever
    written into the slot of the conversation it was requested for. Every
    fetch is stamped with a generation number; a response that arrives after
    a newer request (or after a create/delete changed the list) is discarded.
    """

    def __init__(self, api: AssistantApiClient):
        """Initialize the store.

        Args:
            api: Client used for every remote call the store makes.
        """
        self.api = api

        self.conversations: list[Conversation] = []
        self.conversations_loaded = False
        self.conversations_stale = True
        self.conversations_error: NetworkOrServerError | None = None

        self.active_conversation_id: ConversationId | None = None
        self.messages_error: NetworkOrServerError | None = None
        self.needs_reselection = False

        self._slots: dict[ConversationId, list[Message]] = {}
        self._stale_slots: set[ConversationId] = set()
        self._pending: dict[ConversationId, list[PendingMessage]] = {}

        self._generations = itertools.count(1)
        self._list_generation = 0
        self._slot_generations: dict[ConversationId, int] = {}

    # Read-only views

    @property
    def conversation_ids(self) -> list[ConversationId]:
        return [conversation.id for conversation in self.conversations]

    @property
    def active_conversation(self) -> Conversation | None:
        return self.get_conversation(self.active_conversation_id)

    @property
    def messages(self) -> list[Message | PendingMessage]:
        """Messages of the active conversation as last fetched, then pending echoes."""
        active = self.active_conversation_id
        if active is None:
            return []
        return [*self._slots.get(active, []), *self._pending.get(active, [])]

    @property
    def messages_loaded(self) -> bool:
        return self.active_conversation_id is not None and self.active_conversation_id in self._slots

    @property
    def messages_stale(self) -> bool:
        return self.active_conversation_id in self._stale_slots

    def get_conversation(self, conversation_id: ConversationId | None) -> Conversation | None:
        for conversation in self.conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    # Remote operations

    async def list_conversations(self) -> list[Conversation]:
        """Fetch the conversation list, keeping the backend's order.

        On failure the cached list stays available and the error is recorded
        in ``conversations_error`` before being re-raised.
        """
        generation = self._next_list_generation()
        try:
            conversations = await self.api.list_conversations()
        except NetworkOrServerError as e:
            if generation == self._list_generation:
                self.conversations_error = e
            raise

        if generation != self._list_generation:
            logger.debug(f"Discarding conversation list from superseded request {generation}")
            return list(self.conversations)

        self.conversations = conversations
        self.conversations_loaded = True
        self.conversations_stale = False
        self.conversations_error = None
        self._reconcile_active()
        return list(conversations)

    async def select_conversation(self, conversation_id: ConversationId) -> list[Message]:
        """Activate a conversation and load its full message list.

        Raises:
            ConversationNotFoundError: If the id is absent from a fresh list.
            NetworkOrServerError: If the list or message fetch fails.
        """
        if not self.conversations_loaded or conversation_id not in self.conversation_ids:
            await self.list_conversations()
            if conversation_id not in self.conversation_ids:
                error = ConversationNotFoundError(
                    f"Conversation {conversation_id} not found",
                    details={"conversation_id": conversation_id},
                )
                self.messages_error = error
                raise error

        self.active_conversation_id = conversation_id
        self.needs_reselection = False
        self.messages_error = None
        return await self.fetch_messages(conversation_id)

    async def fetch_messages(self, conversation_id: ConversationId) -> list[Message]:
        """Replace a conversation's message slot with the backend's full list."""
        generation = next(self._generations)
        self._slot_generations[conversation_id] = generation
        try:
            messages = await self.api.list_messages(conversation_id)
        except NetworkOrServerError as e:
            if self._is_current_slot(conversation_id, generation):
                if conversation_id == self.active_conversation_id:
                    self.messages_error = e
            raise

        if not self._is_current_slot(conversation_id, generation):
            logger.debug(f"Discarding messages for conversation {conversation_id} from request {generation}")
            return list(self._slots.get(conversation_id, []))

        self._slots[conversation_id] = messages
        self._stale_slots.discard(conversation_id)
        self._pending.pop(conversation_id, None)
        if conversation_id == self.active_conversation_id:
            self.messages_error = None
        return list(messages)

    async def create_conversation(self, title: str) -> Conversation:
        """Create a conversation and make it active with an empty message list.

        On failure nothing local changes and the error propagates.
        """
        conversation = await self.api.create_conversation(title)
        logger.info(f"Created conversation {conversation.id}")

        self._next_list_generation()
        self.conversations_stale = True
        self.active_conversation_id = conversation.id
        self.needs_reselection = False
        self.messages_error = None
        self._slots[conversation.id] = []
        self._slot_generations[conversation.id] = next(self._generations)
        return conversation

    async def delete_conversation(self, conversation_id: ConversationId) -> None:
        """Delete a conversation; clears the active reference if it pointed at it."""
        await self.api.delete_conversation(conversation_id)
        logger.info(f"Deleted conversation {conversation_id}")

        self._next_list_generation()
        self.conversations_stale = True
        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        self._slots.pop(conversation_id, None)
        self._slot_generations.pop(conversation_id, None)
        self._stale_slots.discard(conversation_id)
        self._pending.pop(conversation_id, None)

        if conversation_id == self.active_conversation_id:
            self.active_conversation_id = None
            self.messages_error = None

    async def append_message(
        self, conversation_id: ConversationId, content: str, context: MessageContext | None = None
    ) -> Message:
        """Persist a user message; the local slot is left for the next refetch."""
        return await self.api.append_message(conversation_id, content, context)

    async def request_reply(
        self, conversation_id: ConversationId, content: str, context: MessageContext | None = None
    ) -> ChatReply:
        """Ask the backend to generate and store the assistant's reply."""
        return await self.api.generate_reply(content, conversation_id, context)

    # Invalidation

    def invalidate_conversations(self):
        self.conversations_stale = True

    def invalidate_messages(self, conversation_id: ConversationId):
        self._stale_slots.add(conversation_id)

    async def refresh(self):
        """Refetch whatever is stale: the list and the active conversation's messages.

        Both fetches run concurrently; the first failure is re-raised after
        both have settled.
        """
        jobs = []
        if self.conversations_stale:
            jobs.append(self.list_conversations())

        active = self.active_conversation_id
        if active is not None and (active in self._stale_slots or active not in self._slots):
            jobs.append(self.fetch_messages(active))

        if not jobs:
            return
        results = await asyncio.gather(*jobs, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

    # Optimistic echo

    def add_pending(self, conversation_id: ConversationId, content: str) -> PendingMessage:
        pending = PendingMessage(
            id=f"pending-{uuid.uuid4().hex}",
            content=content,
            conversation_id=conversation_id,
        )
        self._pending.setdefault(conversation_id, []).append(pending)
        return pending

    def discard_pending(self, conversation_id: ConversationId, pending_id: str):
        entries = self._pending.get(conversation_id)
        if not entries:
            return
        remaining = [entry for entry in entries if entry.id != pending_id]
        if remaining:
            self._pending[conversation_id] = remaining
        else:
            self._pending.pop(conversation_id, None)

    # Private helper methods

    def _next_list_generation(self) -> int:
        self._list_generation = next(self._generations)
        return self._list_generation

    def _is_current_slot(self, conversation_id: ConversationId, generation: int) -> bool:
        return self._slot_generations.get(conversation_id) == generation

    def _reconcile_active(self):
        """Drop an active id that the freshly fetched list no longer contains."""
        active = self.active_conversation_id
        if active is not None and active not in self.conversation_ids:
            logger.warning(f"Active conversation {active} is no longer listed; clearing it")
            self.active_conversation_id = None
            self.messages_error = None
            self.needs_reselection = True
