"""Message exchange: sending a user message and awaiting the assistant's reply."""

import logging
from collections.abc import Callable
from enum import Enum

from assistant_orb.domains.chat.policy import AutoSelectionPolicy
from assistant_orb.domains.chat.store import ConversationStore
from assistant_orb.exceptions.chat import NetworkOrServerError
from assistant_orb.schemas.chat import MessageContext
from assistant_orb.services.event_tracker import EventTracker
from assistant_orb.services.notification_service import NotificationService


logger = logging.getLogger(__name__)


class SendOutcome(str, Enum):
    EMPTY = "empty"
    SENT = "sent"
    CONVERSATION_CREATED = "conversation_created"
    FAILED = "failed"


class MessageExchangeController:
    """Orchestrates one send round-trip and the typing indicator around it.

    The controller owns the input box text. It never inserts the user's
    message or the reply into the store itself; after a successful exchange
    it invalidates the store and lets the refetch show the authoritative
    messages. With ``optimistic_echo`` a pending copy of the user's message
    is shown until that refetch replaces it.
    """

    def __init__(
        self,
        store: ConversationStore,
        policy: AutoSelectionPolicy,
        tracker: EventTracker,
        notifications: NotificationService,
        context_provider: Callable[[], MessageContext],
        send_after_implicit_create: bool = False,
        optimistic_echo: bool = False,
    ):
        self.store = store
        self.policy = policy
        self.tracker = tracker
        self.notifications = notifications
        self.context_provider = context_provider
        self.send_after_implicit_create = send_after_implicit_create
        self.optimistic_echo = optimistic_echo

        self.input_text = ""
        self._outstanding = 0

    @property
    def is_typing(self) -> bool:
        return self._outstanding > 0

    @property
    def can_send(self) -> bool:
        return bool(self.input_text.strip())

    async def send(self, raw_text: str | None = None) -> SendOutcome:
        """Send ``raw_text`` (default: the input box) to the active conversation.

        Whitespace-only text is a no-op. Without an active conversation one
        is created first; unless ``send_after_implicit_create`` is set, the
        text then stays in the input box for the user to send again.
        """
        text = self.input_text if raw_text is None else raw_text
        message = text.strip()
        if not message:
            return SendOutcome.EMPTY

        if self.store.active_conversation_id is None:
            created = await self._create_for_send()
            if not created:
                return SendOutcome.FAILED
            if not self.send_after_implicit_create:
                self.input_text = text
                logger.info("Conversation created for unsent input; text held in the input box")
                return SendOutcome.CONVERSATION_CREATED

        return await self._exchange(message)

    async def _create_for_send(self) -> bool:
        context = self.context_provider()
        try:
            await self.store.create_conversation(self.policy.new_conversation_title(context.page_name))
        except NetworkOrServerError as e:
            self.notifications.error("Failed to create new conversation.", e)
            return False
        return True

    async def _exchange(self, message: str) -> SendOutcome:
        conversation_id = self.store.active_conversation_id
        context = self.context_provider()

        self._outstanding += 1
        pending = self.store.add_pending(conversation_id, message) if self.optimistic_echo else None
        try:
            await self.store.append_message(conversation_id, message, context)
            await self.store.request_reply(conversation_id, message, context)
        except NetworkOrServerError as e:
            if pending is not None:
                self.store.discard_pending(conversation_id, pending.id)
            self.notifications.error("Failed to send message. Please try again.", e)
            return SendOutcome.FAILED
        finally:
            self._outstanding -= 1

        self.input_text = ""
        self.store.invalidate_messages(conversation_id)
        self.store.invalidate_conversations()
        self.tracker.track(
            "ai_orb.message_sent",
            {
                "conversationId": conversation_id,
                "page": context.page,
                "pageName": context.page_name,
            },
        )

        try:
            await self.store.refresh()
        except NetworkOrServerError as e:
            logger.warning(f"Refetch after send failed for conversation {conversation_id}: {e.message}")

        return SendOutcome.SENT
