"""Presentation shell: the orb's open/closed and panel state, wiring the chat components."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, date, datetime

from assistant_orb.clients.api_client import AssistantApiClient
from assistant_orb.core.config import ConfigValidator, Settings, settings as default_settings
from assistant_orb.domains.chat.controller import MessageExchangeController, SendOutcome
from assistant_orb.domains.chat.page_context import resolve
from assistant_orb.domains.chat.policy import AutoSelectionPolicy, SelectionResult
from assistant_orb.domains.chat.store import ConversationStore
from assistant_orb.exceptions.chat import NetworkOrServerError
from assistant_orb.schemas.chat import Conversation, ConversationId, MessageContext, RecentEvent
from assistant_orb.schemas.page import PageContext
from assistant_orb.services.event_tracker import EventTracker
from assistant_orb.services.notification_service import NotificationService


logger = logging.getLogger(__name__)


class PresentationShell:
    """Session state of one floating assistant widget.

    Opening the widget (closed -> open) is the only trigger for fetching the
    conversation list and recent events and for auto-selecting a
    conversation. Closing keeps all store state, so reopening resumes the
    active conversation. Every public operation catches backend errors and
    turns them into notifications; none of them raise ``NetworkOrServerError``.
    Construction raises ``ConfigurationError`` when no tenant is configured.
    """

    def __init__(
        self,
        config: Settings | None = None,
        api: AssistantApiClient | None = None,
        location: str = "/",
        today: Callable[[], date] = date.today,
    ):
        self.settings = config or default_settings
        ConfigValidator.validate_required_settings(self.settings)
        self.api = api or AssistantApiClient(self.settings)

        self.notifications = NotificationService()
        self.tracker = EventTracker(
            self.api, enabled=self.settings.telemetry_enabled, source=self.settings.event_source
        )
        self.store = ConversationStore(self.api)
        self.policy = AutoSelectionPolicy(self.store, today=today)
        self.controller = MessageExchangeController(
            self.store,
            self.policy,
            self.tracker,
            self.notifications,
            context_provider=self.build_context,
            send_after_implicit_create=self.settings.send_after_implicit_create,
            optimistic_echo=self.settings.optimistic_echo,
        )

        self.is_open = False
        self.show_conversation_list = False
        self.location = location
        self.recent_events: list[RecentEvent] = []
        self._open_generation = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.tracker.drain()
        await self.api.aclose()

    # Derived state

    @property
    def page_context(self) -> PageContext:
        return resolve(self.location)

    @property
    def is_typing(self) -> bool:
        return self.controller.is_typing

    @property
    def recent_conversations(self) -> list[Conversation]:
        return self.store.conversations[: self.settings.conversation_preview_limit]

    def build_context(self) -> MessageContext:
        events = self.recent_events[: self.settings.recent_events_limit]
        return MessageContext(
            page=self.location,
            page_name=self.page_context.page_name,
            recent_events=[event.model_dump(mode="json", by_alias=True, exclude_none=True) for event in events],
            timestamp=datetime.now(UTC),
        )

    # Panel state

    async def open(self):
        if self.is_open:
            return
        self.is_open = True
        self._open_generation += 1
        page = self.page_context
        self.tracker.track("ai_orb.opened", {"page": self.location, "pageName": page.page_name})

        await asyncio.gather(self._load_conversations(), self._load_recent_events())
        await self._auto_select()

    def close(self):
        self.is_open = False

    def toggle_conversation_list(self):
        self.show_conversation_list = not self.show_conversation_list

    def navigate(self, path: str):
        self.location = path

    def use_suggestion(self, suggestion: str):
        """Put a page suggestion into the input box without sending it."""
        self.controller.input_text = suggestion

    # Operations

    async def refresh(self):
        """Refetch stale data and re-resolve the active conversation if it vanished."""
        try:
            await self.store.refresh()
        except NetworkOrServerError as e:
            self.notifications.error("Failed to load conversations.", e)
            return
        if self.is_open:
            await self._auto_select()

    async def new_chat(self) -> Conversation | None:
        title = self.policy.new_conversation_title(self.page_context.page_name)
        try:
            conversation = await self.store.create_conversation(title)
        except NetworkOrServerError as e:
            self.notifications.error("Failed to create new conversation.", e)
            return None
        self.show_conversation_list = False
        return conversation

    async def select_conversation(self, conversation_id: ConversationId) -> bool:
        self.show_conversation_list = False
        try:
            await self.store.select_conversation(conversation_id)
        except NetworkOrServerError as e:
            self.notifications.error("Failed to load conversation.", e)
            return False
        self.tracker.track(
            "ai_orb.conversation_selected",
            {"conversationId": conversation_id, "page": self.location},
        )
        return True

    async def delete_conversation(self, conversation_id: ConversationId) -> bool:
        try:
            await self.store.delete_conversation(conversation_id)
        except NetworkOrServerError as e:
            self.notifications.error("Failed to delete conversation.", e)
            return False
        self.notifications.notify("Chat Deleted", "Conversation removed successfully.")
        try:
            await self.store.refresh()
        except NetworkOrServerError as e:
            logger.warning(f"Refetch after delete failed: {e.message}")
        return True

    async def send(self, text: str | None = None) -> SendOutcome:
        outcome = await self.controller.send(text)
        if outcome == SendOutcome.CONVERSATION_CREATED:
            self.show_conversation_list = False
        return outcome

    # Private helper methods

    async def _load_conversations(self):
        try:
            await self.store.list_conversations()
        except NetworkOrServerError as e:
            self.notifications.error("Failed to load conversations.", e)

    async def _load_recent_events(self):
        try:
            self.recent_events = await self.api.list_recent_events()
        except NetworkOrServerError as e:
            # Messages still send without recent events in their context
            logger.warning(f"Recent events unavailable: {e.message}")

    async def _auto_select(self) -> SelectionResult:
        page_name = self.page_context.page_name
        try:
            if self.store.needs_reselection:
                return await self.policy.reresolve(page_name)
            return await self.policy.run(self._open_generation, page_name)
        except NetworkOrServerError as e:
            self.notifications.error("Failed to open a conversation.", e)
            return SelectionResult.SKIPPED
