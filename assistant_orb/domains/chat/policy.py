"""Auto-selection of a conversation when the widget opens."""

import logging
from collections.abc import Callable
from datetime import date
from enum import Enum

from assistant_orb.domains.chat.store import ConversationStore


logger = logging.getLogger(__name__)


class SelectionResult(str, Enum):
    SKIPPED = "skipped"
    CREATED = "created"
    SELECTED = "selected"


def conversation_title(page_name: str, today: date) -> str:
    """Title for a conversation started from a page, e.g. ``Deals Management Chat - 3/7/2025``."""
    return f"{page_name} Chat - {today.month}/{today.day}/{today.year}"


class AutoSelectionPolicy:
    """Creates or resumes a conversation once per open transition.

    The policy never orders conversations itself: "most recent" is whatever
    comes first in the list the backend returned.
    """

    def __init__(self, store: ConversationStore, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today
        self._last_open_generation: int | None = None

    def new_conversation_title(self, page_name: str) -> str:
        return conversation_title(page_name, self.today())

    async def run(self, open_generation: int, page_name: str) -> SelectionResult:
        """Resolve the active conversation for one open transition.

        Does nothing if it already ran for ``open_generation`` or if a
        conversation is already active.
        """
        if open_generation == self._last_open_generation:
            return SelectionResult.SKIPPED
        if not self.store.conversations_loaded:
            # An unknown list is never treated as an empty one
            logger.warning("Conversation list unavailable; auto-selection deferred")
            return SelectionResult.SKIPPED
        self._last_open_generation = open_generation

        if self.store.active_conversation_id is not None:
            return SelectionResult.SKIPPED
        return await self._resolve(page_name)

    async def reresolve(self, page_name: str) -> SelectionResult:
        """Resolve again after a fresh list dropped the active conversation."""
        if self.store.active_conversation_id is not None or not self.store.needs_reselection:
            return SelectionResult.SKIPPED
        logger.info("Active conversation disappeared from the list; re-resolving")
        return await self._resolve(page_name)

    async def _resolve(self, page_name: str) -> SelectionResult:
        if not self.store.conversations:
            title = self.new_conversation_title(page_name)
            logger.info(f"No conversations yet, creating '{title}'")
            await self.store.create_conversation(title)
            return SelectionResult.CREATED

        first = self.store.conversations[0]
        logger.info(f"Resuming most recent conversation {first.id}")
        await self.store.select_conversation(first.id)
        return SelectionResult.SELECTED
