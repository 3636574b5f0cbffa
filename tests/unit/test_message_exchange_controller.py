"""Unit tests for MessageExchangeController."""

import asyncio
from datetime import UTC, date, datetime

import pytest

from assistant_orb.domains.chat.controller import MessageExchangeController, SendOutcome
from assistant_orb.domains.chat.policy import AutoSelectionPolicy
from assistant_orb.domains.chat.store import ConversationStore
from assistant_orb.exceptions.chat import NetworkOrServerError
from assistant_orb.schemas.chat import ChatReply, Conversation, Message, MessageContext, MessageRole, PendingMessage
from assistant_orb.services.event_tracker import EventTracker
from assistant_orb.services.notification_service import NotificationService


def context() -> MessageContext:
    return MessageContext(
        page="/deals",
        page_name="Deals Management",
        recent_events=[],
        timestamp=datetime(2025, 3, 7, 9, 30, tzinfo=UTC),
    )


def make_controller(mock_api, **options) -> MessageExchangeController:
    store = ConversationStore(mock_api)
    return MessageExchangeController(
        store,
        AutoSelectionPolicy(store, today=lambda: date(2025, 3, 7)),
        EventTracker(mock_api),
        NotificationService(),
        context_provider=context,
        **options,
    )


@pytest.fixture
def controller(mock_api):
    mock_api.list_conversations.return_value = [Conversation(id=5, title="Chat")]
    mock_api.generate_reply.return_value = ChatReply(content="Hello!", conversation_id=5)
    return make_controller(mock_api)


async def activate(controller, conversation_id=5):
    await controller.store.select_conversation(conversation_id)


@pytest.mark.asyncio
class TestSend:
    """Test cases for a single send."""

    async def test_whitespace_is_a_noop(self, controller, mock_api):
        await activate(controller)
        controller.input_text = "   \n\t"

        outcome = await controller.send()

        assert outcome == SendOutcome.EMPTY
        assert controller.can_send is False
        mock_api.append_message.assert_not_called()
        mock_api.generate_reply.assert_not_called()
        assert controller.notifications.notifications == []

    async def test_success_trims_clears_input_and_refetches(self, controller, mock_api):
        await activate(controller)
        controller.input_text = "  What deals closed?  "
        mock_api.list_messages.reset_mock()
        mock_api.list_messages.return_value = [
            Message(id=1, role=MessageRole.USER, content="What deals closed?", conversation_id=5),
            Message(id=2, role=MessageRole.ASSISTANT, content="Hello!", conversation_id=5),
        ]

        outcome = await controller.send()
        await controller.tracker.drain()

        assert outcome == SendOutcome.SENT
        assert controller.input_text == ""
        assert controller.is_typing is False
        mock_api.append_message.assert_awaited_once_with(5, "What deals closed?", context())
        mock_api.generate_reply.assert_awaited_once_with("What deals closed?", 5, context())
        mock_api.list_messages.assert_awaited_once_with(5)
        assert [m.content for m in controller.store.messages] == ["What deals closed?", "Hello!"]

    async def test_reply_is_requested_after_append(self, controller, mock_api):
        await activate(controller)
        order = []
        mock_api.append_message.side_effect = lambda *args: order.append("append")
        mock_api.generate_reply.side_effect = lambda *args: order.append("reply")

        await controller.send("Hi")

        assert order == ["append", "reply"]

    async def test_success_tracks_message_sent(self, controller, mock_api):
        await activate(controller)

        await controller.send("Hi")
        await controller.tracker.drain()

        event = mock_api.track_event.await_args.args[0]
        assert event.event_name == "ai_orb.message_sent"
        assert event.event_properties["conversationId"] == 5
        assert event.event_properties["page"] == "/deals"
        assert event.event_properties["pageName"] == "Deals Management"

    async def test_reply_failure_notifies_and_keeps_input(self, controller, mock_api):
        await activate(controller)
        controller.input_text = "Hello"
        mock_api.generate_reply.side_effect = NetworkOrServerError("down", 500)
        mock_api.list_messages.reset_mock()

        outcome = await controller.send()

        assert outcome == SendOutcome.FAILED
        assert controller.is_typing is False
        assert controller.input_text == "Hello"
        assert controller.store.messages == []
        mock_api.list_messages.assert_not_called()
        mock_api.track_event.assert_not_called()
        [notification] = controller.notifications.errors
        assert notification.description == "Failed to send message. Please try again."

    async def test_append_failure_skips_reply(self, controller, mock_api):
        await activate(controller)
        mock_api.append_message.side_effect = NetworkOrServerError("down", 503)

        outcome = await controller.send("Hello")

        assert outcome == SendOutcome.FAILED
        mock_api.generate_reply.assert_not_called()

    async def test_refetch_failure_still_counts_as_sent(self, controller, mock_api):
        await activate(controller)
        mock_api.list_messages.side_effect = NetworkOrServerError("down", 500)

        outcome = await controller.send("Hello")

        assert outcome == SendOutcome.SENT
        assert controller.notifications.errors == []


@pytest.mark.asyncio
class TestTypingIndicator:
    """The typing flag is true exactly while a send is outstanding."""

    async def test_true_while_waiting_for_reply(self, controller, mock_api):
        await activate(controller)
        release = asyncio.Event()
        seen = []

        async def generate_reply(*args):
            seen.append(controller.is_typing)
            await release.wait()
            return ChatReply(content="ok")

        mock_api.generate_reply.side_effect = generate_reply

        task = asyncio.create_task(controller.send("Hi"))
        await asyncio.sleep(0)
        assert controller.is_typing is True
        release.set()
        await task

        assert seen == [True]
        assert controller.is_typing is False

    async def test_overlapping_sends_with_one_failure(self, controller, mock_api):
        await activate(controller)
        gates = {"first": asyncio.Event(), "second": asyncio.Event()}

        async def generate_reply(message, conversation_id, ctx):
            await gates[message].wait()
            if message == "first":
                raise NetworkOrServerError("down", 500)
            return ChatReply(content="ok")

        mock_api.generate_reply.side_effect = generate_reply

        first = asyncio.create_task(controller.send("first"))
        second = asyncio.create_task(controller.send("second"))
        await asyncio.sleep(0)
        assert controller.is_typing is True

        # The failing send settles first; the other is still outstanding
        gates["first"].set()
        assert await first == SendOutcome.FAILED
        assert controller.is_typing is True

        gates["second"].set()
        assert await second == SendOutcome.SENT
        assert controller.is_typing is False
        assert len(controller.notifications.errors) == 1


@pytest.mark.asyncio
class TestImplicitCreate:
    """Sending while no conversation is active."""

    async def test_creates_conversation_and_holds_text(self, mock_api):
        mock_api.create_conversation.return_value = Conversation(id=11, title="Deals Management Chat - 3/7/2025")
        controller = make_controller(mock_api)
        controller.input_text = "Summarize my pipeline"

        outcome = await controller.send()

        assert outcome == SendOutcome.CONVERSATION_CREATED
        mock_api.create_conversation.assert_awaited_once_with("Deals Management Chat - 3/7/2025")
        mock_api.append_message.assert_not_called()
        assert controller.store.active_conversation_id == 11
        assert controller.input_text == "Summarize my pipeline"

    async def test_explicit_text_is_moved_into_input(self, mock_api):
        mock_api.create_conversation.return_value = Conversation(id=11)
        controller = make_controller(mock_api)

        await controller.send("Hello")

        assert controller.input_text == "Hello"

    async def test_chained_send_when_enabled(self, mock_api):
        mock_api.create_conversation.return_value = Conversation(id=11)
        mock_api.generate_reply.return_value = ChatReply(content="Hi")
        controller = make_controller(mock_api, send_after_implicit_create=True)

        outcome = await controller.send("Hello")

        assert outcome == SendOutcome.SENT
        mock_api.append_message.assert_awaited_once_with(11, "Hello", context())
        assert controller.input_text == ""

    async def test_create_failure_notifies(self, mock_api):
        mock_api.create_conversation.side_effect = NetworkOrServerError("down", 500)
        controller = make_controller(mock_api)

        outcome = await controller.send("Hello")

        assert outcome == SendOutcome.FAILED
        assert controller.store.active_conversation_id is None
        [notification] = controller.notifications.errors
        assert notification.description == "Failed to create new conversation."


@pytest.mark.asyncio
class TestOptimisticEcho:
    """Pending echo of the user's message."""

    async def test_pending_shown_until_refetch(self, mock_api):
        mock_api.list_conversations.return_value = [Conversation(id=5)]
        controller = make_controller(mock_api, optimistic_echo=True)
        await activate(controller)
        seen = []

        async def generate_reply(*args):
            seen.extend(controller.store.messages)
            return ChatReply(content="ok")

        mock_api.generate_reply.side_effect = generate_reply
        mock_api.list_messages.return_value = [
            Message(id=1, role=MessageRole.USER, content="Hello", conversation_id=5),
        ]

        await controller.send("Hello")

        assert len(seen) == 1
        assert isinstance(seen[0], PendingMessage)
        assert [type(m) for m in controller.store.messages] == [Message]

    async def test_pending_dropped_on_failure(self, mock_api):
        mock_api.list_conversations.return_value = [Conversation(id=5)]
        mock_api.append_message.side_effect = NetworkOrServerError("down", 500)
        controller = make_controller(mock_api, optimistic_echo=True)
        await activate(controller)

        await controller.send("Hello")

        assert controller.store.messages == []
