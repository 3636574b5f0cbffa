"""Conversation session management for the floating assistant widget."""

from .controller import MessageExchangeController, SendOutcome
from .page_context import resolve
from .policy import AutoSelectionPolicy, SelectionResult
from .shell import PresentationShell
from .store import ConversationStore

__all__ = [
    "AutoSelectionPolicy",
    "ConversationStore",
    "MessageExchangeController",
    "PresentationShell",
    "SelectionResult",
    "SendOutcome",
    "resolve",
]
