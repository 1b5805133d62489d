"""Conversation domain: session history, context windowing, turn lifecycle."""

from parley.conversation.exceptions import (
    CompletionFailedError,
    ConversationError,
    InvalidInputError,
)
from parley.conversation.models import (
    ChatContext,
    ChatHistoryPage,
    ChatResponse,
    ResponseMetadata,
    Role,
    Turn,
)
from parley.conversation.orchestrator import ConversationOrchestrator
from parley.conversation.store import SessionStore
from parley.conversation.stores.inmemory import InMemorySessionStore
from parley.conversation.sweeper import SessionSweeper

__all__ = [
    # Models
    "Role",
    "Turn",
    "ChatContext",
    "ChatResponse",
    "ChatHistoryPage",
    "ResponseMetadata",
    # Errors
    "ConversationError",
    "InvalidInputError",
    "CompletionFailedError",
    # Components
    "SessionStore",
    "InMemorySessionStore",
    "ConversationOrchestrator",
    "SessionSweeper",
]
