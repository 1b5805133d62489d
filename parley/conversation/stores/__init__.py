"""Session stores for conversation history."""

from parley.conversation.store import SessionStore
from parley.conversation.stores.inmemory import InMemorySessionStore

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
]
