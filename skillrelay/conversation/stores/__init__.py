"""Conversation state stores."""

from skillrelay.conversation.store import ConversationStateStore
from skillrelay.conversation.stores.inmemory import InMemoryConversationStateStore
from skillrelay.conversation.stores.redis import RedisConversationStateStore

__all__ = [
    "ConversationStateStore",
    "InMemoryConversationStateStore",
    "RedisConversationStateStore",
]
