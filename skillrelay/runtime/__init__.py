"""Turn lifecycle, per-conversation locking and bootstrap."""

from skillrelay.runtime.mutex import (
    ConversationBusy,
    ConversationMutex,
    LocalConversationMutex,
    RedisConversationMutex,
)
from skillrelay.runtime.turn_processor import TurnProcessor, TurnResult

__all__ = [
    "ConversationBusy",
    "ConversationMutex",
    "LocalConversationMutex",
    "RedisConversationMutex",
    "TurnProcessor",
    "TurnResult",
]
