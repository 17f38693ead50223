"""Conversation domain models.

- Activities delivered by the channel adapter and replies sent back
- Persisted conversation state (dialog stack, active-skill marker)
"""

from skillrelay.conversation.models.activity import (
    ADAPTIVE_CARD_CONTENT_TYPE,
    SIGNIN_CARD_CONTENT_TYPE,
    TOKEN_EXCHANGE_INVOKE,
    Activity,
    ActivityType,
    Attachment,
    CardAction,
    InvokeResponse,
    Reply,
)
from skillrelay.conversation.models.state import (
    ActiveSkillMarker,
    ConversationKey,
    ConversationState,
    DialogStackFrame,
)

__all__ = [
    "ADAPTIVE_CARD_CONTENT_TYPE",
    "SIGNIN_CARD_CONTENT_TYPE",
    "TOKEN_EXCHANGE_INVOKE",
    # Activities
    "Activity",
    "ActivityType",
    "Attachment",
    "CardAction",
    "InvokeResponse",
    "Reply",
    # State
    "ActiveSkillMarker",
    "ConversationKey",
    "ConversationState",
    "DialogStackFrame",
]
