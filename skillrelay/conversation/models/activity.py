"""Inbound activities and outbound replies exchanged with the channel adapter."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
SIGNIN_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.oauth"

# Invoke names
TOKEN_EXCHANGE_INVOKE = "signin/tokenExchange"


class ActivityType(str, Enum):
    """Activity types understood by the core.

    Anything else is accepted and treated as a no-op turn.
    """

    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"
    EVENT = "event"
    INVOKE = "invoke"
    END_OF_CONVERSATION = "endOfConversation"


class Attachment(BaseModel):
    """A card or other rich payload referenced by a reply."""

    content_type: str = Field(..., description="MIME type of the attachment")
    name: str | None = Field(default=None, description="Card template name")
    content: dict[str, Any] = Field(default_factory=dict, description="Card payload")


class CardAction(BaseModel):
    """A suggested-action button; pressing it posts ``value`` as message text."""

    title: str = Field(..., description="Display label")
    value: str = Field(..., description="Text sent back when pressed")


class Activity(BaseModel):
    """An inbound turn as delivered by the channel adapter."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., description="message, conversationUpdate, event, ...")
    channel_id: str = Field(..., description="Channel the activity arrived on")
    conversation_id: str = Field(..., description="Conversation identifier")
    from_id: str = Field(..., alias="from", description="Sender user id")
    recipient_id: str | None = Field(default=None, description="Bot id")
    from_name: str | None = Field(default=None, description="Sender display name")
    id: str | None = Field(default=None, description="Activity id")
    text: str | None = Field(default=None, description="Message text")
    name: str | None = Field(default=None, description="Event or invoke name")
    value: Any = Field(default=None, description="Event, invoke or button payload")
    code: str | None = Field(default=None, description="End-of-conversation code")
    members_added: list[str] = Field(
        default_factory=list, description="Member ids added (conversationUpdate)"
    )

    @property
    def is_message(self) -> bool:
        return self.type == ActivityType.MESSAGE.value

    def with_conversation(self, conversation_id: str) -> "Activity":
        """Copy of this activity readdressed to another conversation."""
        return self.model_copy(update={"conversation_id": conversation_id})


class Reply(BaseModel):
    """An outbound payload produced during a turn.

    Replies are delivered in order, fire-and-forget. A skill returns its
    replies in the same shape, so the root can relay or intercept them.
    """

    type: str = Field(default=ActivityType.MESSAGE.value, description="Reply type")
    text: str | None = Field(default=None, description="Plain text")
    suggested_actions: list[CardAction] = Field(
        default_factory=list, description="Buttons offered with the reply"
    )
    attachments: list[Attachment] = Field(default_factory=list)
    name: str | None = Field(default=None, description="Event name")
    value: Any = Field(default=None, description="Structured payload")
    code: str | None = Field(default=None, description="End-of-conversation code")

    @classmethod
    def message(
        cls,
        text: str | None = None,
        suggested_actions: list[CardAction] | None = None,
        attachments: list[Attachment] | None = None,
    ) -> "Reply":
        return cls(
            text=text,
            suggested_actions=suggested_actions or [],
            attachments=attachments or [],
        )

    @classmethod
    def end_of_conversation(
        cls, code: str = "completedSuccessfully", value: Any = None
    ) -> "Reply":
        return cls(
            type=ActivityType.END_OF_CONVERSATION.value,
            code=code,
            value=value,
        )

    @property
    def is_end_of_conversation(self) -> bool:
        return self.type == ActivityType.END_OF_CONVERSATION.value

    def signin_card(self) -> Attachment | None:
        """The sign-in card carried by this reply, if any."""
        for attachment in self.attachments:
            if attachment.content_type == SIGNIN_CARD_CONTENT_TYPE:
                return attachment
        return None


class InvokeResponse(BaseModel):
    """Synchronous answer to an invoke activity."""

    status: int = Field(..., description="HTTP-like status code")
    body: dict[str, Any] | None = Field(default=None)
