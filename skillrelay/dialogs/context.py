"""Per-turn context shared by every dialog that runs during a turn."""

from dataclasses import dataclass, field

from skillrelay.conversation.models import (
    Activity,
    ConversationState,
    InvokeResponse,
    Reply,
)
from skillrelay.identity.base import TokenExchangeClient


@dataclass
class TurnContext:
    """The inbound activity, the conversation's state and the turn's replies.

    Replies are collected in order and handed to the adapter when the turn
    ends; sending never fails from the core's perspective.
    """

    activity: Activity
    state: ConversationState
    token_client: TokenExchangeClient
    replies: list[Reply] = field(default_factory=list)
    invoke_response: InvokeResponse | None = None

    @property
    def user_id(self) -> str:
        return self.activity.from_id

    @property
    def channel_id(self) -> str:
        return self.activity.channel_id

    def send(self, reply: Reply | str) -> None:
        if isinstance(reply, str):
            reply = Reply.message(reply)
        self.replies.append(reply)

    @property
    def reply_texts(self) -> list[str]:
        return [reply.text for reply in self.replies if reply.text]
