"""Test factories for activities, conversation state and dialog stacks."""

from typing import Any

from skillrelay.conversation.models import (
    Activity,
    ActivityType,
    ConversationKey,
    ConversationState,
)
from skillrelay.dialogs.context import TurnContext
from skillrelay.dialogs.registry import DialogRegistry
from skillrelay.dialogs.stack import DialogStack
from skillrelay.identity.base import TokenExchangeClient
from skillrelay.identity.mock import MockTokenExchangeClient

CHANNEL_ID = "test"
CONVERSATION_ID = "conv-1"
USER_ID = "user-1"
BOT_ID = "bot-1"
ROOT_CONNECTION = "RootOAuthConnection"
SKILL_CONNECTION = "SkillOAuthConnection"


class ActivityFactory:
    """Factory for inbound activities."""

    @staticmethod
    def create(
        type: str,
        *,
        conversation_id: str = CONVERSATION_ID,
        user_id: str = USER_ID,
        channel_id: str = CHANNEL_ID,
        **kwargs: Any,
    ) -> Activity:
        return Activity(
            type=type,
            channel_id=channel_id,
            conversation_id=conversation_id,
            from_id=user_id,
            recipient_id=kwargs.pop("recipient_id", BOT_ID),
            **kwargs,
        )

    @staticmethod
    def message(text: str | None, **kwargs: Any) -> Activity:
        return ActivityFactory.create(ActivityType.MESSAGE.value, text=text, **kwargs)

    @staticmethod
    def event(name: str, value: Any = None, **kwargs: Any) -> Activity:
        return ActivityFactory.create(ActivityType.EVENT.value, name=name, value=value, **kwargs)

    @staticmethod
    def invoke(name: str, value: Any = None, **kwargs: Any) -> Activity:
        return ActivityFactory.create(ActivityType.INVOKE.value, name=name, value=value, **kwargs)

    @staticmethod
    def conversation_update(members_added: list[str], **kwargs: Any) -> Activity:
        return ActivityFactory.create(
            ActivityType.CONVERSATION_UPDATE.value,
            members_added=members_added,
            **kwargs,
        )

    @staticmethod
    def end_of_conversation(**kwargs: Any) -> Activity:
        return ActivityFactory.create(ActivityType.END_OF_CONVERSATION.value, **kwargs)


class StateFactory:
    """Factory for conversation state records."""

    @staticmethod
    def create(
        root_dialog_id: str | None = None,
        *,
        channel_id: str = CHANNEL_ID,
        conversation_id: str = CONVERSATION_ID,
    ) -> ConversationState:
        key = ConversationKey(channel_id=channel_id, conversation_id=conversation_id)
        if root_dialog_id is None:
            return ConversationState(key=key)
        return ConversationState.fresh(key, root_dialog_id)


def make_turn(
    activity: Activity,
    state: ConversationState | None = None,
    token_client: TokenExchangeClient | None = None,
) -> TurnContext:
    return TurnContext(
        activity=activity,
        state=state or StateFactory.create(),
        token_client=token_client or MockTokenExchangeClient(),
    )


def make_stack(
    registry: DialogRegistry,
    activity: Activity,
    state: ConversationState | None = None,
    token_client: TokenExchangeClient | None = None,
) -> DialogStack:
    """A dialog stack over ``state`` for one turn carrying ``activity``."""
    return DialogStack(registry, make_turn(activity, state, token_client))
