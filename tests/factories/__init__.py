"""Test factories."""

from tests.factories.conversation import (
    BOT_ID,
    CHANNEL_ID,
    CONVERSATION_ID,
    ROOT_CONNECTION,
    SKILL_CONNECTION,
    USER_ID,
    ActivityFactory,
    StateFactory,
    make_stack,
    make_turn,
)
from tests.factories.runtime import SKILL_EXCHANGE_URI, make_settings
from tests.factories.skills import TEST_SKILL, ScriptedSkillClient, hang

__all__ = [
    "BOT_ID",
    "CHANNEL_ID",
    "CONVERSATION_ID",
    "ROOT_CONNECTION",
    "SKILL_CONNECTION",
    "SKILL_EXCHANGE_URI",
    "TEST_SKILL",
    "USER_ID",
    "ActivityFactory",
    "ScriptedSkillClient",
    "StateFactory",
    "hang",
    "make_settings",
    "make_stack",
    "make_turn",
]
