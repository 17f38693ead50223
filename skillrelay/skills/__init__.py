"""Skill references, RPC clients and the skill host handler."""

from skillrelay.skills.base import (
    SkillClient,
    SkillClientError,
    SkillConversationMapping,
    SkillRef,
    SkillResponse,
)
from skillrelay.skills.conversation_ids import SkillConversationIdFactory
from skillrelay.skills.handler import SkillHandler, UnauthorizedCaller
from skillrelay.skills.http import HttpSkillClient
from skillrelay.skills.inprocess import InProcessSkillClient

__all__ = [
    "HttpSkillClient",
    "InProcessSkillClient",
    "SkillClient",
    "SkillClientError",
    "SkillConversationIdFactory",
    "SkillConversationMapping",
    "SkillHandler",
    "SkillRef",
    "SkillResponse",
    "UnauthorizedCaller",
]
