"""Test doubles for the skill RPC channel."""

import asyncio
from collections.abc import Awaitable, Callable

from skillrelay.conversation.models import Activity
from skillrelay.skills.base import (
    SkillClient,
    SkillConversationMapping,
    SkillRef,
    SkillResponse,
)

TEST_SKILL = SkillRef(
    skill_id="SkillBot",
    app_id="skill-app",
    endpoint="http://skill.test/api/skills/messages",
)

Responder = Callable[[Activity], Awaitable[SkillResponse] | SkillResponse]


class ScriptedSkillClient(SkillClient):
    """Skill client whose answers come from a responder callable.

    Every forwarded activity is recorded. The responder may return a
    SkillResponse, an awaitable of one, or raise.
    """

    def __init__(self, responder: Responder | None = None) -> None:
        self.responder = responder or (lambda activity: SkillResponse())
        self.forwarded: list[Activity] = []
        self.mappings: list[SkillConversationMapping] = []

    async def forward_activity(
        self,
        skill: SkillRef,
        mapping: SkillConversationMapping,
        activity: Activity,
    ) -> SkillResponse:
        self.forwarded.append(activity)
        self.mappings.append(mapping)
        result = self.responder(activity)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    @property
    def forwarded_types(self) -> list[str]:
        return [activity.type for activity in self.forwarded]


async def hang(activity: Activity) -> SkillResponse:
    """Responder that never answers within a test timeout."""
    await asyncio.sleep(3600)
    return SkillResponse()
