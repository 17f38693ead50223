"""Skill conversation id factory."""

from uuid import NAMESPACE_URL, UUID, uuid5

from skillrelay.conversation.models import Activity
from skillrelay.skills.base import SkillConversationMapping, SkillRef


class SkillConversationIdFactory:
    """Derives the conversation id a skill sees from the root conversation.

    Ids are deterministic per (channel, conversation, skill), so a mapping
    can be rebuilt after a restart from the root's activity alone. The
    reverse lookup is kept in memory.
    """

    def __init__(self, namespace: UUID = NAMESPACE_URL) -> None:
        self._namespace = namespace
        self._mappings: dict[str, SkillConversationMapping] = {}

    def skill_conversation_id(self, activity: Activity, skill: SkillRef) -> str:
        name = f"{activity.channel_id}:{activity.conversation_id}:{skill.skill_id}"
        return str(uuid5(self._namespace, name))

    def create(self, activity: Activity, skill: SkillRef) -> SkillConversationMapping:
        mapping = SkillConversationMapping(
            skill_conversation_id=self.skill_conversation_id(activity, skill),
            skill_id=skill.skill_id,
            channel_id=activity.channel_id,
            conversation_id=activity.conversation_id,
            user_id=activity.from_id,
        )
        self._mappings[mapping.skill_conversation_id] = mapping
        return mapping

    def get(self, skill_conversation_id: str) -> SkillConversationMapping | None:
        return self._mappings.get(skill_conversation_id)

    def delete(self, skill_conversation_id: str) -> bool:
        return self._mappings.pop(skill_conversation_id, None) is not None

    def __len__(self) -> int:
        return len(self._mappings)
