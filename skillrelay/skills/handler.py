"""Skill host: turns forwarded activities into skill turns."""

from typing import TYPE_CHECKING

from skillrelay.conversation.models import Activity, ActivityType, Reply
from skillrelay.dialogs.models import DialogTurnStatus
from skillrelay.observability.logging import get_logger
from skillrelay.skills.base import SkillConversationMapping, SkillResponse

if TYPE_CHECKING:
    from skillrelay.runtime.turn_processor import TurnProcessor

logger = get_logger(__name__)


class UnauthorizedCaller(Exception):
    """The calling bot is not in the skill's allow-list."""

    def __init__(self, caller_id: str | None) -> None:
        super().__init__(f"Caller '{caller_id}' is not allowed to call this skill")
        self.caller_id = caller_id


class SkillHandler:
    """Runs the skill's TurnProcessor for activities forwarded by a root.

    The activity already carries the skill conversation id. When the skill's
    root dialog completes (or the turn failed) an ``endOfConversation``
    reply is appended so the caller can finish its delegation.
    """

    def __init__(
        self,
        processor: "TurnProcessor",
        allowed_callers: list[str] | None = None,
    ) -> None:
        self._processor = processor
        self._allowed_callers = set(allowed_callers or [])

    def is_allowed(self, caller_id: str | None) -> bool:
        if not self._allowed_callers or "*" in self._allowed_callers:
            return True
        return caller_id in self._allowed_callers

    async def handle(
        self,
        activity: Activity,
        caller_id: str | None = None,
        mapping: SkillConversationMapping | None = None,
    ) -> SkillResponse:
        if not self.is_allowed(caller_id):
            logger.warning("skill_caller_rejected", caller_id=caller_id)
            raise UnauthorizedCaller(caller_id)

        if mapping is not None and mapping.skill_conversation_id != activity.conversation_id:
            activity = activity.with_conversation(mapping.skill_conversation_id)

        result = await self._processor.process(activity)
        replies = list(result.replies)

        if activity.type != ActivityType.END_OF_CONVERSATION.value:
            if result.failed:
                replies.append(Reply.end_of_conversation(code="skillError"))
            elif result.status == DialogTurnStatus.COMPLETE:
                replies.append(Reply.end_of_conversation(value=_jsonable(result.result)))

        return SkillResponse(
            status=200,
            activities=replies,
            invoke_response=result.invoke_response,
        )


def _jsonable(value):
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value
