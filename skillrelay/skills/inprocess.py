"""In-process skill client: calls a SkillHandler directly."""

from skillrelay.conversation.models import Activity
from skillrelay.skills.base import (
    SkillClient,
    SkillClientError,
    SkillConversationMapping,
    SkillRef,
    SkillResponse,
)
from skillrelay.skills.handler import SkillHandler, UnauthorizedCaller


class InProcessSkillClient(SkillClient):
    """Routes forwarded activities to skill handlers in the same process.

    Used for single-process deployments and tests. Handler failures are
    reported as ``SkillClientError`` like a failed HTTP call would be.
    """

    def __init__(self, caller_id: str, handlers: dict[str, SkillHandler]) -> None:
        self.caller_id = caller_id
        self._handlers = dict(handlers)

    async def forward_activity(
        self,
        skill: SkillRef,
        mapping: SkillConversationMapping,
        activity: Activity,
    ) -> SkillResponse:
        handler = self._handlers.get(skill.skill_id)
        if handler is None:
            raise SkillClientError(f"No handler for skill '{skill.skill_id}'", status_code=404)

        try:
            return await handler.handle(activity, caller_id=self.caller_id, mapping=mapping)
        except UnauthorizedCaller as e:
            raise SkillClientError(str(e), status_code=403) from e
        except SkillClientError:
            raise
        except Exception as e:
            raise SkillClientError(
                f"Skill '{skill.skill_id}' failed: {type(e).__name__}", status_code=500
            ) from e
