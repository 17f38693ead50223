"""Skill RPC interface and data models.

A skill is a separate conversational process reached over RPC. The root
forwards one activity per call and receives the skill's replies in the
response (expect-replies delivery).
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from skillrelay.conversation.models import Activity, InvokeResponse, Reply


class SkillRef(BaseModel):
    """A configured target skill."""

    skill_id: str = Field(..., description="Configured skill identifier")
    app_id: str = Field(..., description="Skill application id")
    endpoint: str = Field(..., description="Skill messages endpoint")


class SkillConversationMapping(BaseModel):
    """Links the conversation a skill sees to the root's conversation."""

    skill_conversation_id: str
    skill_id: str
    channel_id: str
    conversation_id: str
    user_id: str


class SkillResponse(BaseModel):
    """Result of forwarding one activity to a skill."""

    status: int = Field(default=200)
    activities: list[Reply] = Field(default_factory=list)
    invoke_response: InvokeResponse | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class SkillClientError(Exception):
    """Transport or remote failure while calling a skill."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SkillClient(ABC):
    """Forwards activities to remote skills."""

    @abstractmethod
    async def forward_activity(
        self,
        skill: SkillRef,
        mapping: SkillConversationMapping,
        activity: Activity,
    ) -> SkillResponse:
        """Deliver ``activity`` to ``skill`` and return its replies.

        Raises:
            SkillClientError: On transport failure or non-2xx status
        """
        pass

    async def close(self) -> None:
        return None
