"""Persisted per-conversation state: dialog stack and active-skill marker."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class ConversationKey(BaseModel):
    """Stable identity of one ongoing conversation."""

    model_config = ConfigDict(frozen=True)

    channel_id: str = Field(..., description="Channel identifier")
    conversation_id: str = Field(..., description="Conversation identifier")

    def as_str(self) -> str:
        return f"{self.channel_id}:{self.conversation_id}"


class DialogStackFrame(BaseModel):
    """One dialog instance on a conversation's stack.

    ``step_index`` is -1 until the dialog has been begun. ``local_state``
    holds everything the dialog needs to resume on a later turn, so it must
    stay JSON-serializable.
    """

    model_config = ConfigDict(validate_assignment=True)

    dialog_id: str = Field(..., description="Registered dialog kind")
    instance_id: str = Field(
        default_factory=lambda: uuid4().hex, description="Identity of this instance"
    )
    step_index: int = Field(default=-1, ge=-1, description="Waterfall cursor")
    local_state: dict[str, Any] = Field(default_factory=dict)

    @property
    def begun(self) -> bool:
        return self.step_index >= 0


class ActiveSkillMarker(BaseModel):
    """The skill currently receiving delegated turns."""

    skill_id: str = Field(..., description="Configured skill identifier")
    app_id: str = Field(..., description="Skill application id")
    endpoint: str = Field(..., description="Skill messages endpoint")
    skill_conversation_id: str = Field(
        ..., description="Conversation id the skill sees"
    )
    set_at: datetime = Field(default_factory=utc_now)


class ConversationState(BaseModel):
    """Logical record stored per ConversationKey.

    The bottom frame is always the root dialog while a conversation is in
    progress. ``version`` is 0 until the record is first written and is
    bumped by the store on every successful save.
    """

    model_config = ConfigDict(validate_assignment=True)

    key: ConversationKey
    stack_frames: list[DialogStackFrame] = Field(default_factory=list)
    active_skill: ActiveSkillMarker | None = Field(default=None)
    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def fresh(cls, key: ConversationKey, root_dialog_id: str) -> "ConversationState":
        """New state holding a single, not yet begun, root frame."""
        return cls(key=key, stack_frames=[DialogStackFrame(dialog_id=root_dialog_id)])

    def reset_stack(self, root_dialog_id: str) -> None:
        self.stack_frames = [DialogStackFrame(dialog_id=root_dialog_id)]
