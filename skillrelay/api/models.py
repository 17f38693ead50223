"""Request and response bodies for the messages API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from skillrelay.conversation.models import Activity, InvokeResponse, Reply
from skillrelay.skills.base import SkillConversationMapping


class TurnResponse(BaseModel):
    """Replies produced by one turn, in order."""

    replies: list[Reply] = Field(default_factory=list)
    invoke_response: InvokeResponse | None = None


class SkillRequest(BaseModel):
    """An activity forwarded by a root bot."""

    caller_id: str | None = None
    mapping: SkillConversationMapping | None = None
    activity: Activity


class ComponentHealth(BaseModel):
    name: str
    status: Literal["healthy", "unhealthy"]


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    components: list[ComponentHealth] = Field(default_factory=list)
    timestamp: datetime


class ErrorBody(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorBody
