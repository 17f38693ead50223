"""Skill delegation configuration models."""

from typing import Literal

from pydantic import BaseModel, Field


class SkillEndpointConfig(BaseModel):
    """Where a skill can be reached."""

    app_id: str = Field(..., description="Application id of the skill")
    endpoint: str = Field(..., description="Skill messages endpoint URL")


class SkillsConfig(BaseModel):
    """Skills known to the root bot."""

    skills: dict[str, SkillEndpointConfig] = Field(
        default_factory=dict,
        description="skill_id -> endpoint configuration",
    )
    target_skill_id: str = Field(
        default="SkillBot",
        description="Skill the main flow delegates to",
    )
    transport: Literal["http", "inprocess"] = Field(
        default="http",
        description="Reach skills over HTTP or call the skill host in-process",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single forwarded activity",
    )
