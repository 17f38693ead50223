"""Bot identity configuration models."""

from pydantic import BaseModel, Field


class BotConfig(BaseModel):
    """Identity of one bot (root or skill) and its OAuth connection."""

    bot_id: str = Field(default="", description="Application id of the bot")
    connection_name: str = Field(
        default="",
        description="OAuth connection name registered with the identity provider",
    )
    token_exchange_uri: str | None = Field(
        default=None,
        description="Resource URI offered on sign-in cards for SSO exchange",
    )
    allowed_callers: list[str] = Field(
        default_factory=list,
        description="Bot ids allowed to call this bot as a skill (empty allows any)",
    )
