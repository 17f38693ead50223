"""Storage and mutex configuration models."""

from typing import Literal

from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Conversation state store configuration."""

    backend: Literal["inmemory", "redis"] = Field(
        default="inmemory",
        description="Backend type",
    )
    connection_url: str | None = Field(
        default=None,
        description="Redis connection URL (from env var)",
    )
    key_prefix: str = Field(
        default="convstate",
        description="Redis key prefix for conversation state",
    )
    ttl_seconds: int = Field(
        default=604800,  # 7 days
        gt=0,
        description="Retention of idle conversation state (seconds)",
    )


class MutexConfig(BaseModel):
    """Per-conversation turn lock configuration."""

    backend: Literal["local", "redis"] = Field(
        default="local",
        description="Lock implementation",
    )
    lock_timeout: int = Field(
        default=30,
        gt=0,
        description="How long a lock is held before auto-release (seconds)",
    )
    blocking_timeout: float = Field(
        default=5.0,
        gt=0,
        description="How long to wait when acquiring (seconds)",
    )
