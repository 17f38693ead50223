"""Identity provider configuration models."""

from typing import Literal

from pydantic import BaseModel, Field


class IdentityConfig(BaseModel):
    """Token service connection settings."""

    backend: Literal["http", "mock"] = Field(
        default="http",
        description="Token exchange client implementation",
    )
    base_url: str = Field(
        default="http://localhost:8100",
        description="Token service base URL",
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Request timeout in seconds",
    )
