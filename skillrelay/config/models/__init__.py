"""Configuration section models."""

from skillrelay.config.models.bot import BotConfig
from skillrelay.config.models.identity import IdentityConfig
from skillrelay.config.models.skills import SkillEndpointConfig, SkillsConfig
from skillrelay.config.models.storage import MutexConfig, StorageConfig

__all__ = [
    "BotConfig",
    "IdentityConfig",
    "MutexConfig",
    "SkillEndpointConfig",
    "SkillsConfig",
    "StorageConfig",
]
