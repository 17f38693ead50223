"""Settings and runtime builders for tests."""

from typing import Any

from skillrelay.config import Settings
from skillrelay.config.models import (
    BotConfig,
    IdentityConfig,
    MutexConfig,
    SkillEndpointConfig,
    SkillsConfig,
    StorageConfig,
)
from tests.factories.conversation import ROOT_CONNECTION, SKILL_CONNECTION
from tests.factories.skills import TEST_SKILL

SKILL_EXCHANGE_URI = "api://skill-bot/.default"


def make_settings(**overrides: Any) -> Settings:
    """Settings for an in-process root, skill and menu with a mock identity provider."""
    values: dict[str, Any] = {
        "bot": BotConfig(bot_id="root-bot", connection_name=ROOT_CONNECTION),
        "skill": BotConfig(
            bot_id="skill-bot",
            connection_name=SKILL_CONNECTION,
            token_exchange_uri=SKILL_EXCHANGE_URI,
            allowed_callers=["root-bot"],
        ),
        "skills": SkillsConfig(
            skills={
                TEST_SKILL.skill_id: SkillEndpointConfig(
                    app_id=TEST_SKILL.app_id, endpoint=TEST_SKILL.endpoint
                )
            },
            target_skill_id=TEST_SKILL.skill_id,
            transport="inprocess",
            timeout_seconds=1.0,
        ),
        "identity": IdentityConfig(backend="mock"),
        "storage": StorageConfig(backend="inmemory"),
        "mutex": MutexConfig(backend="local"),
    }
    values.update(overrides)
    return Settings(**values)
