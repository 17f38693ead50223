"""Root settings model and the TOML files behind it.

Values resolve, highest priority first: constructor arguments,
``SKILLRELAY_*`` environment variables, ``config/{SKILLRELAY_ENV}.toml``,
``config/default.toml``, then model defaults.
"""

import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from skillrelay.config.models import (
    BotConfig,
    IdentityConfig,
    MutexConfig,
    SkillsConfig,
    StorageConfig,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ENV_PREFIX = "SKILLRELAY_"
DEFAULT_ENVIRONMENT = "development"


def find_config_dir() -> Path | None:
    """Locate the directory holding ``default.toml``.

    ``SKILLRELAY_CONFIG_DIR`` is used when set and must exist. Otherwise the
    nearest ``config/`` with a ``default.toml`` at or above the working
    directory is used, or None when there is none.
    """
    explicit = os.environ.get(f"{ENV_PREFIX}CONFIG_DIR")
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {explicit}")
        return path

    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / "config"
        if (candidate / "default.toml").is_file():
            return candidate
    return None


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source over ``default.toml`` and the environment's file.

    The environment file is merged over the defaults table by table, so
    ``test.toml`` can set ``skills.timeout_seconds`` without repeating the
    skill endpoints.
    """

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self.environment = os.environ.get(f"{ENV_PREFIX}ENV", DEFAULT_ENVIRONMENT)
        self.files: list[Path] = []
        self._values = self._load(find_config_dir())

    def _load(self, config_dir: Path | None) -> dict[str, Any]:
        if config_dir is None:
            return {}

        default_file = config_dir / "default.toml"
        if not default_file.is_file():
            raise FileNotFoundError(
                f"Default configuration file not found: {default_file}. "
                f"Create config/default.toml or set {ENV_PREFIX}CONFIG_DIR."
            )

        values: dict[str, Any] = {}
        for path in (default_file, config_dir / f"{self.environment}.toml"):
            if not path.is_file():
                continue
            with path.open("rb") as f:
                values = _merge_tables(values, tomllib.load(f))
            self.files.append(path)
        return values

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        value = self._values.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return dict(self._values)


def _merge_tables(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge_tables(current, value)
        else:
            merged[key] = value
    return merged


class Settings(BaseSettings):
    """Root configuration object containing all nested configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="skillrelay", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json", description="Log renderer"
    )

    bot: BotConfig = Field(default_factory=BotConfig, description="Root bot identity")
    skill: BotConfig = Field(default_factory=BotConfig, description="Skill bot identity")
    skills: SkillsConfig = Field(
        default_factory=SkillsConfig,
        description="Skills the root bot can delegate to",
    )
    identity: IdentityConfig = Field(
        default_factory=IdentityConfig,
        description="Identity provider configuration",
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Conversation state storage configuration",
    )
    mutex: MutexConfig = Field(
        default_factory=MutexConfig,
        description="Per-conversation lock configuration",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
