from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from taskdeck.domain.constants import COLLECTION_FILENAME, DEFAULT_HOST, DEFAULT_PORT


def _find_config_file() -> Path | None:
    for f in (Path.home() / ".config/taskdeck/config.toml", Path.home() / ".taskdeck.toml"):
        if f.exists():
            return f
    return None


class AppConfig(BaseSettings):
    """
    Configuration model for taskdeck.
    Supports loading from (lowest to highest precedence):
    1. Config file (~/.config/taskdeck/config.toml or ~/.taskdeck.toml)
    2. Environment variables (TASKDECK_*)
    3. Manual overrides (CLI / HTTP request)
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKDECK_",
        extra="ignore",
    )

    # Paths
    collection_path: Path = Field(default=Path(COLLECTION_FILENAME), validate_default=True)

    # Review
    blocking_deck_id: int | None = None

    # Server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = _find_config_file()
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("collection_path", mode="before")
    @classmethod
    def resolve_collection_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("blocking_deck_id", mode="before")
    @classmethod
    def empty_blocking_deck(cls, v: Any) -> Any:
        # An empty env var means "no blocking deck".
        if isinstance(v, str) and not v.strip():
            return None
        return v


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/taskdeck/config.toml (if exists)
    3. Environment variables (TASKDECK_*)
    4. cli_overrides (None values are ignored)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
