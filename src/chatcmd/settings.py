from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import HOME_CONFIG_PATH, ConfigError


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    debug: bool = False
    format: Literal["console", "json"] = "console"


class DispatchSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    split_lines: bool = True


class PluginsSettings(BaseModel):
    enabled: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class CommandsSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    modules: list[str] = Field(default_factory=list)

    @field_validator("modules", mode="before")
    @classmethod
    def _validate_modules(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("modules must be a list of module paths")
        cleaned: list[str] = []
        for item in value:
            if not isinstance(item, str) or not item.strip():
                raise ValueError("modules must contain non-empty strings")
            cleaned.append(item.strip())
        return cleaned


class ChatcmdSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="CHATCMD__",
        env_nested_delimiter="__",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    plugins: PluginsSettings = Field(default_factory=PluginsSettings)
    commands: CommandsSettings = Field(default_factory=CommandsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(path: str | Path | None = None) -> tuple[ChatcmdSettings, Path]:
    cfg_path = _resolve_config_path(path)
    if not cfg_path.exists():
        raise ConfigError(f"Missing config file {cfg_path}.")
    if not cfg_path.is_file():
        raise ConfigError(f"Config path {cfg_path} exists but is not a file.")
    return _load_settings_from_path(cfg_path), cfg_path


def load_settings_if_exists(
    path: str | Path | None = None,
) -> tuple[ChatcmdSettings, Path] | None:
    cfg_path = _resolve_config_path(path)
    if cfg_path.exists():
        if not cfg_path.is_file():
            raise ConfigError(f"Config path {cfg_path} exists but is not a file.")
        return _load_settings_from_path(cfg_path), cfg_path
    return None


def validate_settings_data(
    data: dict[str, Any], *, config_path: Path
) -> ChatcmdSettings:
    try:
        return ChatcmdSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc


def _resolve_config_path(path: str | Path | None) -> Path:
    return Path(path).expanduser() if path else HOME_CONFIG_PATH


def _load_settings_from_path(cfg_path: Path) -> ChatcmdSettings:
    cfg = dict(ChatcmdSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "ChatcmdSettingsBound",
        (ChatcmdSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound()
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
