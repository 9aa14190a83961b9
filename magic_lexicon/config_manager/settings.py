"""Pydantic models and helper utilities for configuration values."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from magic_lexicon import logging_manager

from .constants import (
    DEFAULT_CHAT_TIMEOUT_SECONDS,
    DEFAULT_DATA_DIR,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_HOST,
    DEFAULT_SENTENCE_TIMEOUT_SECONDS,
    DEFAULT_WORDS_FILE,
    DEFAULT_WORD_TIMEOUT_SECONDS,
)

logger = logging_manager.get_logger().getChild("config")


class LexiconSettings(BaseModel):
    """Typed representation of the application configuration."""

    model_config = ConfigDict(extra="allow")

    ollama_host: str = DEFAULT_OLLAMA_HOST
    ollama_api_key: Optional[SecretStr] = None
    ollama_model: str = DEFAULT_MODEL
    data_dir: str = str(DEFAULT_DATA_DIR)
    words_file: str = DEFAULT_WORDS_FILE
    definition_language: str = "Vietnamese"
    word_timeout_seconds: float = Field(default=DEFAULT_WORD_TIMEOUT_SECONDS, gt=0)
    sentence_timeout_seconds: float = Field(default=DEFAULT_SENTENCE_TIMEOUT_SECONDS, gt=0)
    chat_timeout_seconds: float = Field(default=DEFAULT_CHAT_TIMEOUT_SECONDS, gt=0)
    debug: bool = False


class EnvironmentOverrides(BaseSettings):
    """Configuration overrides sourced from environment variables."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    ollama_host: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OLLAMA_HOST", "MAGIC_LEXICON_OLLAMA_HOST"),
    )
    ollama_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("OLLAMA_API_KEY", "MAGIC_LEXICON_API_KEY"),
    )
    ollama_model: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OLLAMA_MODEL", "MAGIC_LEXICON_MODEL"),
    )
    data_dir: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("MAGIC_LEXICON_DATA_DIR")
    )
    words_file: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("MAGIC_LEXICON_WORDS_FILE")
    )
    debug: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("MAGIC_LEXICON_DEBUG")
    )


def load_environment_overrides() -> Dict[str, Any]:
    """Return configuration overrides sourced from environment variables."""

    try:
        overrides = EnvironmentOverrides()
    except ValidationError as exc:
        logger.warning(
            "Invalid environment configuration detected; using defaults.",
            extra={"event": "config.env.validation_error", "error": str(exc)},
        )
        return {}
    return overrides.model_dump(exclude_none=True)


def build_settings(*layers: Dict[str, Any]) -> LexiconSettings:
    """Validate ``layers`` merged left to right into :class:`LexiconSettings`.

    A layer that fails validation is logged and skipped so one bad value in a
    preferences file cannot take the whole configuration down.
    """

    settings = LexiconSettings()
    for layer in layers:
        if not layer:
            continue
        try:
            candidate = LexiconSettings.model_validate(
                {**settings.model_dump(), **layer}
            )
        except ValidationError as exc:
            logger.warning(
                "Ignoring invalid configuration layer: %s",
                exc.errors()[0].get("msg") if exc.errors() else exc,
                extra={"event": "config.layer.validation_error"},
            )
            continue
        settings = candidate
    return settings


def reveal(value: Any) -> Any:
    """Return the plain value behind a :class:`SecretStr`."""

    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return value


__all__ = [
    "EnvironmentOverrides",
    "LexiconSettings",
    "build_settings",
    "load_environment_overrides",
    "reveal",
]
