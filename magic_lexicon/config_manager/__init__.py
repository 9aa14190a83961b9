"""High-level configuration management for magic-lexicon."""
from __future__ import annotations

from .constants import (
    CHAT_ENDPOINT_PATH,
    CONF_DIR,
    DEFAULT_CHAT_TIMEOUT_SECONDS,
    DEFAULT_DATA_DIR,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_HOST,
    DEFAULT_PREFERENCES_PATH,
    DEFAULT_SENTENCE_TIMEOUT_SECONDS,
    DEFAULT_WORDS_FILE,
    DEFAULT_WORD_TIMEOUT_SECONDS,
    SENSITIVE_CONFIG_KEYS,
)
from .preferences import PreferencesStore
from .settings import (
    EnvironmentOverrides,
    LexiconSettings,
    build_settings,
    load_environment_overrides,
)

__all__ = [
    "CHAT_ENDPOINT_PATH",
    "CONF_DIR",
    "DEFAULT_CHAT_TIMEOUT_SECONDS",
    "DEFAULT_DATA_DIR",
    "DEFAULT_MODEL",
    "DEFAULT_OLLAMA_HOST",
    "DEFAULT_PREFERENCES_PATH",
    "DEFAULT_SENTENCE_TIMEOUT_SECONDS",
    "DEFAULT_WORDS_FILE",
    "DEFAULT_WORD_TIMEOUT_SECONDS",
    "EnvironmentOverrides",
    "LexiconSettings",
    "PreferencesStore",
    "SENSITIVE_CONFIG_KEYS",
    "build_settings",
    "load_environment_overrides",
]
