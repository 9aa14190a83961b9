"""Shared constants for the configuration manager package."""
from __future__ import annotations

import os
from pathlib import Path

MODULE_DIR = Path(__file__).resolve().parent
SCRIPT_DIR = MODULE_DIR.parent.parent.resolve()
CONF_DIR = SCRIPT_DIR / "conf"
DEFAULT_PREFERENCES_PATH = CONF_DIR / "preferences.json"
DEFAULT_DATA_DIR = Path(os.environ.get("MAGIC_LEXICON_DATA_DIR", SCRIPT_DIR / "data"))
DEFAULT_WORDS_FILE = "words.json"

DEFAULT_OLLAMA_HOST = "https://ollama.com"
DEFAULT_MODEL = "gpt-oss:20b-cloud"
CHAT_ENDPOINT_PATH = "/api/chat"

DEFAULT_WORD_TIMEOUT_SECONDS = 30.0
DEFAULT_SENTENCE_TIMEOUT_SECONDS = 60.0
DEFAULT_CHAT_TIMEOUT_SECONDS = 60.0

SENSITIVE_CONFIG_KEYS = {"ollama_api_key"}

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
    "MODULE_DIR",
    "SCRIPT_DIR",
    "SENSITIVE_CONFIG_KEYS",
]
