"""File-backed preferences acting as the configuration provider."""
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from magic_lexicon import logging_manager
from magic_lexicon.fsutils import atomic_write_json, read_json

from .constants import DEFAULT_PREFERENCES_PATH, SENSITIVE_CONFIG_KEYS
from .settings import LexiconSettings, build_settings, load_environment_overrides, reveal

logger = logging_manager.get_logger().getChild("config.preferences")


class PreferencesStore:
    """Layered configuration: defaults, then the preferences file, then the environment.

    ``get`` mirrors the ``get(key, default)`` contract expected by the
    inference client. Secret values are returned as plain strings.
    """

    def __init__(
        self,
        path: Optional[Path | str] = None,
        *,
        use_environment: bool = True,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._path = Path(path) if path is not None else DEFAULT_PREFERENCES_PATH
        self._use_environment = use_environment
        self._overrides = dict(overrides or {})
        self._lock = threading.Lock()
        self._settings: Optional[LexiconSettings] = None

    @property
    def path(self) -> Path:
        return self._path

    def _read_file(self) -> Dict[str, Any]:
        try:
            data = read_json(self._path)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(
                "Failed to read preferences from %s: %s",
                self._path,
                exc,
                extra={"event": "config.preferences.invalid"},
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Preferences file %s does not contain an object; ignoring it.",
                self._path,
                extra={"event": "config.preferences.invalid"},
            )
            return {}
        return data

    def settings(self) -> LexiconSettings:
        """Return the validated settings, loading them on first use."""

        with self._lock:
            if self._settings is None:
                environment = load_environment_overrides() if self._use_environment else {}
                self._settings = build_settings(self._read_file(), environment, self._overrides)
            return self._settings

    def reload(self) -> LexiconSettings:
        with self._lock:
            self._settings = None
        return self.settings()

    def get(self, key: str, default: Any = None) -> Any:
        settings = self.settings()
        value = getattr(settings, key, None)
        if value is None and settings.model_extra:
            value = settings.model_extra.get(key)
        value = reveal(value)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """Persist ``key`` to the preferences file and refresh the cached settings."""

        with self._lock:
            data = self._read_file()
            data[key] = value
            atomic_write_json(self._path, data)
            self._settings = None
        logger.info(
            "Preference updated",
            extra={
                "event": "config.preferences.updated",
                "key": key,
                "value": "***" if key in SENSITIVE_CONFIG_KEYS else value,
            },
        )


__all__ = ["PreferencesStore"]
