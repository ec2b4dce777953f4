"""Settings, language and data import/export persistence."""

import json
from typing import Any, Dict

import structlog
from pydantic import ValidationError

from ..domain.errors import DataImportError
from ..domain.models import AccessibilitySettings, Language, UserPreferences
from .base import KeyValueStore

logger = structlog.get_logger()

SETTINGS_KEY = "avan_settings"
LANGUAGE_KEY = "avan_language"
PREFERENCES_KEY = "avan_preferences"


class PreferenceStore:
    """User preferences kept in the local store."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _load_json(self, key: str) -> Dict[str, Any]:
        raw = self.store.get(key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("stored_json_corrupt", key=key)
            return {}
        return data if isinstance(data, dict) else {}

    def load_settings(self) -> AccessibilitySettings:
        """Stored settings merged over the defaults; corrupt data gives defaults."""
        merged = AccessibilitySettings().model_dump(by_alias=True)
        merged.update(self._load_json(SETTINGS_KEY))
        try:
            return AccessibilitySettings.model_validate(merged)
        except ValidationError:
            logger.warning("stored_settings_invalid", key=SETTINGS_KEY)
            return AccessibilitySettings()

    def save_settings(self, settings: AccessibilitySettings) -> AccessibilitySettings:
        self.store.set(SETTINGS_KEY, settings.model_dump_json(by_alias=True))
        return settings

    def load_language(self) -> Language:
        return Language.parse(self.store.get(LANGUAGE_KEY))

    def save_language(self, language: Language) -> Language:
        self.store.set(LANGUAGE_KEY, language.value)
        logger.info("language_changed", language=language.value)
        return language

    def load_preferences(self) -> UserPreferences:
        try:
            return UserPreferences.model_validate(self._load_json(PREFERENCES_KEY))
        except ValidationError:
            return UserPreferences()

    def save_preferences(self, preferences: UserPreferences) -> UserPreferences:
        self.store.set(PREFERENCES_KEY, preferences.model_dump_json(by_alias=True))
        return preferences

    def export_data(self) -> str:
        """Every stored key and value as one JSON object."""
        return json.dumps(self.store.items(), ensure_ascii=False)

    def import_data(self, payload: str) -> int:
        """Write every key of an exported JSON object back into the store.

        Existing keys are overwritten. Nothing is written unless the whole
        payload parses.
        """
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("data_import_rejected", error=str(e))
            raise DataImportError("Invalid file format") from e
        if not isinstance(data, dict):
            logger.warning("data_import_rejected", error="not a JSON object")
            raise DataImportError("Invalid file format")

        values = {
            str(key): value if isinstance(value, str) else json.dumps(value)
            for key, value in data.items()
        }
        self.store.update(values)
        logger.info("data_imported", keys=len(values))
        return len(values)
