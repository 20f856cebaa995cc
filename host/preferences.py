"""User-adjustable host configuration, persisted in the durable state store"""

import logging
from typing import Any, Dict

from settings import API_URL, DEFAULT_LANGUAGE, SOUNDS_ENABLED, SOUNDS_VOLUME
from utils.storage import StateStore

logger = logging.getLogger(__name__)

LANGUAGE_KEY = "language"
SELECTED_PROJECT_KEY = "selectedProjectId"
WELCOME_SHOWN_KEY = "hasShownWelcome"

# Wire name -> state store key
CONFIG_KEYS = {
    "apiUrl": "config.apiUrl",
    "soundsEnabled": "config.soundsEnabled",
    "soundsVolume": "config.soundsVolume",
}


class HostPreferences:
    """Defaults from settings.py, overridden by values saved in the state store"""

    def __init__(self, state_store: StateStore):
        self.state_store = state_store

    @property
    def api_url(self) -> str:
        return self.state_store.get(CONFIG_KEYS["apiUrl"], API_URL).rstrip("/")

    @property
    def language(self) -> str:
        return self.state_store.get(LANGUAGE_KEY, DEFAULT_LANGUAGE)

    @language.setter
    def language(self, value: str):
        self.state_store.update(LANGUAGE_KEY, value)

    def get_config(self) -> Dict[str, Any]:
        return {
            "apiUrl": self.api_url,
            "soundsEnabled": self.state_store.get(CONFIG_KEYS["soundsEnabled"], SOUNDS_ENABLED),
            "soundsVolume": self.state_store.get(CONFIG_KEYS["soundsVolume"], SOUNDS_VOLUME),
            "language": self.language,
        }

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Persist the non-None entries of ``changes`` (wire names)

        Returns:
            The subset of ``changes`` that differs from the current values
        """
        current = self.get_config()
        changed = {}
        for name, value in changes.items():
            if name == "apiUrl" and value:
                value = value.rstrip("/")
            if value is None or current.get(name) == value:
                continue
            if name == "language":
                self.language = value
            elif name in CONFIG_KEYS:
                self.state_store.update(CONFIG_KEYS[name], value)
            else:
                logger.warning(f"Ignoring unknown config key '{name}'")
                continue
            changed[name] = value
        return changed

    # Session-scoped durable state
    @property
    def selected_project_id(self):
        return self.state_store.get(SELECTED_PROJECT_KEY)

    @selected_project_id.setter
    def selected_project_id(self, project_id):
        self.state_store.update(SELECTED_PROJECT_KEY, project_id)

    def mark_welcome_shown(self) -> bool:
        """Set the first-run flag; True if it was not set before"""
        if self.state_store.get(WELCOME_SHOWN_KEY, False):
            return False
        self.state_store.update(WELCOME_SHOWN_KEY, True)
        return True
