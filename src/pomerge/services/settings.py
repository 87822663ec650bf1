"""Settings service — load ~/.config/pomerge/settings.json."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

_SETTINGS_FILE = Path.home() / ".config" / "pomerge" / "settings.json"

DEFAULTS: dict[str, Any] = {
    # Scanning
    "ends_with": "",          # extra "still needs work" suffix, e.g. "#fuzzy"
    "encoding": "utf-8",

    # Merging
    "backup_suffix": ".bak",

    # Output
    "log_level": "INFO",
}


class Settings:
    """Run defaults backed by a JSON file."""

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None):
        self._path = path or _SETTINGS_FILE
        self._data: dict[str, Any] = dict(DEFAULTS)
        self._load()

    @classmethod
    def get(cls) -> Settings:
        if cls._instance is None:
            cls._instance = Settings()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        cls._instance = None

    # ── Public API ────────────────────────────────────────────────

    def __getitem__(self, key: str) -> Any:
        return self._data.get(key, DEFAULTS.get(key))

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default if default is not None else DEFAULTS.get(key))

    @property
    def exists(self) -> bool:
        return self._path.exists()

    @property
    def backup_suffix(self) -> str:
        # An empty suffix would make the backup path the live path
        return self._data.get("backup_suffix") or DEFAULTS["backup_suffix"]

    # ── Private ───────────────────────────────────────────────────

    def _load(self):
        if not self._path.exists():
            return
        try:
            stored = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable settings file %s: %s", self._path, e)
            return
        if not isinstance(stored, dict):
            log.warning("Ignoring settings file %s: expected a JSON object", self._path)
            return
        self._data.update(stored)
