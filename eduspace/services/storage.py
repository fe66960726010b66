"""Key-value persistence standing in for the browser's localStorage."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

CURRENT_MISSION_KEY = "currentMission"
GRADE_LEVEL_KEY = "gradeLevel"
TOUR_COMPLETED_KEY = "tourCompleted"


class LocalStorage:
    """Store string values by key in a single JSON file.

    Values are strings, the way a browser stores them; callers JSON-encode
    structured values themselves and own parse-failure recovery.
    """

    def __init__(self, path: str | Path = "data/eduspace_storage.json"):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data: Any = json.loads(self.path.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: dict[str, str]) -> None:
        self.path.write_text(json.dumps(data, indent=2))

    def get_item(self, key: str) -> str | None:
        """Return the stored string, or None when the key is absent."""
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        """Drop every stored key."""
        self._save({})
