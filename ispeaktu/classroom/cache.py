"""
LocalCache - Best-effort JSON mirror of the last good remote data.

Keys are versioned so an incompatible layout can be introduced without
reading stale entries. Reads and writes never raise: a broken cache file
behaves like an empty cache and the problem is logged.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

PROGRESS_KEY = "ispeaktu_v1_progress"
REMINDERS_KEY = "ispeaktu_v1_reminders"
AUTH_KEY = "ispeaktu_v1_auth"
CURRICULUM_KEY = "ispeaktu_v1_curriculum"

DEFAULT_CACHE_PATH = Path.home() / ".ispeaktu" / "cache.json"


class LocalCache:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_CACHE_PATH

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring cache {self.path}: expected an object")
            return {}
        return data

    def _save(self, data: dict):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2, default=str)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not write cache {self.path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any):
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
