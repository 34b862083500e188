"""Persisted preferences stored as a flat JSON object of strings."""

import json
import threading
from pathlib import Path
from typing import Optional, Union

from .config import PREFERENCES_FILE, DEBUG
from .state import TimerMode, DEFAULT_DURATIONS

ACTIVE_PLAN_KEY = "active_plan_id"
NOTIFICATION_PERMISSION_KEY = "notification_permission"


def duration_key(mode: TimerMode) -> str:
    """Preference key holding the saved minutes for a mode."""
    return f"dur_{mode.value}"


class PreferenceStore:
    """
    Best-effort key-value store backed by a JSON file.

    Reads tolerate a missing or corrupt file (treated as empty) and writes
    report failure instead of raising.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path is not None else PREFERENCES_FILE
        self._lock = threading.Lock()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, IOError) as e:
            print(f"[Prefs] Error loading preferences: {e}")
            return {}

        if not isinstance(data, dict):
            print("[Prefs] Ignoring preferences file: not a JSON object")
            return {}
        return data

    def _save(self, data: dict) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            return True
        except IOError as e:
            print(f"[Prefs] Error saving preferences: {e}")
            return False

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
        if value is None:
            return default
        return str(value)

    def set(self, key: str, value) -> bool:
        with self._lock:
            data = self._load()
            data[key] = str(value)
            saved = self._save(data)
        if saved and DEBUG:
            print(f"[Prefs] {key} = {value}")
        return saved

    def remove(self, key: str) -> bool:
        with self._lock:
            data = self._load()
            if key not in data:
                return True
            del data[key]
            return self._save(data)

    def saved_minutes(self, mode: TimerMode) -> Optional[int]:
        """Saved minutes for a mode, or None when absent or malformed."""
        raw = self.get(duration_key(mode))
        if raw is None:
            return None
        try:
            minutes = int(raw.strip())
        except ValueError:
            print(f"[Prefs] Ignoring malformed duration for {mode.value}: {raw!r}")
            return None
        return minutes if minutes > 0 else None

    def duration_for(self, mode: TimerMode) -> int:
        """Initial duration in seconds for a mode."""
        minutes = self.saved_minutes(mode)
        if minutes is None:
            return DEFAULT_DURATIONS[mode]
        return minutes * 60

    def set_duration(self, mode: TimerMode, minutes: int) -> bool:
        return self.set(duration_key(mode), int(minutes))
