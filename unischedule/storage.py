"""
Persistent local storage.

This module manages the file:

    data/local_storage.json

The file is a flat JSON object of string keys to string values, each value
itself a JSON document (one blob per key). The key names are the same ones
the schedule has always used, so data written by older versions is found and
migrated (see migrate.py).

Design rationale:
- slots, courses and entries are stored under separate keys
- when a user is signed in, those three keys are suffixed with the user id,
  so signed-out data and each user's cached copy never overwrite each other
- theme and export skin are global (not per user)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from unischedule.model import SKINS, THEMES, Course, Entry, Slot, default_slots
from unischedule.normalize import normalize_courses, normalize_entries, normalize_slots

logger = logging.getLogger(__name__)

SLOTS_KEY = "uni-schedule:slots:v1"
COURSES_KEY = "uni-schedule:courses:v1"
ENTRIES_KEY = "uni-schedule:entries:v1"
THEME_KEY = "uni-schedule:theme:v1"
EXPORT_SKIN_KEY = "uni-schedule:export-skin:v1"
CLOUD_SESSION_KEY = "uni-schedule:cloud-session:v1"

# Oldest format last: the first key holding a parseable list wins.
LEGACY_ENTRY_KEYS = ("uni-schedule:v3", "uni-schedule:v2", "uni-schedule:v1")


def _default_storage_path() -> Path:
    """
    Return the default path of local_storage.json.

    UNISCHEDULE_STORAGE overrides the package location
    (tests and multiple profiles use this).
    """
    env = os.getenv("UNISCHEDULE_STORAGE", "").strip()
    if env:
        return Path(env)
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "local_storage.json"


def scoped_key(base: str, user_id: Optional[str]) -> str:
    return f"{base}:{user_id}" if user_id else base


class LocalStorage:
    """
    String-keyed blob store backed by one JSON file.

    Reads are defensive: a missing or corrupted file behaves like an empty
    store and never crashes the application.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_storage_path()
        self._items: dict[str, str] = self._read()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Local storage at %s is unreadable, starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._items, indent=2, ensure_ascii=False), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()

    def keys(self) -> list[str]:
        return list(self._items)

    # JSON helpers

    def get_json(self, key: str) -> Any:
        """
        Parsed value of key, or None if absent / not valid JSON.
        """
        raw = self.get_item(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring invalid JSON stored under %s", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Schedule collections
# ---------------------------------------------------------------------------


def load_slots(storage: LocalStorage, user_id: Optional[str] = None) -> tuple[list[Slot], bool]:
    """
    Load slots for a scope. Returns (slots, first_run).

    Falls back to the default slots when nothing valid is stored;
    first_run tells the UI to show the slot setup step.
    """
    slots = normalize_slots(storage.get_json(scoped_key(SLOTS_KEY, user_id)))
    if not slots:
        return default_slots(), True
    return slots, False


def load_courses(storage: LocalStorage, user_id: Optional[str] = None) -> list[Course]:
    return normalize_courses(storage.get_json(scoped_key(COURSES_KEY, user_id)))


def load_entries(storage: LocalStorage, user_id: Optional[str] = None) -> list[Entry]:
    return normalize_entries(storage.get_json(scoped_key(ENTRIES_KEY, user_id)))


def has_scoped_cache(storage: LocalStorage, user_id: str) -> bool:
    return any(
        storage.get_item(scoped_key(base, user_id)) for base in (SLOTS_KEY, COURSES_KEY, ENTRIES_KEY)
    )


def save_slots(storage: LocalStorage, slots: list[Slot], user_id: Optional[str] = None) -> None:
    storage.set_json(scoped_key(SLOTS_KEY, user_id), [s.to_dict() for s in slots])


def save_courses(storage: LocalStorage, courses: list[Course], user_id: Optional[str] = None) -> None:
    storage.set_json(scoped_key(COURSES_KEY, user_id), [c.to_dict() for c in courses])


def save_entries(storage: LocalStorage, entries: list[Entry], user_id: Optional[str] = None) -> None:
    storage.set_json(scoped_key(ENTRIES_KEY, user_id), [e.to_dict() for e in entries])


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


def load_theme(storage: LocalStorage) -> str:
    saved = storage.get_item(THEME_KEY)
    return saved if saved in THEMES else "dark"


def save_theme(storage: LocalStorage, theme: str) -> None:
    storage.set_item(THEME_KEY, theme)


def load_skin(storage: LocalStorage) -> str:
    return "lotr" if storage.get_item(EXPORT_SKIN_KEY) == "lotr" else "default"


def save_skin(storage: LocalStorage, skin: str) -> None:
    storage.set_item(EXPORT_SKIN_KEY, skin if skin in SKINS else "default")
