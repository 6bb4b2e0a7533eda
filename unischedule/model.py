"""
Central data model definitions used across the project.

This module defines the canonical structure of Slot, Course and Entry objects so that:
- all modules share the same field names
- the stored / exported / cloud JSON keeps the same camelCase keys everywhere
- the "effective value" rule (override -> course default -> dash) lives in one place
"""

from __future__ import annotations

import time
import unicodedata
import uuid
from dataclasses import dataclass
from typing import Any, Optional


DAYS: tuple[tuple[str, str], ...] = (
    ("Mon", "Δευτέρα"),
    ("Tue", "Τρίτη"),
    ("Wed", "Τετάρτη"),
    ("Thu", "Πέμπτη"),
    ("Fri", "Παρασκευή"),
)
DAY_KEYS: tuple[str, ...] = tuple(key for key, _ in DAYS)

CLASS_TYPES: tuple[str, ...] = ("THEORY", "LAB")
THEMES: tuple[str, ...] = ("dark", "light")
SKINS: tuple[str, ...] = ("default", "lotr")

DASH = "—"


def new_id() -> str:
    """Random opaque id for slots, courses and entries."""
    return uuid.uuid4().hex[:12]


def now_ms() -> int:
    return int(time.time() * 1000)


def day_label(day: str) -> str:
    for key, label in DAYS:
        if key == day:
            return label
    return day


def day_index(day: str) -> int:
    try:
        return DAY_KEYS.index(day)
    except ValueError:
        return len(DAY_KEYS)


def type_short(class_type: str) -> str:
    return "Θ" if class_type == "THEORY" else "Ε"


def slot_label_text(start: str, end: str) -> str:
    return f"{start}–{end}"


def strip_accents(text: str) -> str:
    nfkd = unicodedata.normalize("NFKD", text)
    return "".join(c for c in nfkd if not unicodedata.combining(c))


def title_sort_key(title: str) -> tuple[str, str]:
    """
    Locale-aware ordering for course titles.

    Accents and case are ignored first ("Άλγεβρα" sorts with "αλγεβρα",
    before "Βάσεις"); the raw title breaks ties so the order stays total.
    """
    return (strip_accents(title).casefold(), title)


@dataclass
class Slot:
    """
    One recurring daily time window.

    Slots are ordered by their position in the slot list (user controlled),
    never by their start time.
    """

    id: str
    start: str
    end: str
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "start": self.start, "end": self.end, "label": self.label}


@dataclass
class Course:
    """
    A recurring subject with default metadata, independent of scheduling.
    """

    id: str
    title: str
    default_room: str = ""
    default_professors: str = ""
    course_url: str = ""
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "defaultRoom": self.default_room,
            "defaultProfessors": self.default_professors,
            "courseUrl": self.course_url,
            "createdAt": self.created_at,
        }


@dataclass
class Entry:
    """
    The placement of a course into one (day, slot) cell.

    room / professors / course_url are optional overrides:
    an empty string means "inherit from the course".
    """

    id: str
    course_id: str
    day: str
    slot_id: str
    class_type: str
    room: str = ""
    professors: str = ""
    course_url: str = ""
    created_at: int = 0

    @property
    def key(self) -> str:
        return cell_key(self.day, self.slot_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "courseId": self.course_id,
            "day": self.day,
            "slotId": self.slot_id,
            "classType": self.class_type,
            "room": self.room,
            "professors": self.professors,
            "courseUrl": self.course_url,
            "createdAt": self.created_at,
        }


@dataclass
class Profile:
    """
    Row of the hosted "profiles" table.

    username holds the sign-in identity (an e-mail address).
    """

    user_id: str
    username: str
    is_master: bool = False
    created_at: Optional[str] = None


DEFAULT_SLOTS: tuple[Slot, ...] = (
    Slot("09-11", "09:00", "11:00", "09:00–11:00"),
    Slot("11-13", "11:00", "13:00", "11:00–13:00"),
    Slot("14-16", "14:00", "16:00", "14:00–16:00"),
    Slot("16-18", "16:00", "18:00", "16:00–18:00"),
)


def default_slots() -> list[Slot]:
    return [Slot(s.id, s.start, s.end, s.label) for s in DEFAULT_SLOTS]


def cell_key(day: str, slot_id: str) -> str:
    return f"{day}__{slot_id}"


def _effective(override: str, default: str) -> str:
    return (override or default or "").strip() or DASH


def effective_room(entry: Entry, course: Optional[Course]) -> str:
    return _effective(entry.room, course.default_room if course else "")


def effective_professors(entry: Entry, course: Optional[Course]) -> str:
    return _effective(entry.professors, course.default_professors if course else "")


def effective_url(entry: Entry, course: Optional[Course]) -> str:
    return _effective(entry.course_url, course.course_url if course else "")
