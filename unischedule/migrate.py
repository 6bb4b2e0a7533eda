"""
Legacy migration (flat entries -> courses + entries).

Older versions stored one flat list per key, each record carrying its own
course title:

    {id, title, day, slotId | slot, classType, room, professors, courseUrl, createdAt}

The current format splits this into courses (one per distinct title) and
entries referencing them by id. Migration only runs while the current
collections are still empty.
"""

from __future__ import annotations

import logging
from typing import Any

from unischedule.model import Course, Entry, Slot, new_id, now_ms, title_sort_key
from unischedule.normalize import as_ms, is_class_type, is_day
from unischedule.storage import (
    LEGACY_ENTRY_KEYS,
    LocalStorage,
    load_courses,
    load_entries,
    save_courses,
    save_entries,
)

logger = logging.getLogger(__name__)


def _text(record: dict[str, Any], name: str) -> str:
    value = record.get(name)
    return value if isinstance(value, str) else ""


def _migrate_records(data: list[Any]) -> tuple[list[Course], list[Entry]]:
    courses_by_title: dict[str, Course] = {}
    entries: list[Entry] = []

    for x in data:
        if not isinstance(x, dict):
            continue

        title = _text(x, "title").strip()
        day = x.get("day")
        slot_id = _text(x, "slotId") or _text(x, "slot")
        if not title or not is_day(day) or not slot_id:
            continue

        room = _text(x, "room")
        professors = _text(x, "professors")
        course_url = _text(x, "courseUrl")
        created_at = as_ms(x.get("createdAt"))
        if created_at is None:
            created_at = now_ms()

        # first occurrence of a title provides the course defaults
        course = courses_by_title.get(title)
        if course is None:
            course = Course(
                id=new_id(),
                title=title,
                default_room=room,
                default_professors=professors,
                course_url=course_url,
                created_at=now_ms(),
            )
            courses_by_title[title] = course

        class_type = x.get("classType")
        entries.append(
            Entry(
                id=_text(x, "id") or new_id(),
                course_id=course.id,
                day=day,
                slot_id=slot_id,
                class_type=class_type if is_class_type(class_type) else "THEORY",
                room=room,
                professors=professors,
                course_url=course_url,
                created_at=created_at,
            )
        )

    return list(courses_by_title.values()), entries


def migrate_legacy_if_needed(storage: LocalStorage, slots: list[Slot]) -> tuple[list[Course], list[Entry]]:
    """
    Return (courses, entries) for the signed-out scope, migrating legacy data once.

    - current data present -> returned unchanged, legacy keys untouched
    - otherwise the first legacy key holding a JSON list is migrated,
      entries pointing at unknown slots are dropped, and the result is saved
    - keys that are missing or fail to parse are skipped
    """
    existing_courses = load_courses(storage)
    existing_entries = load_entries(storage)
    if existing_courses or existing_entries:
        return existing_courses, existing_entries

    for key in LEGACY_ENTRY_KEYS:
        data = storage.get_json(key)
        if not isinstance(data, list):
            continue

        courses, entries = _migrate_records(data)
        slot_ids = {s.id for s in slots}
        kept = [e for e in entries if e.slot_id in slot_ids]

        courses.sort(key=lambda c: title_sort_key(c.title))
        save_courses(storage, courses)
        save_entries(storage, kept)
        logger.info(
            "Migrated %d course(s) and %d entries from legacy key %s", len(courses), len(kept), key
        )
        return courses, kept

    return [], []
