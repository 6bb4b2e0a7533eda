"""
Schedule store: slots, courses and entries plus the views derived from them.

The store owns the three collections. Every mutation is mirrored to local
storage under the keys of the active scope (signed out, or one user id).

Placing a course into an occupied cell never overwrites silently:
place_entry() parks the replacement as store.pending and only
confirm_pending() applies it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional, TypeVar

from unischedule.errors import ValidationError
from unischedule.migrate import migrate_legacy_if_needed
from unischedule.model import (
    Course,
    Entry,
    Slot,
    cell_key,
    day_index,
    day_label,
    effective_professors,
    effective_room,
    effective_url,
    new_id,
    now_ms,
    slot_label_text,
    title_sort_key,
)
from unischedule.normalize import is_class_type, is_day, is_hhmm
from unischedule.storage import (
    LocalStorage,
    load_courses,
    load_entries,
    load_slots,
    save_courses,
    save_entries,
    save_slots,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def move_item_insert(items: list[T], from_index: int, insert_index: int) -> list[T]:
    """
    Move items[from_index] so it lands at insert_index of the ORIGINAL list.

    The item is removed first, so an insertion point after the source shifts
    down by one. The result is clamped to the list bounds.
    """
    out = list(items)
    item = out.pop(from_index)
    idx = insert_index
    if from_index < idx:
        idx -= 1
    idx = max(0, min(idx, len(out)))
    out.insert(idx, item)
    return out


@dataclass
class CourseGroup:
    course: Course
    sessions: list[Entry] = field(default_factory=list)


def build_course_map(courses: list[Course]) -> dict[str, Course]:
    return {c.id: c for c in courses}


def group_by_course(entries: list[Entry], courses: list[Course], slots: list[Slot]) -> list[CourseGroup]:
    """
    Group entries per course.

    Sessions inside a group: by weekday (Mon..Fri), then by the slot's
    configured position. Groups: by course title, locale-aware.
    Entries pointing at an unknown course are left out.
    """
    course_map = build_course_map(courses)
    slot_pos = {s.id: i for i, s in enumerate(slots)}

    groups: dict[str, CourseGroup] = {}
    for e in entries:
        c = course_map.get(e.course_id)
        if c is None:
            continue
        groups.setdefault(c.id, CourseGroup(course=c)).sessions.append(e)

    for g in groups.values():
        g.sessions.sort(key=lambda e: (day_index(e.day), slot_pos.get(e.slot_id, 9999)))

    return sorted(groups.values(), key=lambda g: title_sort_key(g.course.title))


def slot_label(slot_id: str, slots: list[Slot]) -> str:
    for s in slots:
        if s.id == slot_id:
            return s.label
    return slot_id


# ---------------------------------------------------------------------------
# Placement (upsert with explicit confirmation)
# ---------------------------------------------------------------------------


@dataclass
class Placement:
    """
    Outcome of place_entry().

    status:
    - "inserted": the cell was free, entry added
    - "pending": the cell is taken by `existing`; nothing changed yet
    - "replaced": a pending replacement was confirmed
    """

    status: str
    entry: Entry
    existing: Optional[Entry] = None


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ScheduleStore:
    def __init__(
        self,
        slots: list[Slot],
        courses: list[Course],
        entries: list[Entry],
        storage: Optional[LocalStorage] = None,
        user_id: Optional[str] = None,
    ) -> None:
        self.slots: list[Slot] = list(slots)
        self.courses: list[Course] = list(courses)
        self.entries: list[Entry] = list(entries)
        self.storage = storage
        self.user_id = user_id
        self.pending: Optional[Placement] = None
        self.on_change: Optional[Callable[[], None]] = None

    @classmethod
    def load(cls, storage: LocalStorage, user_id: Optional[str] = None) -> tuple["ScheduleStore", bool]:
        """
        Build a store from local storage. Returns (store, first_run).

        Legacy migration only applies to the signed-out scope.
        """
        slots, first_run = load_slots(storage, user_id)
        if user_id is None:
            courses, entries = migrate_legacy_if_needed(storage, slots)
        else:
            courses, entries = load_courses(storage, user_id), load_entries(storage, user_id)
        return cls(slots, courses, entries, storage=storage, user_id=user_id), first_run

    # -- persistence --------------------------------------------------------

    def _changed(self, *, slots: bool = False, courses: bool = False, entries: bool = False) -> None:
        self.pending = None
        if self.storage is not None:
            if slots:
                save_slots(self.storage, self.slots, self.user_id)
            if courses:
                save_courses(self.storage, self.courses, self.user_id)
            if entries:
                save_entries(self.storage, self.entries, self.user_id)
        if self.on_change is not None:
            self.on_change()

    def switch_scope(self, user_id: Optional[str]) -> bool:
        """
        Reload the collections from another scope's keys. Returns first_run.
        """
        if self.storage is None:
            self.user_id = user_id
            return False
        fresh, first_run = ScheduleStore.load(self.storage, user_id)
        self.slots, self.courses, self.entries = fresh.slots, fresh.courses, fresh.entries
        self.user_id = user_id
        self.pending = None
        logger.debug("Switched schedule scope to %s", user_id or "(signed out)")
        return first_run

    def replace_all(self, slots: list[Slot], courses: list[Course], entries: list[Entry]) -> None:
        self.slots = list(slots)
        self.courses = list(courses)
        self.entries = list(entries)
        self._changed(slots=True, courses=True, entries=True)

    # -- lookups ------------------------------------------------------------

    def get_slot(self, slot_id: str) -> Optional[Slot]:
        return next((s for s in self.slots if s.id == slot_id), None)

    def get_course(self, course_id: str) -> Optional[Course]:
        return next((c for c in self.courses if c.id == course_id), None)

    def _require_slot(self, slot_id: str) -> Slot:
        s = self.get_slot(slot_id)
        if s is None:
            raise ValidationError(f"Unknown slot: {slot_id}")
        return s

    def _require_course(self, course_id: str) -> Course:
        c = self.get_course(course_id)
        if c is None:
            raise ValidationError(f"Unknown course: {course_id}")
        return c

    # -- slots --------------------------------------------------------------

    def add_slot(self, start: str = "09:00", end: str = "10:00", label: Optional[str] = None) -> Slot:
        if not is_hhmm(start) or not is_hhmm(end):
            raise ValidationError("Times must use HH:MM (e.g. 09:00).")
        slot = Slot(id=new_id(), start=start, end=end, label=(label or "").strip() or slot_label_text(start, end))
        self.slots.append(slot)
        self._changed(slots=True)
        return slot

    def update_slot(
        self,
        slot_id: str,
        *,
        start: Optional[str] = None,
        end: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Slot:
        """
        Edit a slot in place. Changing a time without giving a label
        recomputes the label as "start–end".
        """
        slot = self._require_slot(slot_id)
        new_start = slot.start if start is None else start
        new_end = slot.end if end is None else end
        if not is_hhmm(new_start) or not is_hhmm(new_end):
            raise ValidationError("Times must use HH:MM (e.g. 09:00).")

        if label is not None and label.strip():
            new_label = label.strip()
        elif start is not None or end is not None or label is not None:
            new_label = slot_label_text(new_start, new_end)
        else:
            new_label = slot.label

        updated = Slot(id=slot.id, start=new_start, end=new_end, label=new_label)
        self.slots = [updated if s.id == slot_id else s for s in self.slots]
        self._changed(slots=True)
        return updated

    def delete_slot(self, slot_id: str) -> int:
        """
        Delete a slot and every entry placed in it. Returns removed entry count.
        """
        self._require_slot(slot_id)
        before = len(self.entries)
        self.slots = [s for s in self.slots if s.id != slot_id]
        self.entries = [e for e in self.entries if e.slot_id != slot_id]
        self._changed(slots=True, entries=True)
        return before - len(self.entries)

    def slot_in_use(self, slot_id: str) -> bool:
        return any(e.slot_id == slot_id for e in self.entries)

    def move_slot(self, slot_id: str, target_id: str, after: bool = True) -> None:
        """
        Drag-reorder: move slot_id next to target_id (after or before it).
        """
        ids = [s.id for s in self.slots]
        if slot_id not in ids or target_id not in ids:
            raise ValidationError("Unknown slot.")
        if slot_id == target_id:
            return
        source = ids.index(slot_id)
        target = ids.index(target_id)
        insert_at = target + 1 if after else target
        self.slots = move_item_insert(self.slots, source, insert_at)
        self._changed(slots=True)

    # -- courses ------------------------------------------------------------

    def add_course(
        self,
        title: str,
        default_room: str = "",
        default_professors: str = "",
        course_url: str = "",
    ) -> Course:
        title = (title or "").strip()
        if not title:
            raise ValidationError("A course needs a title.")
        course = Course(
            id=new_id(),
            title=title,
            default_room=default_room.strip(),
            default_professors=default_professors.strip(),
            course_url=course_url.strip(),
            created_at=now_ms(),
        )
        self.courses.append(course)
        self._changed(courses=True)
        return course

    def update_course(self, course_id: str, **fields: Any) -> Course:
        course = self._require_course(course_id)
        allowed = {"title", "default_room", "default_professors", "course_url"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Unknown course field(s): {', '.join(sorted(unknown))}")

        changes = {k: v for k, v in fields.items() if v is not None}
        if "title" in changes:
            changes["title"] = str(changes["title"]).strip()
            if not changes["title"]:
                raise ValidationError("A course needs a title.")

        updated = replace(course, **changes)
        self.courses = [updated if c.id == course_id else c for c in self.courses]
        self._changed(courses=True)
        return updated

    def delete_course(self, course_id: str) -> int:
        """
        Delete a course and every entry referencing it. Returns removed entry count.
        """
        self._require_course(course_id)
        before = len(self.entries)
        self.courses = [c for c in self.courses if c.id != course_id]
        self.entries = [e for e in self.entries if e.course_id != course_id]
        self._changed(courses=True, entries=True)
        return before - len(self.entries)

    def course_in_use(self, course_id: str) -> bool:
        return any(e.course_id == course_id for e in self.entries)

    # -- entries ------------------------------------------------------------

    def entries_by_key(self) -> dict[str, Entry]:
        return {e.key: e for e in self.entries}

    def entry_at(self, day: str, slot_id: str) -> Optional[Entry]:
        return self.entries_by_key().get(cell_key(day, slot_id))

    def place_entry(
        self,
        course_id: str,
        day: str,
        slot_id: str,
        class_type: str = "THEORY",
        room: str = "",
        professors: str = "",
        course_url: str = "",
    ) -> Placement:
        """
        Put a course into the (day, slot) cell.

        A free cell is filled immediately ("inserted"). An occupied cell is
        left alone: the replacement is stored as self.pending ("pending")
        until confirm_pending() or cancel_pending().
        """
        if not self.courses:
            raise ValidationError("Add a course first.")
        if not self.slots:
            raise ValidationError("Add at least one slot first.")
        self._require_course(course_id)
        self._require_slot(slot_id)
        if not is_day(day):
            raise ValidationError(f"Unknown day: {day}")
        if not is_class_type(class_type):
            raise ValidationError(f"Unknown class type: {class_type}")

        existing = self.entry_at(day, slot_id)
        entry = Entry(
            id=existing.id if existing else new_id(),
            course_id=course_id,
            day=day,
            slot_id=slot_id,
            class_type=class_type,
            room=room.strip(),
            professors=professors.strip(),
            course_url=course_url.strip(),
            created_at=existing.created_at if existing else now_ms(),
        )

        if existing is not None:
            self.pending = Placement(status="pending", entry=entry, existing=existing)
            return self.pending

        self.entries.append(entry)
        self._changed(entries=True)
        return Placement(status="inserted", entry=entry)

    def confirm_pending(self) -> Placement:
        pending = self.pending
        if pending is None or pending.existing is None:
            raise ValidationError("Nothing to confirm.")
        old_id = pending.existing.id
        self.entries = [pending.entry if e.id == old_id else e for e in self.entries]
        self._changed(entries=True)
        return Placement(status="replaced", entry=pending.entry, existing=pending.existing)

    def cancel_pending(self) -> None:
        self.pending = None

    def pending_message(self) -> str:
        """
        Text of the confirmation question for the pending replacement.
        """
        p = self.pending
        if p is None or p.existing is None:
            return ""
        old = self.get_course(p.existing.course_id)
        new = self.get_course(p.entry.course_id)
        return (
            f"{day_label(p.entry.day)} {slot_label(p.entry.slot_id, self.slots)} is already taken by "
            f'"{old.title if old else "—"}". Replace it with "{new.title if new else "—"}"?'
        )

    def remove_entry(self, entry_id: str) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id != entry_id]
        if len(self.entries) == before:
            return False
        self._changed(entries=True)
        return True

    def clear_entries(self) -> None:
        self.entries = []
        self._changed(entries=True)

    # -- derived views ------------------------------------------------------

    def course_map(self) -> dict[str, Course]:
        return build_course_map(self.courses)

    def groups(self) -> list[CourseGroup]:
        return group_by_course(self.entries, self.courses, self.slots)

    def effective_room(self, entry: Entry) -> str:
        return effective_room(entry, self.get_course(entry.course_id))

    def effective_professors(self, entry: Entry) -> str:
        return effective_professors(entry, self.get_course(entry.course_id))

    def effective_url(self, entry: Entry) -> str:
        return effective_url(entry, self.get_course(entry.course_id))

    def payload(self, theme: str, skin: str) -> dict[str, Any]:
        """
        Full document exchanged with the cloud backend.
        """
        return {
            "slots": [s.to_dict() for s in self.slots],
            "courses": [c.to_dict() for c in self.courses],
            "entries": [e.to_dict() for e in self.entries],
            "theme": theme,
            "exportSkin": skin,
        }

    def courses_by_usage(self) -> dict[str, int]:
        counts: dict[str, int] = defaultdict(int)
        for e in self.entries:
            counts[e.course_id] += 1
        return dict(counts)
