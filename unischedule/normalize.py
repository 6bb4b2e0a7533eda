"""
Normalization (untyped JSON -> typed model objects).

Everything that enters the application from outside goes through here:
- the local storage file (may be corrupted or written by an older version)
- imported backup documents (may be hand-edited or hostile)
- the cloud payload

Mechanism and policy are split:
- validate_*() inspect raw records and return a Validation with the accepted
  items AND the rejected raw records
- normalize_*() apply the default policy (drop rejected records silently)

None of these functions ever raise on bad input.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Optional, TypeVar

from unischedule.model import CLASS_TYPES, DAY_KEYS, Course, Entry, Slot, now_ms, slot_label_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_hhmm(value: Any) -> bool:
    return isinstance(value, str) and bool(_HHMM_RE.match(value))


def is_day(value: Any) -> bool:
    return isinstance(value, str) and value in DAY_KEYS


def is_class_type(value: Any) -> bool:
    return isinstance(value, str) and value in CLASS_TYPES


def _str_field(record: dict[str, Any], name: str) -> str:
    value = record.get(name)
    return value if isinstance(value, str) else ""


def as_ms(value: Any) -> Optional[int]:
    """
    Epoch milliseconds from a JSON number, or None.

    json.loads accepts NaN and Infinity, which have no integer value.
    """
    # bool is an int subclass, but never a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _ms_field(record: dict[str, Any], name: str) -> int:
    ms = as_ms(record.get(name))
    return now_ms() if ms is None else ms


@dataclass
class Validation(Generic[T]):
    items: list[T] = field(default_factory=list)
    rejected: list[Any] = field(default_factory=list)


def _records(raw: Any, result: Validation) -> Iterable[Any]:
    if isinstance(raw, list):
        return raw
    if raw is not None:
        result.rejected.append(raw)
    return []


def validate_slots(raw: Any) -> Validation[Slot]:
    result: Validation[Slot] = Validation()
    for x in _records(raw, result):
        if not isinstance(x, dict):
            result.rejected.append(x)
            continue
        sid = _str_field(x, "id")
        start = x.get("start")
        end = x.get("end")
        if not sid or not is_hhmm(start) or not is_hhmm(end):
            result.rejected.append(x)
            continue
        label = _str_field(x, "label") or slot_label_text(start, end)
        result.items.append(Slot(id=sid, start=start, end=end, label=label))
    return result


def validate_courses(raw: Any) -> Validation[Course]:
    result: Validation[Course] = Validation()
    for x in _records(raw, result):
        if not isinstance(x, dict):
            result.rejected.append(x)
            continue
        cid = _str_field(x, "id")
        title = _str_field(x, "title").strip()
        if not cid or not title:
            result.rejected.append(x)
            continue
        result.items.append(
            Course(
                id=cid,
                title=title,
                default_room=_str_field(x, "defaultRoom"),
                default_professors=_str_field(x, "defaultProfessors"),
                course_url=_str_field(x, "courseUrl"),
                created_at=_ms_field(x, "createdAt"),
            )
        )
    return result


def validate_entries(raw: Any) -> Validation[Entry]:
    result: Validation[Entry] = Validation()
    for x in _records(raw, result):
        if not isinstance(x, dict):
            result.rejected.append(x)
            continue
        eid = _str_field(x, "id")
        course_id = _str_field(x, "courseId")
        slot_id = _str_field(x, "slotId")
        day = x.get("day")
        class_type = x.get("classType")
        if not eid or not course_id or not slot_id or not is_day(day) or not is_class_type(class_type):
            result.rejected.append(x)
            continue
        result.items.append(
            Entry(
                id=eid,
                course_id=course_id,
                day=day,
                slot_id=slot_id,
                class_type=class_type,
                room=_str_field(x, "room"),
                professors=_str_field(x, "professors"),
                course_url=_str_field(x, "courseUrl"),
                created_at=_ms_field(x, "createdAt"),
            )
        )
    return result


def _drop_rejected(kind: str, result: Validation[T]) -> list[T]:
    if result.rejected:
        logger.warning("Dropped %d invalid %s record(s)", len(result.rejected), kind)
    return result.items


def normalize_slots(raw: Any) -> list[Slot]:
    return _drop_rejected("slot", validate_slots(raw))


def normalize_courses(raw: Any) -> list[Course]:
    return _drop_rejected("course", validate_courses(raw))


def normalize_entries(raw: Any) -> list[Entry]:
    return _drop_rejected("entry", validate_entries(raw))


def prune_orphans(entries: list[Entry], slots: list[Slot], courses: list[Course]) -> list[Entry]:
    """
    Keep only entries whose slot AND course both exist.
    """
    slot_ids = {s.id for s in slots}
    course_ids = {c.id for c in courses}
    return [e for e in entries if e.slot_id in slot_ids and e.course_id in course_ids]
