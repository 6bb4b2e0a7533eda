"""
Unit tests for normalization of untyped JSON into model objects.

Contract:
- invalid records are dropped, valid ones kept (never raises)
- non-list input yields an empty list
- missing optional fields get defaults (label, overrides, createdAt)
"""

import json
import unittest

from unischedule.normalize import (
    normalize_courses,
    normalize_entries,
    normalize_slots,
    prune_orphans,
    validate_entries,
    validate_slots,
)


class TestNormalize(unittest.TestCase):
    def test_entry_missing_course_id_is_dropped(self) -> None:
        raw = [
            {"id": "e1", "courseId": "c1", "day": "Mon", "slotId": "s1", "classType": "THEORY"},
            {"id": "e2", "day": "Tue", "slotId": "s1", "classType": "LAB"},
        ]
        entries = normalize_entries(raw)
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].id, "e1")
        self.assertEqual(entries[0].room, "")

    def test_validation_keeps_rejected_records(self) -> None:
        bad = {"id": "e2", "courseId": "c1", "day": "Sat", "slotId": "s1", "classType": "THEORY"}
        result = validate_entries([bad, "junk"])
        self.assertEqual(result.items, [])
        self.assertEqual(result.rejected, [bad, "junk"])

    def test_non_list_input(self) -> None:
        self.assertEqual(normalize_slots({"id": "s1"}), [])
        self.assertEqual(normalize_courses(None), [])
        self.assertEqual(validate_slots("nope").rejected, ["nope"])

    def test_slot_time_format_and_label_default(self) -> None:
        slots = normalize_slots(
            [
                {"id": "s1", "start": "09:00", "end": "11:00"},
                {"id": "s2", "start": "9:00", "end": "11:00"},
                {"id": "s3", "start": "24:00", "end": "25:00"},
            ]
        )
        self.assertEqual([s.id for s in slots], ["s1"])
        self.assertEqual(slots[0].label, "09:00–11:00")

    def test_course_needs_title_and_gets_created_at(self) -> None:
        courses = normalize_courses(
            [
                {"id": "c1", "title": "  Άλγεβρα  ", "defaultRoom": "A1", "createdAt": True},
                {"id": "c2", "title": "   "},
            ]
        )
        self.assertEqual(len(courses), 1)
        self.assertEqual(courses[0].title, "Άλγεβρα")
        self.assertEqual(courses[0].default_room, "A1")
        self.assertGreater(courses[0].created_at, 1)

    def test_non_finite_created_at_falls_back_to_now(self) -> None:
        raw = json.loads(
            '[{"id": "c1", "title": "A", "createdAt": NaN},'
            ' {"id": "c2", "title": "B", "createdAt": Infinity}]'
        )
        courses = normalize_courses(raw)
        self.assertEqual([c.id for c in courses], ["c1", "c2"])
        for c in courses:
            self.assertGreater(c.created_at, 1)

        entries = normalize_entries(
            json.loads('[{"id": "e1", "courseId": "c1", "day": "Mon", "slotId": "s1", "classType": "LAB", "createdAt": -Infinity}]')
        )
        self.assertEqual(len(entries), 1)
        self.assertGreater(entries[0].created_at, 1)

    def test_prune_orphans(self) -> None:
        slots = normalize_slots([{"id": "s1", "start": "09:00", "end": "11:00"}])
        courses = normalize_courses([{"id": "c1", "title": "A"}])
        entries = normalize_entries(
            [
                {"id": "e1", "courseId": "c1", "day": "Mon", "slotId": "s1", "classType": "THEORY"},
                {"id": "e2", "courseId": "gone", "day": "Mon", "slotId": "s1", "classType": "THEORY"},
                {"id": "e3", "courseId": "c1", "day": "Tue", "slotId": "gone", "classType": "LAB"},
            ]
        )
        kept = prune_orphans(entries, slots, courses)
        self.assertEqual([e.id for e in kept], ["e1"])


if __name__ == "__main__":
    unittest.main()
