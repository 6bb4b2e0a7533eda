"""
Unit tests for the schedule store.

Covers:
- cascade deletes (slot / course removes its entries)
- one entry per (day, slot) cell; replacing needs confirmation
- slot reordering (insert semantics)
- grouping per course (locale order, weekday then slot order)
"""

import tempfile
import unittest
from pathlib import Path

from unischedule.errors import ValidationError
from unischedule.model import Course, Slot
from unischedule.schedule import ScheduleStore, group_by_course, move_item_insert
from unischedule.storage import LocalStorage, load_entries


def _store(storage=None) -> ScheduleStore:
    slots = [
        Slot("s1", "09:00", "11:00", "09:00–11:00"),
        Slot("s2", "11:00", "13:00", "11:00–13:00"),
        Slot("s3", "14:00", "16:00", "14:00–16:00"),
    ]
    courses = [
        Course("c1", "Βάσεις Δεδομένων", default_room="B1"),
        Course("c2", "Άλγεβρα", default_professors="Παπαδόπουλος"),
    ]
    return ScheduleStore(slots, courses, [], storage=storage)


class TestMoveItemInsert(unittest.TestCase):
    def test_move_first_before_last(self) -> None:
        self.assertEqual(move_item_insert(["A", "B", "C", "D"], 0, 3), ["B", "C", "A", "D"])

    def test_move_backwards(self) -> None:
        self.assertEqual(move_item_insert(["A", "B", "C", "D"], 3, 1), ["A", "D", "B", "C"])

    def test_move_to_end_is_clamped(self) -> None:
        self.assertEqual(move_item_insert(["A", "B", "C"], 0, 99), ["B", "C", "A"])


class TestScheduleStore(unittest.TestCase):
    def test_place_free_cell_inserts(self) -> None:
        store = _store()
        placement = store.place_entry("c1", "Mon", "s1")
        self.assertEqual(placement.status, "inserted")
        self.assertEqual(len(store.entries), 1)
        self.assertEqual(store.effective_room(placement.entry), "B1")

    def test_occupied_cell_needs_confirmation(self) -> None:
        store = _store()
        first = store.place_entry("c1", "Mon", "s1").entry

        placement = store.place_entry("c2", "Mon", "s1", class_type="LAB", room="Lab 3")
        self.assertEqual(placement.status, "pending")
        self.assertEqual(store.entries[0].course_id, "c1")
        self.assertIn("Άλγεβρα", store.pending_message())

        store.cancel_pending()
        self.assertIsNone(store.pending)
        self.assertEqual(store.entries[0].course_id, "c1")

        store.place_entry("c2", "Mon", "s1", class_type="LAB", room="Lab 3")
        result = store.confirm_pending()
        self.assertEqual(result.status, "replaced")
        self.assertEqual(len(store.entries), 1)
        self.assertEqual(store.entries[0].course_id, "c2")
        self.assertEqual(store.entries[0].id, first.id)
        self.assertEqual(store.effective_room(store.entries[0]), "Lab 3")

    def test_other_mutation_drops_pending(self) -> None:
        store = _store()
        store.place_entry("c1", "Mon", "s1")
        store.place_entry("c2", "Mon", "s1")
        store.add_course("Φυσική")
        with self.assertRaises(ValidationError):
            store.confirm_pending()

    def test_place_requires_courses_and_valid_cell(self) -> None:
        store = ScheduleStore([Slot("s1", "09:00", "11:00", "x")], [], [])
        with self.assertRaises(ValidationError):
            store.place_entry("c1", "Mon", "s1")
        store = _store()
        with self.assertRaises(ValidationError):
            store.place_entry("c1", "Sat", "s1")
        with self.assertRaises(ValidationError):
            store.place_entry("c1", "Mon", "nope")

    def test_delete_slot_cascades(self) -> None:
        store = _store()
        store.place_entry("c1", "Mon", "s1")
        store.place_entry("c2", "Tue", "s1")
        store.place_entry("c2", "Wed", "s2")

        self.assertTrue(store.slot_in_use("s1"))
        removed = store.delete_slot("s1")
        self.assertEqual(removed, 2)
        self.assertEqual([e.slot_id for e in store.entries], ["s2"])
        self.assertNotIn("s1", [s.id for s in store.slots])

    def test_delete_course_cascades(self) -> None:
        store = _store()
        store.place_entry("c1", "Mon", "s1")
        store.place_entry("c2", "Tue", "s1")
        removed = store.delete_course("c1")
        self.assertEqual(removed, 1)
        self.assertEqual([e.course_id for e in store.entries], ["c2"])

    def test_update_slot_recomputes_label(self) -> None:
        store = _store()
        updated = store.update_slot("s1", start="08:30")
        self.assertEqual(updated.label, "08:30–11:00")
        renamed = store.update_slot("s1", label="Πρωί")
        self.assertEqual(renamed.label, "Πρωί")
        with self.assertRaises(ValidationError):
            store.update_slot("s1", end="8")

    def test_move_slot(self) -> None:
        store = _store()
        store.move_slot("s1", "s2", after=True)
        self.assertEqual([s.id for s in store.slots], ["s2", "s1", "s3"])
        store.move_slot("s3", "s2", after=False)
        self.assertEqual([s.id for s in store.slots], ["s3", "s2", "s1"])

    def test_add_course_requires_title(self) -> None:
        store = _store()
        with self.assertRaises(ValidationError):
            store.add_course("   ")
        course = store.update_course("c1", default_room="B7")
        self.assertEqual(course.default_room, "B7")
        with self.assertRaises(ValidationError):
            store.update_course("c1", colour="red")

    def test_mutations_persist_and_notify(self) -> None:
        calls = []
        with tempfile.TemporaryDirectory() as d:
            storage = LocalStorage(Path(d) / "s.json")
            store = _store(storage)
            store.on_change = lambda: calls.append(1)
            store.place_entry("c1", "Fri", "s3")
            self.assertEqual(len(load_entries(LocalStorage(storage.path))), 1)
            store.clear_entries()
            self.assertEqual(load_entries(LocalStorage(storage.path)), [])
        self.assertEqual(len(calls), 2)


class TestGrouping(unittest.TestCase):
    def test_groups_sorted_by_title_and_sessions_by_day_then_slot(self) -> None:
        store = _store()
        store.place_entry("c1", "Wed", "s1")
        store.place_entry("c1", "Mon", "s3")
        store.place_entry("c1", "Mon", "s1")
        store.place_entry("c2", "Fri", "s2")

        groups = group_by_course(store.entries, store.courses, store.slots)
        self.assertEqual([g.course.title for g in groups], ["Άλγεβρα", "Βάσεις Δεδομένων"])
        sessions = [(s.day, s.slot_id) for s in groups[1].sessions]
        self.assertEqual(sessions, [("Mon", "s1"), ("Mon", "s3"), ("Wed", "s1")])

    def test_slot_order_follows_configured_position(self) -> None:
        store = _store()
        store.place_entry("c1", "Mon", "s1")
        store.place_entry("c1", "Mon", "s3")
        store.move_slot("s3", "s1", after=False)
        sessions = [s.slot_id for s in store.groups()[0].sessions]
        self.assertEqual(sessions, ["s3", "s1"])


if __name__ == "__main__":
    unittest.main()
