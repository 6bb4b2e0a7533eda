"""
Unit tests for restoring from an exported HTML page.

Restore contract:
- export -> restore gives back the same slots, courses and entries
- documents without a usable backup raise BackupError with a readable message
- entries pointing at a missing slot/course are dropped
"""

import json
import tempfile
import unittest
from pathlib import Path

from unischedule.errors import BackupError
from unischedule.export_html import render_export_html, write_export_html
from unischedule.model import Course, Entry, Slot
from unischedule.restore import confirmation_message, read_backup, read_backup_file


SLOTS = [Slot("s1", "09:00", "11:00", "09:00–11:00"), Slot("s2", "11:00", "13:00", "Μεσημέρι")]
COURSES = [Course("c1", "Άλγεβρα <&>", default_room="A1", created_at=10)]
ENTRIES = [
    Entry("e1", "c1", "Mon", "s1", "THEORY", created_at=11),
    Entry("e2", "c1", "Thu", "s2", "LAB", room="Lab", created_at=12),
]


def _page_with(doc) -> str:
    return f'<html><body><script id="uniScheduleBackup" type="application/json">{json.dumps(doc)}</script></body></html>'


class TestRestore(unittest.TestCase):
    def test_export_then_restore(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = write_export_html(Path(d) / "programma.html", SLOTS, COURSES, ENTRIES, "light", "lotr")
            backup = read_backup_file(out)

        self.assertEqual(backup.slots, SLOTS)
        self.assertEqual(backup.courses, COURSES)
        self.assertEqual(backup.entries, ENTRIES)
        self.assertEqual(backup.theme, "light")
        self.assertEqual(backup.skin, "lotr")
        self.assertEqual(backup.pruned, 0)

    def test_confirmation_message_has_counts(self) -> None:
        backup = read_backup(render_export_html(SLOTS, COURSES, ENTRIES, "dark", "default"))
        msg = confirmation_message(backup)
        self.assertIn("Slots: 2 | Courses: 1 | Entries: 2", msg)

    def test_missing_backup_element(self) -> None:
        with self.assertRaises(BackupError) as ctx:
            read_backup("<html><body><p>hello</p></body></html>")
        self.assertIn("No backup found", str(ctx.exception))

    def test_empty_and_invalid_json(self) -> None:
        with self.assertRaises(BackupError):
            read_backup('<script id="uniScheduleBackup" type="application/json">   </script>')
        with self.assertRaises(BackupError):
            read_backup('<script id="uniScheduleBackup" type="application/json">{nope</script>')

    def test_wrong_app_tag(self) -> None:
        with self.assertRaises(BackupError):
            read_backup(_page_with({"app": "other", "data": {"slots": []}}))

    def test_backup_without_slots(self) -> None:
        doc = {"app": "uni-schedule", "version": 1, "data": {"slots": [], "courses": [], "entries": []}}
        with self.assertRaises(BackupError) as ctx:
            read_backup(_page_with(doc))
        self.assertIn("no sessions/slots", str(ctx.exception))

    def test_orphan_entries_are_dropped(self) -> None:
        doc = {
            "app": "uni-schedule",
            "version": 1,
            "exportedAt": 1700000000000,
            "data": {
                "slots": [{"id": "s1", "start": "09:00", "end": "11:00", "label": "x"}],
                "courses": [{"id": "c1", "title": "A"}],
                "entries": [
                    {"id": "e1", "courseId": "c1", "day": "Mon", "slotId": "s1", "classType": "THEORY"},
                    {"id": "e2", "courseId": "c1", "day": "Mon", "slotId": "s9", "classType": "THEORY"},
                    {"id": "e3", "courseId": "c9", "day": "Tue", "slotId": "s1", "classType": "LAB"},
                ],
            },
        }
        backup = read_backup(_page_with(doc))
        self.assertEqual([e.id for e in backup.entries], ["e1"])
        self.assertEqual(backup.pruned, 2)
        self.assertIsNone(backup.theme)
        self.assertNotEqual(backup.exported_at_text(), "unknown")

    def test_unusable_export_date_reads_unknown(self) -> None:
        data = {"slots": [{"id": "s1", "start": "09:00", "end": "11:00"}], "courses": [], "entries": []}
        for exported_at in (float("nan"), float("inf"), 1e20):
            doc = {"app": "uni-schedule", "version": 1, "exportedAt": exported_at, "data": data}
            backup = read_backup(_page_with(doc))
            self.assertEqual(backup.exported_at_text(), "unknown")
            self.assertIn("Export date: unknown", confirmation_message(backup))

        doc = {"app": "uni-schedule", "version": 1, "exportedAt": float("nan"), "data": data}
        self.assertIsNone(read_backup(_page_with(doc)).exported_at)

    def test_unreadable_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(BackupError):
                read_backup_file(Path(d) / "missing.html")


if __name__ == "__main__":
    unittest.main()
