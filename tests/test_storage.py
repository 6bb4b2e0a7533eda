"""
Unit tests for local storage.

Storage contract:
- Missing/corrupted file -> empty store, default slots (first run)
- Signed-in data lives under user-suffixed keys, separate from signed-out data
- Theme / skin fall back to dark / default
"""

import json
import tempfile
import unittest
from pathlib import Path

from unischedule.model import Slot
from unischedule.storage import (
    SLOTS_KEY,
    THEME_KEY,
    LocalStorage,
    has_scoped_cache,
    load_skin,
    load_slots,
    load_theme,
    save_slots,
    scoped_key,
)


class TestStorage(unittest.TestCase):
    def test_missing_file_gives_default_slots(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            storage = LocalStorage(Path(d) / "missing.json")
            slots, first_run = load_slots(storage)
            self.assertTrue(first_run)
            self.assertEqual([s.id for s in slots], ["09-11", "11-13", "14-16", "16-18"])

    def test_corrupted_file_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "local_storage.json"
            p.write_text("{not json", encoding="utf-8")
            storage = LocalStorage(p)
            self.assertEqual(storage.keys(), [])

            storage.set_item(SLOTS_KEY, "[broken")
            self.assertIsNone(storage.get_json(SLOTS_KEY))
            _, first_run = load_slots(storage)
            self.assertTrue(first_run)

    def test_scoped_keys_do_not_collide(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "local_storage.json"
            storage = LocalStorage(p)
            save_slots(storage, [Slot("a", "08:00", "09:00", "early")])
            save_slots(storage, [Slot("b", "18:00", "20:00", "late")], user_id="u1")

            reopened = LocalStorage(p)
            self.assertEqual([s.id for s in load_slots(reopened)[0]], ["a"])
            self.assertEqual([s.id for s in load_slots(reopened, "u1")[0]], ["b"])
            self.assertTrue(has_scoped_cache(reopened, "u1"))
            self.assertFalse(has_scoped_cache(reopened, "u2"))

            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertIn(scoped_key(SLOTS_KEY, "u1"), data)
            self.assertEqual(scoped_key(SLOTS_KEY, "u1"), "uni-schedule:slots:v1:u1")

    def test_theme_and_skin_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            storage = LocalStorage(Path(d) / "s.json")
            self.assertEqual(load_theme(storage), "dark")
            self.assertEqual(load_skin(storage), "default")
            storage.set_item(THEME_KEY, "purple")
            self.assertEqual(load_theme(storage), "dark")


if __name__ == "__main__":
    unittest.main()
