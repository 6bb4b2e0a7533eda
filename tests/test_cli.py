"""
Tests for CLI entry points.

These tests focus on:
- argument validation (a command is required, unknown choices exit non-zero)
- a full local flow against a temporary storage file
  (to avoid touching real user data during tests)
- confirmation flags: --replace for occupied cells, --yes for cascading deletes
"""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from unischedule.cli import main
from unischedule.storage import COURSES_KEY, ENTRIES_KEY


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.storage = self.dir / "local_storage.json"
        env = mock.patch.dict(os.environ, {"SUPABASE_URL": "", "SUPABASE_ANON_KEY": ""})
        env.start()
        self.addCleanup(env.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *args: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                main(["--storage", str(self.storage), *args])
        return ctx.exception.code, out.getvalue()

    def stored(self, key: str):
        data = json.loads(self.storage.read_text(encoding="utf-8"))
        return json.loads(data[key])

    def test_command_is_required(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main([])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_invalid_choice_exits_nonzero(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(["--storage", str(self.storage), "theme", "purple"])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_place_and_show(self) -> None:
        code, out = self.run_cli("courses", "add", "Άλγεβρα", "--room", "A1")
        self.assertEqual(code, 0)
        self.assertIn("Added course", out)

        code, out = self.run_cli("place", "άλγεβρα", "Mon", "09-11", "--type", "LAB")
        self.assertEqual(code, 0)
        self.assertIn("Inserted", out)

        code, out = self.run_cli("show")
        self.assertEqual(code, 0)
        self.assertIn("Άλγεβρα [Ε] A1", out)

        entries = self.stored(ENTRIES_KEY)
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0]["classType"], "LAB")

    def test_occupied_cell_requires_replace(self) -> None:
        self.run_cli("courses", "add", "Άλγεβρα")
        self.run_cli("courses", "add", "Βάσεις")
        self.run_cli("place", "Άλγεβρα", "Tue", "11:00–13:00")

        code, out = self.run_cli("place", "Βάσεις", "Tue", "11-13")
        self.assertEqual(code, 1)
        self.assertIn("already taken", out)
        courses = {c["id"]: c["title"] for c in self.stored(COURSES_KEY)}
        self.assertEqual(courses[self.stored(ENTRIES_KEY)[0]["courseId"]], "Άλγεβρα")

        code, out = self.run_cli("place", "Βάσεις", "Tue", "11-13", "--replace")
        self.assertEqual(code, 0)
        self.assertIn("Replaced", out)
        self.assertEqual(courses[self.stored(ENTRIES_KEY)[0]["courseId"]], "Βάσεις")

    def test_slot_delete_in_use_requires_yes(self) -> None:
        self.run_cli("courses", "add", "Άλγεβρα")
        self.run_cli("place", "Άλγεβρα", "Wed", "14-16")

        code, _ = self.run_cli("slots", "rm", "14-16")
        self.assertEqual(code, 1)
        code, out = self.run_cli("slots", "rm", "14-16", "--yes")
        self.assertEqual(code, 0)
        self.assertIn("entries removed: 1", out)
        self.assertEqual(self.stored(ENTRIES_KEY), [])

    def test_bad_slot_time_is_an_error(self) -> None:
        code, out = self.run_cli("slots", "add", "9", "10:00")
        self.assertEqual(code, 1)
        self.assertIn("HH:MM", out)

    def test_export_and_restore(self) -> None:
        self.run_cli("courses", "add", "Άλγεβρα")
        self.run_cli("place", "Άλγεβρα", "Fri", "16-18")
        html_path = self.dir / "programma.html"

        code, out = self.run_cli("export", str(html_path), "--skin", "lotr")
        self.assertEqual(code, 0)
        self.assertTrue(html_path.exists())

        self.run_cli("clear", "--yes")
        self.assertEqual(self.stored(ENTRIES_KEY), [])

        code, out = self.run_cli("restore", str(html_path), "--yes")
        self.assertEqual(code, 0)
        self.assertIn("Restore complete", out)
        self.assertEqual(len(self.stored(ENTRIES_KEY)), 1)

    def test_restore_rejects_foreign_html(self) -> None:
        page = self.dir / "other.html"
        page.write_text("<html><body>nothing here</body></html>", encoding="utf-8")
        code, out = self.run_cli("restore", str(page), "--yes")
        self.assertEqual(code, 1)
        self.assertIn("No backup found", out)

    def test_cloud_without_configuration(self) -> None:
        code, out = self.run_cli("cloud", "status")
        self.assertEqual(code, 0)
        self.assertIn("not configured", out)

        code, out = self.run_cli("cloud", "save")
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
