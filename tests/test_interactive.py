"""
Unit tests for the interactive menu.

Console output goes to a string buffer, answers are fed through a patched
_prompt.
"""

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from rich.console import Console

from unischedule import interactive
from unischedule.session import AppState
from unischedule.storage import LocalStorage


class TestInteractive(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.state = AppState.start(LocalStorage(Path(self._tmp.name) / "local_storage.json"))
        self.out = io.StringIO()
        patcher = mock.patch.object(
            interactive, "console", Console(file=self.out, width=200, force_terminal=False, color_system=None)
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _answers(self, *answers: str):
        return mock.patch.object(interactive, "_prompt", side_effect=list(answers))

    def test_bracketed_text_is_printed_literally(self) -> None:
        store = self.state.store
        course = store.add_course(
            "Intro [/] Logic",
            default_room="[b]Room",
            default_professors="[red]Prof",
            course_url="https://example.com/[x]",
        )
        slot = store.add_slot("18:00", "20:00", "Late [/]")
        store.place_entry(course.id, "Mon", slot.id, "LAB")

        interactive._flow_overview(self.state)
        interactive._flow_timetable(self.state)

        text = self.out.getvalue()
        self.assertIn("Intro [/] Logic", text)
        self.assertIn("Late [/]", text)
        self.assertIn("[b]Room | [red]Prof", text)
        self.assertIn("https://example.com/[x]", text)

    def test_clear_all_entries_asks_first(self) -> None:
        store = self.state.store
        course = store.add_course("Φυσική")
        store.place_entry(course.id, "Mon", "09-11")
        store.place_entry(course.id, "Tue", "11-13", "LAB")

        with self._answers("11", "n", "0"):
            interactive.run_interactive(self.state)
        self.assertEqual(len(store.entries), 2)
        self.assertIn("Cancelled.", self.out.getvalue())

        with self._answers("11", "y", "0"):
            interactive.run_interactive(self.state)
        self.assertEqual(store.entries, [])
        self.assertEqual([c.title for c in store.courses], ["Φυσική"])
        self.assertIn("All entries deleted.", self.out.getvalue())

    def test_clear_with_no_entries(self) -> None:
        with self._answers("11", "0"):
            interactive.run_interactive(self.state)
        self.assertIn("No entries.", self.out.getvalue())


if __name__ == "__main__":
    unittest.main()
