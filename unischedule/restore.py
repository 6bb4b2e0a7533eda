"""
Restore (exported HTML -> schedule state).

Reads the <script id="uniScheduleBackup"> element written by export_html.py,
validates it and normalizes its contents with the same rules used for local
storage. Entries whose slot or course is missing from the backup are dropped.

read_backup() never touches the current state: the caller shows
confirmation_message() and only then applies the Backup.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from bs4 import BeautifulSoup

from unischedule.errors import BackupError
from unischedule.export_html import APP_TAG, BACKUP_SCRIPT_ID
from unischedule.model import SKINS, THEMES, Course, Entry, Slot
from unischedule.normalize import as_ms, normalize_courses, normalize_entries, normalize_slots, prune_orphans

logger = logging.getLogger(__name__)


@dataclass
class Backup:
    slots: list[Slot]
    courses: list[Course]
    entries: list[Entry]
    theme: Optional[str] = None
    skin: Optional[str] = None
    exported_at: Optional[int] = None
    pruned: int = 0
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def exported_at_text(self) -> str:
        if self.exported_at is None:
            return "unknown"
        try:
            return datetime.fromtimestamp(self.exported_at / 1000).strftime("%d/%m/%Y, %H:%M:%S")
        except (OverflowError, OSError, ValueError):
            return "unknown"


def _extract_backup_text(html_text: str) -> str:
    soup = BeautifulSoup(html_text, "html.parser")
    script = soup.find("script", id=BACKUP_SCRIPT_ID)
    if script is None:
        raise BackupError(
            "No backup found inside the HTML.\n"
            "Make sure the file is an export of this application (programma.html)."
        )
    return (script.string or "").strip()


def read_backup(html_text: str) -> Backup:
    """
    Parse an exported HTML document into a Backup.

    Raises BackupError with a user-readable message when the document is not
    a usable export.
    """
    text = _extract_backup_text(html_text)
    if not text:
        raise BackupError("The backup inside the HTML is empty or damaged.")

    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupError(f"The backup JSON inside the HTML is not valid ({e.msg}).") from e

    if not isinstance(doc, dict) or doc.get("app") != APP_TAG or not isinstance(doc.get("data"), dict):
        raise BackupError("The HTML does not look like an export of this application.")

    data = doc["data"]
    slots = normalize_slots(data.get("slots"))
    if not slots:
        raise BackupError("The backup has no sessions/slots, it cannot be restored.")
    courses = normalize_courses(data.get("courses"))
    entries = normalize_entries(data.get("entries"))
    kept = prune_orphans(entries, slots, courses)
    if len(kept) != len(entries):
        logger.info("Restore dropped %d orphan entries", len(entries) - len(kept))

    exported_at = as_ms(doc.get("exportedAt"))

    return Backup(
        slots=slots,
        courses=courses,
        entries=kept,
        theme=doc.get("theme") if doc.get("theme") in THEMES else None,
        skin=doc.get("skin") if doc.get("skin") in SKINS else None,
        exported_at=exported_at,
        pruned=len(entries) - len(kept),
        raw=doc,
    )


def read_backup_file(path: str | Path) -> Backup:
    p = Path(path)
    try:
        html_text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BackupError(f"Cannot read {p}: {e}") from e
    return read_backup(html_text)


def confirmation_message(backup: Backup) -> str:
    return (
        "This will RESTORE from an HTML backup.\n\n"
        f"Export date: {backup.exported_at_text()}\n"
        f"Slots: {len(backup.slots)} | Courses: {len(backup.courses)} | Entries: {len(backup.entries)}\n\n"
        "Replace the current data?"
    )
