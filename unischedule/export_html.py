"""
HTML export.

Renders the schedule as one self-contained HTML page:
- the weekly table (one row per slot, one column per day)
- the course list, grouped per course
- an embedded JSON backup (<script id="uniScheduleBackup">) that restore.py reads back
- a tiny dark/light toggle that remembers its choice in the browser

The page opens offline in any browser; no external assets are referenced.
"""

from __future__ import annotations

import html
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from unischedule.export_css import css_for_skin
from unischedule.model import (
    DASH,
    DAYS,
    Course,
    Entry,
    Slot,
    cell_key,
    day_label,
    effective_room,
    now_ms,
    type_short,
)
from unischedule.schedule import build_course_map, group_by_course, slot_label
from unischedule.storage import THEME_KEY

APP_TAG = "uni-schedule"
BACKUP_VERSION = 1
BACKUP_SCRIPT_ID = "uniScheduleBackup"
DEFAULT_EXPORT_NAME = "programma.html"

PAGE_TITLE = "Εβδομαδιαίο Πρόγραμμα"

_THEME_TOGGLE_JS = """
  (function(){
    const KEY = "__THEME_KEY__";
    const root = document.documentElement;

    function apply(t){
      root.setAttribute("data-theme", t);
      root.style.colorScheme = t;
      const btn = document.getElementById("themeToggle");
      if(btn) btn.textContent = (t === "dark") ? "Light mode" : "Dark mode";
    }

    const saved = localStorage.getItem(KEY);
    const initial =
      (saved === "light" || saved === "dark")
        ? saved
        : (root.getAttribute("data-theme") || "dark");

    apply(initial);

    const btn = document.getElementById("themeToggle");
    if(btn){
      btn.addEventListener("click", function(){
        const cur = root.getAttribute("data-theme") === "dark" ? "dark" : "light";
        const next = (cur === "dark") ? "light" : "dark";
        localStorage.setItem(KEY, next);
        apply(next);
      });
    }
  })();
"""


def _esc(text: str) -> str:
    """
    Escape & < > " ' for both element text and attribute values.
    """
    return html.escape(text, quote=True)


def backup_document(
    slots: list[Slot],
    courses: list[Course],
    entries: list[Entry],
    theme: str,
    skin: str,
    exported_at: Optional[int] = None,
) -> dict[str, Any]:
    return {
        "app": APP_TAG,
        "version": BACKUP_VERSION,
        "exportedAt": exported_at if exported_at is not None else now_ms(),
        "theme": theme,
        "skin": skin,
        "data": {
            "slots": [s.to_dict() for s in slots],
            "courses": [c.to_dict() for c in courses],
            "entries": [e.to_dict() for e in entries],
        },
    }


def _backup_json(doc: dict[str, Any]) -> str:
    # "<" never appears raw, so "</script>" inside a title cannot end the element
    return json.dumps(doc, ensure_ascii=False, separators=(",", ":")).replace("<", "\\u003c")


def _table_rows(slots: list[Slot], course_map: dict[str, Course], entries: list[Entry]) -> str:
    by_key = {e.key: e for e in entries}
    rows: list[str] = []
    for slot in slots:
        cells: list[str] = []
        for day, _ in DAYS:
            e = by_key.get(cell_key(day, slot.id))
            if e is None:
                cells.append('<td class="cell empty"></td>')
                continue
            c = course_map.get(e.course_id)
            title = c.title if c else DASH
            cells.append(
                f"""
          <td class="cell">
            <div class="cellTitle">{_esc(title)}</div>
            <div class="cellMeta">
              <span class="badge">{type_short(e.class_type)}</span>
              <span class="room">{_esc(effective_room(e, c))}</span>
            </div>
          </td>"""
            )
        row_cells = "".join(cells)
        rows.append(
            f"""
        <tr>
          <th class="rowHead">{_esc(slot.label)}</th>
          {row_cells}
        </tr>"""
        )
    return "".join(rows)


def _list_items(slots: list[Slot], courses: list[Course], entries: list[Entry]) -> str:
    items: list[str] = []
    for group in group_by_course(entries, courses, slots):
        course = group.course
        profs = course.default_professors.strip()
        url = course.course_url.strip()
        prof_part = _esc(profs) if profs else DASH
        if url:
            url_part = f'<a href="{_esc(url)}" target="_blank" rel="noreferrer">{_esc(url)}</a>'
        else:
            url_part = f'<span class="muted">{DASH}</span>'

        sessions = "".join(
            f"""
            <div class="sessionRow">
              <span>{_esc(day_label(s.day))} {DASH} {_esc(slot_label(s.slot_id, slots))}</span>
              <span class="badge">{type_short(s.class_type)}</span>
              <span class="room">{_esc(effective_room(s, course))}</span>
            </div>"""
            for s in group.sessions
        )

        if not sessions:
            sessions = f'<div class="muted">{DASH}</div>'

        items.append(
            f"""
        <li class="li">
          <div class="liTitle">{_esc(course.title)}</div>
          <div class="liMeta"><b>Καθηγητές:</b> {prof_part}</div>
          <div class="liMeta"><b>Σελίδα μαθήματος:</b> {url_part}</div>
          <div class="liMeta"><b>Ώρες/slots:</b></div>
          {sessions}
        </li>"""
        )
    return "".join(items)


def render_export_html(
    slots: list[Slot],
    courses: list[Course],
    entries: list[Entry],
    theme: str,
    skin: str,
    *,
    now: Optional[datetime] = None,
    exported_at: Optional[int] = None,
) -> str:
    """
    Render the full export page. Pure: the same inputs (and now / exported_at)
    always give the same text.
    """
    generated = (now or datetime.now()).strftime("%d/%m/%Y, %H:%M:%S")
    theme = theme if theme in ("dark", "light") else "dark"

    backup = _backup_json(backup_document(slots, courses, entries, theme, skin, exported_at))
    list_items = _list_items(slots, courses, entries)
    if not list_items:
        list_items = '<li class="li"><span class="muted">Δεν υπάρχουν καταχωρήσεις.</span></li>'
    day_heads = "".join(f'<th class="colHead">{_esc(label)}</th>' for _, label in DAYS)
    rows = _table_rows(slots, build_course_map(courses), entries)
    toggle_js = _THEME_TOGGLE_JS.replace("__THEME_KEY__", THEME_KEY)

    return f"""<!doctype html>
<html lang="el" data-theme="{theme}">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{PAGE_TITLE}</title>
  <style>
{css_for_skin(skin)}
  </style>
</head>
<body>
  <div class="wrap">
    <div class="topBar">
      <div>
        <h1>{PAGE_TITLE}</h1>
        <div class="sub">Παραγωγή: {_esc(generated)}</div>
      </div>
      <button id="themeToggle" class="tbtn" type="button">Toggle</button>
    </div>

    <div class="tableScroll">
      <table>
        <thead>
          <tr>
            <th></th>
            {day_heads}
          </tr>
        </thead>
        <tbody>
          {rows}
        </tbody>
      </table>
    </div>

    <hr />

    <h1>Λίστα μαθημάτων</h1>
    <div class="sub">Ομαδοποιημένα ανά μάθημα</div>

    <ul>
      {list_items}
    </ul>
  </div>

  <!-- Embedded backup (for restore inside the app) -->
  <script id="{BACKUP_SCRIPT_ID}" type="application/json">{backup}</script>

  <script>{toggle_js}  </script>
</body>
</html>"""


def write_export_html(
    out_path: str | Path,
    slots: list[Slot],
    courses: list[Course],
    entries: list[Entry],
    theme: str,
    skin: str,
) -> Path:
    """
    Render and write the export page. Returns the written path.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_export_html(slots, courses, entries, theme, skin), encoding="utf-8")
    return out
