"""
CLI (Command Line Interface).

This module provides quick terminal commands for power users and for testing, e.g.:

    unischedule show
    unischedule slots add 18:00 20:00
    unischedule courses add "Άλγεβρα" --room A1
    unischedule place Άλγεβρα Mon 09-11 --type LAB
    unischedule export programma.html
    unischedule restore programma.html
    unischedule cloud signin me@example.com --pin 1234
    unischedule interactive

Note:
- The interactive UI lives in unischedule/interactive.py
- Output is plain text; errors exit with code 1
- Overwriting an occupied cell needs --replace, deleting used slots/courses needs --yes
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from rich.logging import RichHandler

from unischedule.cloud import CloudClient
from unischedule.config import get_app_config, get_cloud_config
from unischedule.errors import UniScheduleError, ValidationError
from unischedule.export_html import DEFAULT_EXPORT_NAME, write_export_html
from unischedule.model import CLASS_TYPES, DAY_KEYS, DAYS, SKINS, Course, Slot, cell_key, type_short
from unischedule.restore import confirmation_message, read_backup_file
from unischedule.schedule import ScheduleStore, slot_label
from unischedule.session import AppState
from unischedule.storage import LocalStorage


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_app_config()["log_level"].upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _build_state(args: argparse.Namespace) -> AppState:
    storage = LocalStorage(args.storage or get_app_config()["storage"] or None)
    client = CloudClient(get_cloud_config())
    return AppState.start(storage, client)


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def _resolve_course(store: ScheduleStore, ref: str) -> Course:
    """
    Find a course by id, else by title (case-insensitive).
    """
    ref = (ref or "").strip()
    by_id = store.get_course(ref)
    if by_id is not None:
        return by_id
    matches = [c for c in store.courses if c.title.casefold() == ref.casefold()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise ValidationError(f"Several courses are titled '{ref}', use the id.")
    raise ValidationError(f"Unknown course: {ref}")


def _resolve_slot(store: ScheduleStore, ref: str) -> Slot:
    """
    Find a slot by id, else by label.
    """
    ref = (ref or "").strip()
    by_id = store.get_slot(ref)
    if by_id is not None:
        return by_id
    for s in store.slots:
        if s.label == ref:
            return s
    raise ValidationError(f"Unknown slot: {ref}")


def _resolve_day(ref: str) -> str:
    ref = (ref or "").strip()
    for key, label in DAYS:
        if ref.lower() in (key.lower(), label.lower()):
            return key
    raise ValidationError(f"Unknown day: {ref} (use {', '.join(DAY_KEYS)})")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_show(args: argparse.Namespace, state: AppState) -> int:
    """
    Print the weekly grid and the per-course list.
    """
    store = state.store
    by_key = store.entries_by_key()
    course_map = store.course_map()

    col_width = 24
    header = "".ljust(14) + " | ".join(day.ljust(col_width) for day, _ in DAYS)
    print(header)
    print("-" * len(header))
    for slot in store.slots:
        parts: list[str] = []
        for day, _ in DAYS:
            e = by_key.get(cell_key(day, slot.id))
            if e is None:
                parts.append("·".ljust(col_width))
                continue
            c = course_map.get(e.course_id)
            txt = f"{c.title if c else '—'} [{type_short(e.class_type)}] {store.effective_room(e)}"
            parts.append(txt[:col_width].ljust(col_width))
        print(slot.label[:13].ljust(14) + " | ".join(parts))

    groups = store.groups()
    print()
    if not groups:
        print("No entries.")
        return 0
    for g in groups:
        print(f"{g.course.title}  ({g.course.id})")
        for s in g.sessions:
            print(
                f"  - {s.day} {slot_label(s.slot_id, store.slots)} "
                f"[{type_short(s.class_type)}] {store.effective_room(s)}  (entry {s.id})"
            )
    return 0


def _cmd_slots(args: argparse.Namespace, state: AppState) -> int:
    store = state.store
    action = args.slots_command

    if action == "list":
        if state.first_run:
            print("(default slots, not yet customised)")
        for i, s in enumerate(store.slots, start=1):
            print(f"{i}) {s.id} | {s.label} | {s.start}-{s.end}")
        return 0

    if action == "add":
        slot = store.add_slot(args.start, args.end, args.label)
        print(f"Added slot: {slot.id} ({slot.label})")
        return 0

    slot = _resolve_slot(store, args.slot)

    if action == "edit":
        updated = store.update_slot(slot.id, start=args.start, end=args.end, label=args.label)
        print(f"Updated slot: {updated.id} ({updated.label})")
        return 0

    if action == "rm":
        if store.slot_in_use(slot.id) and not args.yes:
            print("This slot is used by entries; deleting it deletes them too. Re-run with --yes.")
            return 1
        removed = store.delete_slot(slot.id)
        print(f"Deleted slot: {slot.label} (entries removed: {removed})")
        return 0

    if action == "move":
        target = _resolve_slot(store, args.target)
        store.move_slot(slot.id, target.id, after=not args.before)
        print("Order: " + ", ".join(s.label for s in store.slots))
        return 0

    return 2


def _cmd_courses(args: argparse.Namespace, state: AppState) -> int:
    store = state.store
    action = args.courses_command

    if action == "list":
        if not store.courses:
            print("No courses.")
            return 0
        usage = store.courses_by_usage()
        for c in store.courses:
            room = c.default_room or "—"
            profs = c.default_professors or "—"
            print(f"{c.id} | {c.title} | {room} | {profs} | {usage.get(c.id, 0)} sessions")
        return 0

    if action == "add":
        course = store.add_course(args.title, args.room or "", args.professors or "", args.url or "")
        print(f"Added course: {course.id} ({course.title})")
        return 0

    course = _resolve_course(store, args.course)

    if action == "edit":
        updated = store.update_course(
            course.id,
            title=args.title,
            default_room=args.room,
            default_professors=args.professors,
            course_url=args.url,
        )
        print(f"Updated course: {updated.id} ({updated.title})")
        return 0

    if action == "rm":
        if store.course_in_use(course.id) and not args.yes:
            print("This course is used by entries; deleting it deletes them too. Re-run with --yes.")
            return 1
        removed = store.delete_course(course.id)
        print(f"Deleted course: {course.title} (entries removed: {removed})")
        return 0

    return 2


def _cmd_place(args: argparse.Namespace, state: AppState) -> int:
    store = state.store
    course = _resolve_course(store, args.course)
    slot = _resolve_slot(store, args.slot)
    day = _resolve_day(args.day)

    placement = store.place_entry(
        course.id,
        day,
        slot.id,
        class_type=args.type,
        room=args.room or "",
        professors=args.professors or "",
        course_url=args.url or "",
    )
    if placement.status == "pending":
        if not args.replace:
            print(store.pending_message())
            print("Nothing changed. Re-run with --replace to overwrite.")
            store.cancel_pending()
            return 1
        placement = store.confirm_pending()

    print(f"{placement.status.capitalize()}: {course.title} on {day} {slot.label} (entry {placement.entry.id})")
    return 0


def _cmd_unplace(args: argparse.Namespace, state: AppState) -> int:
    store = state.store
    day = _resolve_day(args.day)
    slot = _resolve_slot(store, args.slot)
    e = store.entry_at(day, slot.id)
    if e is None:
        print(f"Nothing placed on {day} {slot.label}.")
        return 0
    store.remove_entry(e.id)
    print(f"Removed entry on {day} {slot.label}.")
    return 0


def _cmd_clear(args: argparse.Namespace, state: AppState) -> int:
    if not args.yes:
        print("This deletes ALL entries of the schedule. Re-run with --yes.")
        return 1
    state.store.clear_entries()
    print("All entries deleted.")
    return 0


def _cmd_export(args: argparse.Namespace, state: AppState) -> int:
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide an output .html path.")
        return 1
    store = state.store
    skin = args.skin or state.skin
    out = write_export_html(out_path, store.slots, store.courses, store.entries, state.theme, skin)
    print(f"Exported {len(store.entries)} entries to: {out.resolve()}")
    return 0


def _cmd_restore(args: argparse.Namespace, state: AppState) -> int:
    backup = read_backup_file(args.file)
    print(confirmation_message(backup))
    if not args.yes:
        answer = input("[y/N]: ").strip().lower()
        if answer not in ("y", "yes"):
            print("Restore cancelled.")
            return 0
    state.restore_backup(backup)
    extra = f" ({backup.pruned} orphan entries dropped)" if backup.pruned else ""
    print(f"Restore complete ✅{extra}")
    return 0


def _cmd_theme(args: argparse.Namespace, state: AppState) -> int:
    if args.value == "toggle":
        state.toggle_theme()
    elif args.value:
        state.set_theme(args.value)
    print(f"Theme: {state.theme}")
    return 0


def _cmd_skin(args: argparse.Namespace, state: AppState) -> int:
    if args.value:
        state.set_skin(args.value)
    print(f"Export skin: {state.skin}")
    return 0


def _cmd_cloud(args: argparse.Namespace, state: AppState) -> int:
    action = args.cloud_command

    if action == "status":
        if not state.client.enabled:
            print("Cloud: not configured (local-only mode).")
            return 0
        if not state.signed_in:
            print("Cloud: signed out.")
            return 0
        session = state.client.session
        print(f"Cloud: signed in as {session.email or session.user_id}")
        return 0

    if action in ("signup", "signin"):
        state.sign_in(args.email, args.pin, signup=action == "signup")
        role = " (MASTER)" if state.is_master else ""
        print(f"Signed in as {state.client.session.email}{role}. {state.banner}")
        return 0

    if action == "signout":
        state.sign_out()
        print("Signed out.")
        return 0

    if action == "load":
        state.load_from_cloud()
        print(state.banner or "Nothing loaded.")
        return 0

    if action == "save":
        updated_at = state.save_to_cloud()
        print(f"Saved ✅ (updated_at {updated_at})")
        return 0

    if action == "users":
        state.refresh_profile()
        for p in state.list_profiles():
            role = "MASTER" if p.is_master else "user"
            print(f"{p.username} | {role} | {p.created_at or '—'}")
        return 0

    if action == "reset-pin":
        state.refresh_profile()
        result = state.reset_pin(args.username, args.new_pin)
        if result.ok:
            print(f"OK ✅ {args.username} can now sign in with the new PIN.")
            return 0
        print(f"Failed: {result.message or 'unknown'}")
        return 1

    return 2


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="unischedule", description="Weekly university schedule")
    parser.add_argument("--storage", type=str, default=None, help="Path of the local storage JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Print the weekly grid and course list")

    p_slots = sub.add_parser("slots", help="Manage time slots")
    slots_sub = p_slots.add_subparsers(dest="slots_command", required=True)
    slots_sub.add_parser("list", help="List slots in order")
    p = slots_sub.add_parser("add", help="Add a slot")
    p.add_argument("start", help="HH:MM")
    p.add_argument("end", help="HH:MM")
    p.add_argument("--label", default=None)
    p = slots_sub.add_parser("edit", help="Edit a slot")
    p.add_argument("slot", help="Slot id or label")
    p.add_argument("--start", default=None)
    p.add_argument("--end", default=None)
    p.add_argument("--label", default=None)
    p = slots_sub.add_parser("rm", help="Delete a slot (and its entries)")
    p.add_argument("slot", help="Slot id or label")
    p.add_argument("--yes", action="store_true")
    p = slots_sub.add_parser("move", help="Move a slot next to another one")
    p.add_argument("slot", help="Slot to move")
    p.add_argument("target", help="Slot to move next to")
    p.add_argument("--before", action="store_true", help="Insert before target (default: after)")

    p_courses = sub.add_parser("courses", help="Manage courses")
    courses_sub = p_courses.add_subparsers(dest="courses_command", required=True)
    courses_sub.add_parser("list", help="List courses")
    p = courses_sub.add_parser("add", help="Add a course")
    p.add_argument("title")
    p.add_argument("--room", default=None)
    p.add_argument("--professors", default=None)
    p.add_argument("--url", default=None)
    p = courses_sub.add_parser("edit", help="Edit a course")
    p.add_argument("course", help="Course id or title")
    p.add_argument("--title", default=None)
    p.add_argument("--room", default=None)
    p.add_argument("--professors", default=None)
    p.add_argument("--url", default=None)
    p = courses_sub.add_parser("rm", help="Delete a course (and its entries)")
    p.add_argument("course", help="Course id or title")
    p.add_argument("--yes", action="store_true")

    p = sub.add_parser("place", help="Place a course into a day/slot cell")
    p.add_argument("course", help="Course id or title")
    p.add_argument("day", help="Mon..Fri")
    p.add_argument("slot", help="Slot id or label")
    p.add_argument("--type", choices=CLASS_TYPES, default="THEORY")
    p.add_argument("--room", default=None, help="Override the course's room")
    p.add_argument("--professors", default=None, help="Override the course's professors")
    p.add_argument("--url", default=None, help="Override the course's page")
    p.add_argument("--replace", action="store_true", help="Confirm overwriting an occupied cell")

    p = sub.add_parser("unplace", help="Remove the entry of a day/slot cell")
    p.add_argument("day")
    p.add_argument("slot")

    p = sub.add_parser("clear", help="Delete all entries")
    p.add_argument("--yes", action="store_true")

    p = sub.add_parser("export", help="Export the schedule as HTML (with embedded backup)")
    p.add_argument("out", type=str, nargs="?", default=DEFAULT_EXPORT_NAME, help="Output .html path")
    p.add_argument("--skin", choices=SKINS, default=None)

    p = sub.add_parser("restore", help="Restore from an exported HTML file")
    p.add_argument("file")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    p = sub.add_parser("theme", help="Show or set the theme")
    p.add_argument("value", nargs="?", choices=("dark", "light", "toggle"))

    p = sub.add_parser("skin", help="Show or set the export skin")
    p.add_argument("value", nargs="?", choices=SKINS)

    p_cloud = sub.add_parser("cloud", help="Cloud account and sync")
    cloud_sub = p_cloud.add_subparsers(dest="cloud_command", required=True)
    cloud_sub.add_parser("status")
    for name in ("signup", "signin"):
        p = cloud_sub.add_parser(name)
        p.add_argument("email")
        p.add_argument("--pin", required=True, help="4–12 digits")
    cloud_sub.add_parser("signout")
    cloud_sub.add_parser("load", help="Reload the schedule from the cloud")
    cloud_sub.add_parser("save", help="Upload the schedule (overwrites the cloud copy)")
    cloud_sub.add_parser("users", help="List users (master only)")
    p = cloud_sub.add_parser("reset-pin", help="Set a temporary PIN for a user (master only)")
    p.add_argument("username")
    p.add_argument("new_pin")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


_COMMANDS = {
    "show": _cmd_show,
    "slots": _cmd_slots,
    "courses": _cmd_courses,
    "place": _cmd_place,
    "unplace": _cmd_unplace,
    "clear": _cmd_clear,
    "export": _cmd_export,
    "restore": _cmd_restore,
    "theme": _cmd_theme,
    "skin": _cmd_skin,
    "cloud": _cmd_cloud,
}


def main(argv: Optional[list[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    state = _build_state(args)

    if args.command == "interactive":
        from unischedule.interactive import run_interactive

        run_interactive(state)
        raise SystemExit(0)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        code = handler(args, state)
    except UniScheduleError as e:
        print(f"Error: {e}")
        code = 1
    raise SystemExit(code)
