from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from unischedule.errors import CloudError, UniScheduleError
from unischedule.export_html import DEFAULT_EXPORT_NAME, write_export_html
from unischedule.model import DAYS, SKINS, Course, Slot, cell_key, day_label, type_short
from unischedule.restore import confirmation_message, read_backup_file
from unischedule.schedule import slot_label
from unischedule.session import AppState

console = Console()


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    # prompts use [x] menu keys, never markup
    return console.input(escape(msg))


def _confirm(msg: str, default_yes: bool = False) -> bool:
    hint = "[Y/n]" if default_yes else "[y/N]"
    answer = _prompt(f"{msg} {hint}: ").strip().lower()
    if not answer:
        return default_yes
    return answer in ("y", "yes")


def _pick_number(msg: str, count: int) -> Optional[int]:
    """
    Ask for 1..count. Returns a 0-based index, or None on blank / bad input.
    """
    pick = _prompt(msg).strip()
    if not pick:
        return None
    if not pick.isdigit():
        _println("Not a number.")
        return None
    i = int(pick)
    if not (1 <= i <= count):
        _println("Out of range.")
        return None
    return i - 1


def run_interactive(state: AppState) -> None:
    """
    Interactive menu loop.
    """
    while True:
        _print_header(state)

        choice = _prompt(
            "\n[1] Timetable\n"
            "[2] Courses overview\n"
            "[3] Place a course\n"
            "[4] Remove an entry\n"
            "[5] Manage slots\n"
            "[6] Manage courses\n"
            "[7] Export HTML\n"
            "[8] Restore from HTML\n"
            "[9] Theme / export skin\n"
            "[10] Cloud\n"
            "[11] Clear all entries\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        if choice == "0":
            if state.dirty and not _confirm("Unsaved cloud changes. Exit anyway?"):
                continue
            _println("Bye.")
            return

        try:
            if choice == "1":
                _flow_timetable(state)
            elif choice == "2":
                _flow_overview(state)
            elif choice == "3":
                _flow_place(state)
            elif choice == "4":
                _flow_remove_entry(state)
            elif choice == "5":
                _flow_slots(state)
            elif choice == "6":
                _flow_courses(state)
            elif choice == "7":
                _flow_export(state)
            elif choice == "8":
                _flow_restore(state)
            elif choice == "9":
                _flow_appearance(state)
            elif choice == "10":
                _flow_cloud(state)
            elif choice == "11":
                _flow_clear(state)
            else:
                _println("Invalid choice.")
        except UniScheduleError as e:
            _println(f"[red]{escape(str(e))}[/]")


def _print_header(state: AppState) -> None:
    store = state.store
    _println("\n=== University schedule (interactive) ===")
    _println(
        f"Slots: {len(store.slots)} | Courses: {len(store.courses)} | Entries: {len(store.entries)} "
        f"| Theme: {state.theme} | Skin: {state.skin}"
    )
    if not state.client.enabled:
        _println("Cloud: [dim]not configured (local-only)[/]")
    elif state.signed_in:
        role = " [bold magenta]MASTER[/]" if state.is_master else ""
        dirty = " [yellow]• unsaved changes[/]" if state.dirty else ""
        _println(f"Cloud: {escape(state.client.session.email)}{role}{dirty}")
    else:
        _println("Cloud: signed out")
    if state.banner:
        _println(f"[cyan]{escape(state.banner)}[/]")
    if state.first_run:
        _println("[dim]Tip: default slots are in use, adjust them under [5].[/]")


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _slot_table(state: AppState, title: str = "Slots") -> None:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Label")
    table.add_column("Start")
    table.add_column("End")
    for i, s in enumerate(state.store.slots, start=1):
        table.add_row(str(i), f"[bold]{escape(s.label)}[/]", s.start, s.end)
    console.print(table)


def _course_table(state: AppState, title: str = "Courses") -> None:
    usage = state.store.courses_by_usage()
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Room")
    table.add_column("Professors")
    table.add_column("Sessions", justify="right")
    for i, c in enumerate(state.store.courses, start=1):
        table.add_row(
            str(i),
            f"[bold cyan]{escape(c.title)}[/]",
            escape(c.default_room or "—"),
            escape(c.default_professors or "—"),
            f"[yellow]{usage.get(c.id, 0)}[/]",
        )
    console.print(table)


def _flow_timetable(state: AppState) -> None:
    store = state.store
    if not store.slots:
        _println("No slots. Add one under [5].")
        return

    by_key = store.entries_by_key()
    course_map = store.course_map()

    table = Table(title="Weekly schedule", box=box.SIMPLE_HEAVY, show_lines=True)
    table.add_column("Slot")
    for _, label in DAYS:
        table.add_column(label)

    for slot in store.slots:
        row = [f"[bold]{escape(slot.label)}[/]"]
        for day, _ in DAYS:
            e = by_key.get(cell_key(day, slot.id))
            if e is None:
                row.append("")
                continue
            c = course_map.get(e.course_id)
            badge = "magenta" if e.class_type == "LAB" else "green"
            row.append(
                f"[bold]{escape(c.title) if c else '—'}[/] [{badge}]{type_short(e.class_type)}[/]\n"
                f"[dim]{escape(store.effective_room(e))}[/]"
            )
        table.add_row(*row)
    console.print(table)


def _flow_overview(state: AppState) -> None:
    store = state.store
    groups = store.groups()
    if not groups:
        _println("No entries.")
        return

    for g in groups:
        _println(f"\n[bold cyan]{escape(g.course.title)}[/]")
        for s in g.sessions:
            _println(
                f"  - {day_label(s.day)} {escape(slot_label(s.slot_id, store.slots))} "
                f"({type_short(s.class_type)}) {escape(store.effective_room(s))} | {escape(store.effective_professors(s))}"
            )
            url = store.effective_url(s)
            if url:
                _println(f"    [dim]{escape(url)}[/]")


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


def _choose_course(state: AppState) -> Optional[Course]:
    if not state.store.courses:
        _println("No courses. Add one under [6].")
        return None
    _course_table(state)
    idx = _pick_number("Course number [blank = back]: ", len(state.store.courses))
    return None if idx is None else state.store.courses[idx]


def _choose_slot(state: AppState) -> Optional[Slot]:
    if not state.store.slots:
        _println("No slots. Add one under [5].")
        return None
    _slot_table(state)
    idx = _pick_number("Slot number [blank = back]: ", len(state.store.slots))
    return None if idx is None else state.store.slots[idx]


def _choose_day() -> Optional[str]:
    for i, (_, label) in enumerate(DAYS, start=1):
        _println(f"{i}) {label}")
    idx = _pick_number("Day number [blank = back]: ", len(DAYS))
    return None if idx is None else DAYS[idx][0]


def _flow_place(state: AppState) -> None:
    store = state.store
    course = _choose_course(state)
    if course is None:
        return
    day = _choose_day()
    if day is None:
        return
    slot = _choose_slot(state)
    if slot is None:
        return

    class_type = "LAB" if _prompt("Lab? [y/N]: ").strip().lower() in ("y", "yes") else "THEORY"
    room = _prompt(f"Room [blank = {course.default_room or '—'}]: ").strip()
    professors = _prompt(f"Professors [blank = {course.default_professors or '—'}]: ").strip()
    url = _prompt(f"Course page [blank = {course.course_url or '—'}]: ").strip()

    placement = store.place_entry(
        course.id, day, slot.id, class_type=class_type, room=room, professors=professors, course_url=url
    )
    if placement.status == "pending":
        if not _confirm(store.pending_message()):
            store.cancel_pending()
            _println("Nothing changed.")
            return
        placement = store.confirm_pending()
    _println(f"{placement.status.capitalize()}: {escape(course.title)}")


def _flow_remove_entry(state: AppState) -> None:
    store = state.store
    while True:
        if not store.entries:
            _println("No entries.")
            return

        course_map = store.course_map()
        entries = [e for g in store.groups() for e in g.sessions]

        table = Table(title="Remove entry", box=box.SIMPLE)
        table.add_column("#", justify="right")
        table.add_column("Course")
        table.add_column("When")
        table.add_column("Type")
        for i, e in enumerate(entries, start=1):
            c = course_map.get(e.course_id)
            table.add_row(
                str(i),
                escape(c.title) if c else "—",
                f"{day_label(e.day)} {escape(slot_label(e.slot_id, store.slots))}",
                type_short(e.class_type),
            )
        console.print(table)

        idx = _pick_number("Enter number to remove (or blank to cancel): ", len(entries))
        if idx is None:
            return
        store.remove_entry(entries[idx].id)
        _println("Removed.")

        if _prompt("Remove another entry? [Y/n]: ").strip().lower() == "n":
            return



def _flow_clear(state: AppState) -> None:
    store = state.store
    if not store.entries:
        _println("No entries.")
        return
    if not _confirm(f"Delete ALL {len(store.entries)} entries?"):
        _println("Cancelled.")
        return
    store.clear_entries()
    _println("All entries deleted.")


# ---------------------------------------------------------------------------
# Slots / courses management
# ---------------------------------------------------------------------------


def _flow_slots(state: AppState) -> None:
    store = state.store
    while True:
        _slot_table(state)
        choice = _prompt("[a] Add  [e] Edit  [d] Delete  [m] Move  [blank] Back: ").strip().lower()
        if not choice:
            return

        if choice == "a":
            start = _prompt("Start (HH:MM) [09:00]: ").strip() or "09:00"
            end = _prompt("End (HH:MM) [10:00]: ").strip() or "10:00"
            label = _prompt("Label [blank = start–end]: ").strip() or None
            slot = store.add_slot(start, end, label)
            state.first_run = False
            _println(f"Added: {escape(slot.label)}")
            continue

        idx = _pick_number("Slot number: ", len(store.slots))
        if idx is None:
            continue
        slot = store.slots[idx]

        if choice == "e":
            start = _prompt(f"Start [{slot.start}]: ").strip() or None
            end = _prompt(f"End [{slot.end}]: ").strip() or None
            label = _prompt(f"Label [{slot.label}]: ").strip() or None
            updated = store.update_slot(slot.id, start=start, end=end, label=label)
            _println(f"Updated: {escape(updated.label)}")
        elif choice == "d":
            if store.slot_in_use(slot.id) and not _confirm(
                "This slot is used by entries. Deleting it also deletes those entries. Continue?"
            ):
                continue
            removed = store.delete_slot(slot.id)
            _println(f"Deleted {escape(slot.label)} (entries removed: {removed})")
        elif choice == "m":
            target = _pick_number("Move next to slot number: ", len(store.slots))
            if target is None:
                continue
            after = _prompt("[a]fter or [b]efore it? [a]: ").strip().lower() != "b"
            store.move_slot(slot.id, store.slots[target].id, after=after)
        else:
            _println("Invalid choice.")


def _flow_courses(state: AppState) -> None:
    store = state.store
    while True:
        _course_table(state)
        choice = _prompt("[a] Add  [e] Edit  [d] Delete  [blank] Back: ").strip().lower()
        if not choice:
            return

        if choice == "a":
            title = _prompt("Title: ").strip()
            room = _prompt("Default room: ").strip()
            professors = _prompt("Default professors: ").strip()
            url = _prompt("Course page URL: ").strip()
            course = store.add_course(title, room, professors, url)
            _println(f"Added: {escape(course.title)}")
            continue

        idx = _pick_number("Course number: ", len(store.courses))
        if idx is None:
            continue
        course = store.courses[idx]

        if choice == "e":
            updated = store.update_course(
                course.id,
                title=_prompt(f"Title [{course.title}]: ").strip() or None,
                default_room=_prompt(f"Default room [{course.default_room or '—'}]: ").strip() or None,
                default_professors=_prompt(f"Default professors [{course.default_professors or '—'}]: ").strip()
                or None,
                course_url=_prompt(f"Course page [{course.course_url or '—'}]: ").strip() or None,
            )
            _println(f"Updated: {escape(updated.title)}")
        elif choice == "d":
            if store.course_in_use(course.id) and not _confirm(
                "This course is placed in the schedule. Deleting it also deletes its entries. Continue?"
            ):
                continue
            removed = store.delete_course(course.id)
            _println(f"Deleted {escape(course.title)} (entries removed: {removed})")
        else:
            _println("Invalid choice.")


# ---------------------------------------------------------------------------
# Export / restore / appearance
# ---------------------------------------------------------------------------


def _flow_export(state: AppState) -> None:
    store = state.store
    out_in = _prompt(f"File name [{DEFAULT_EXPORT_NAME}]: ").strip()
    out_path = Path(out_in or DEFAULT_EXPORT_NAME)
    if out_path.suffix.lower() != ".html":
        out_path = out_path.with_suffix(".html")

    out = write_export_html(out_path, store.slots, store.courses, store.entries, state.theme, state.skin)
    _println(f"\nExported {len(store.entries)} entries.")
    _println(f"Saved to: {escape(str(out.resolve()))}")
    _println("The file contains a backup: use [8] Restore to load it again.")


def _flow_restore(state: AppState) -> None:
    path = _prompt("Exported HTML file [blank = back]: ").strip()
    if not path:
        return
    backup = read_backup_file(path)
    _println(escape(confirmation_message(backup)))
    if not _confirm("Restore"):
        _println("Restore cancelled.")
        return
    state.restore_backup(backup)
    _println("Restore complete ✅")


def _flow_appearance(state: AppState) -> None:
    choice = _prompt(f"[t] Toggle theme ({state.theme})  [s] Export skin ({state.skin})  [blank] Back: ")
    choice = choice.strip().lower()
    if choice == "t":
        _println(f"Theme: {state.toggle_theme()}")
    elif choice == "s":
        for i, skin in enumerate(SKINS, start=1):
            _println(f"{i}) {skin}")
        idx = _pick_number("Skin number: ", len(SKINS))
        if idx is not None:
            state.set_skin(SKINS[idx])
            _println(f"Export skin: {state.skin}")


# ---------------------------------------------------------------------------
# Cloud
# ---------------------------------------------------------------------------


def _flow_cloud(state: AppState) -> None:
    if not state.client.enabled:
        _println("Cloud not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY (e.g. in .env).")
        return

    if not state.signed_in:
        choice = _prompt("[i] Sign in  [u] Create user  [blank] Back: ").strip().lower()
        if choice not in ("i", "u"):
            return
        email = _prompt("E-mail: ").strip()
        pin = console.input("PIN (4–12 digits): ", password=True).strip()
        state.sign_in(email, pin, signup=choice == "u")
        _println(escape(state.banner))
        return

    options = "[s] Save  [l] Load  [o] Sign out"
    if state.is_master:
        options += "  [u] Users  [r] Reset PIN"
    choice = _prompt(f"{options}  [blank] Back: ").strip().lower()

    if choice == "s":
        try:
            updated_at = state.save_to_cloud()
        except CloudError as e:
            _println(f"[red]Save failed ❌ {escape(str(e))}[/]")
            return
        _println(f"Saved ✅ ({updated_at})")
    elif choice == "l":
        if state.dirty and not _confirm("Local changes are not saved. Load from cloud anyway?"):
            return
        state.load_from_cloud()
        _println(escape(state.banner))
    elif choice == "o":
        if state.dirty and not _confirm("Local changes are not saved. Sign out anyway?"):
            return
        state.sign_out()
        _println("Signed out.")
    elif choice == "u" and state.is_master:
        _flow_master_users(state)
    elif choice == "r" and state.is_master:
        username = _prompt("Username (e-mail): ").strip()
        new_pin = console.input("New temporary PIN: ", password=True).strip()
        result = state.reset_pin(username, new_pin)
        if result.ok:
            _println(f"OK ✅ {escape(username)} can now sign in with the new PIN.")
        else:
            _println(f"[red]Failed: {escape(result.message or 'unknown')}[/]")


def _flow_master_users(state: AppState) -> None:
    profiles = state.list_profiles()
    table = Table(title=f"Users ({len(profiles)})", box=box.SIMPLE)
    table.add_column("Username")
    table.add_column("Role")
    table.add_column("Created")
    for p in profiles:
        role = "[bold magenta]MASTER[/]" if p.is_master else "user"
        table.add_row(escape(p.username), role, str(p.created_at or "—"))
    console.print(table)
