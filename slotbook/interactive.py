from __future__ import annotations

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from slotbook.enrollment import State
from slotbook.model import SlotOffering
from slotbook.queries import CellConflict, CellState, Grid, list_subjects
from slotbook.session import Session


console = Console()

_STATE_STYLE = {
    CellState.CLEAR: "green",
    CellState.DIRECT_CONFLICT: "red",
    CellState.TEACHER_BLOCKED: "red",
    CellState.GLOBALLY_BOOKED: "yellow",
}


def _println(msg: str = "") -> None:
    # catalog names may contain brackets; plain text only
    console.print(escape(msg))


def _prompt(msg: str) -> str:
    return console.input(escape(msg))


def _toast(msg: str, ok: bool = True) -> None:
    style = "green" if ok else "red"
    console.print(f"[{style}]{escape(msg)}[/]")


def run_interactive(session: Session) -> None:
    """
    Interactive menu loop over one session.
    """
    while True:
        _print_header(session)

        choice = _prompt(
            "\n[1] Search + select subject\n"
            "[2] Timetable\n"
            "[3] Book a slot\n"
            "[4] My bookings\n"
            "[5] Cancel a subject\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        if choice == "0":
            _println("Bye.")
            return

        if choice == "1":
            _flow_select_subject(session)
        elif choice == "2":
            _render_grid(session.recompute())
        elif choice == "3":
            _flow_book(session)
        elif choice == "4":
            _flow_my_bookings(session)
        elif choice == "5":
            _flow_cancel(session)
        else:
            _println("Invalid choice.")


def _print_header(session: Session) -> None:
    coord = session.coordinator
    _println("\n=== SlotBook (interactive) ===")
    if coord.active_subject:
        teacher = escape(coord.active_teacher or "-")
        console.print(f"Selected: [bold cyan]{escape(coord.active_subject)}[/] ({teacher})")
    else:
        _println("Selected: (none)")
    _println(f"Booked slots: {len(session.ledger)} | Subjects: {len(session.ledger.subjects())}")


def _flow_select_subject(session: Session) -> None:
    query = _prompt("Search subject or teacher [blank = all]: ").strip()
    entries = list_subjects(session.catalog, session.ledger, query)
    if not entries:
        _println("No matches found.")
        return

    table = Table(title="Subjects", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Subject")
    table.add_column("Teacher")
    for i, e in enumerate(entries, start=1):
        subject = f"{escape(e.subject)} [green]✓[/]" if e.booked else escape(e.subject)
        table.add_row(str(i), subject, f"[magenta]{escape(e.teacher)}[/]")
    console.print(table)

    pick = _prompt("Enter number to select [blank = back]: ").strip()
    if not pick:
        return
    if not pick.isdigit() or not (1 <= int(pick) <= len(entries)):
        _println("Out of range.")
        return

    entry = entries[int(pick) - 1]
    preview = session.coordinator.preview(entry.subject, entry.teacher)
    session.coordinator.select_for_booking(entry.subject, entry.teacher)
    _println(preview.message)
    if preview.conflicts:
        _toast(f"{entry.teacher} is blocked: {len(preview.conflicts)} slots overlap your schedule", ok=False)


def _render_grid(grid: Grid) -> None:
    if grid.is_empty:
        _println("Select a subject from the directory to start booking.")
        return

    table = Table(box=box.SIMPLE, title="Timetable")
    table.add_column("")
    for time in grid.times:
        table.add_column(time)

    for day in grid.days:
        row = [day]
        for time in grid.times:
            cell = grid.cell(day, time)
            bits = [f"[bold green]{escape(b.subject)}[/]\n{escape(b.teacher)} (Booked)" for b in cell.bookings]
            for opt, state in cell.options:
                bits.append(f"[{_STATE_STYLE[state.state]}]{escape(opt.teacher)}[/]")
            row.append("\n".join(bits))
        table.add_row(*row)

    console.print(table)


def _selectable_options(grid: Grid) -> list[SlotOffering]:
    out: list[SlotOffering] = []
    for day in grid.days:
        for time in grid.times:
            for opt, state in grid.cell(day, time).options:
                if state.selectable:
                    out.append(opt)
    return out


def _unavailable_options(grid: Grid) -> list[tuple[SlotOffering, CellConflict]]:
    out: list[tuple[SlotOffering, CellConflict]] = []
    for day in grid.days:
        for time in grid.times:
            for opt, state in grid.cell(day, time).options:
                if not state.selectable:
                    out.append((opt, state))
    return out


def _flow_book(session: Session) -> None:
    coord = session.coordinator
    if not coord.active_subject:
        _println("Select a subject first.")
        return

    grid = session.recompute()
    if grid.subject_booked:
        _println(f"{coord.active_subject} is already booked.")
        return

    for opt, state in _unavailable_options(grid):
        _println(f"- {opt.day} @ {opt.time} | {opt.teacher}: {state.reason}")

    options = _selectable_options(grid)
    if not options:
        _println("No bookable slots for this subject.")
        return

    for i, opt in enumerate(options, start=1):
        _println(f"{i}) {opt.day} @ {opt.time} | {opt.teacher}")

    pick = _prompt("Enter number to book [blank = back]: ").strip()
    if not pick:
        return
    if not pick.isdigit() or not (1 <= int(pick) <= len(options)):
        _println("Out of range.")
        return

    request = coord.request_booking(options[int(pick) - 1])
    if not request.ok:
        _toast(request.message, ok=False)
        return

    slot = options[int(pick) - 1]
    _println(f"\nSubject: {request.subject}\nTeacher: {request.teacher}")
    _println(f"Time:    {slot.day} @ {slot.time}")
    _println(f"All {request.slot_count} weekly slots of this teacher will be booked.")

    answer = _prompt("Confirm booking? [Y/n]: ").strip().lower()
    if answer == "n":
        coord.cancel()
        return

    result = coord.confirm()
    _toast(result.message, ok=result.ok)
    if not result.persisted:
        _toast("Warning: bookings could not be saved.", ok=False)
    if coord.state is State.COMMITTED:
        coord.cancel()


def _flow_my_bookings(session: Session) -> None:
    if not len(session.ledger):
        _println("No slots booked yet.")
        return

    table = Table(title="My bookings", box=box.SIMPLE)
    table.add_column("Subject")
    table.add_column("Day")
    table.add_column("Time")
    table.add_column("Teacher")
    for b in session.ledger:
        table.add_row(
            f"[bold cyan]{escape(b.subject)}[/]", escape(b.day), escape(b.time), f"[magenta]{escape(b.teacher)}[/]"
        )
    console.print(table)


def _flow_cancel(session: Session) -> None:
    subjects = session.ledger.subjects()
    if not subjects:
        _println("No slots booked yet.")
        return

    for i, subject in enumerate(subjects, start=1):
        n = len(session.ledger.for_subject(subject))
        _println(f"{i}) {subject} ({n} slots)")

    pick = _prompt("Enter number to cancel [blank = back]: ").strip()
    if not pick:
        return
    if not pick.isdigit() or not (1 <= int(pick) <= len(subjects)):
        _println("Out of range.")
        return

    subject = subjects[int(pick) - 1]
    answer = _prompt(f"Cancel ALL bookings for {subject}? [y/N]: ").strip().lower()
    if answer != "y":
        return

    result = session.coordinator.cancel_subject(subject)
    _toast(result.message, ok=True)
    if not result.persisted:
        _toast("Warning: bookings could not be saved.", ok=False)
