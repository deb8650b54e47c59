"""
CLI (Command Line Interface).

This module provides quick terminal commands for power users and for testing, e.g.:

    slotbook subjects [text]
    slotbook grid [--subject NAME]
    slotbook book <subject> <teacher>
    slotbook cancel <subject>
    slotbook bookings
    slotbook interactive

Every command accepts --catalog (file or http(s) URL) and --bookings (JSON file).

Note:
- The interactive UI lives in slotbook/interactive.py
- This CLI is intentionally simple and prints plain text (no rich formatting)
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from rich.logging import RichHandler

from slotbook.catalog import open_catalog
from slotbook.errors import CatalogError
from slotbook.queries import CellState, Grid, list_subjects
from slotbook.session import Session
from slotbook.storage import JsonBookingStore


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _open_session(args: argparse.Namespace) -> Optional[Session]:
    """
    Load catalog + bookings. Prints the error and returns None if the catalog is unusable.
    """
    try:
        catalog = open_catalog(args.catalog)
    except CatalogError as e:
        print(f"Error: {e}")
        return None
    return Session.open(catalog, JsonBookingStore(args.bookings))


def _cmd_subjects(args: argparse.Namespace, session: Session) -> int:
    """
    List subjects/teachers, optionally filtered by substring.
    """
    entries = list_subjects(session.catalog, session.ledger, args.text or "")
    if not entries:
        print("No matches found.")
        return 0

    for e in entries:
        mark = " ✓" if e.booked else ""
        print(f"{e.subject}{mark} | {e.teacher}")
    return 0


def _cmd_book(args: argparse.Namespace, session: Session) -> int:
    """
    Book every slot of one teacher for a subject.
    """
    subject = (args.subject or "").strip()
    teacher = (args.teacher or "").strip()
    if not subject or not teacher:
        print("Please provide subject and teacher.")
        return 1

    result = session.coordinator.enroll(subject, teacher)
    print(result.message)
    for slot in sorted(result.conflicts, key=lambda s: (s.day, s.time_key)):
        print(f"- conflicts at {slot.day} {slot.time}")
    if not result.persisted:
        print("Warning: bookings could not be saved.")
    return 0 if result.ok else 1


def _cmd_cancel(args: argparse.Namespace, session: Session) -> int:
    """
    Cancel all bookings for a subject.
    """
    subject = (args.subject or "").strip()
    if not subject:
        print("Please provide a subject.")
        return 1

    result = session.coordinator.cancel_subject(subject)
    print(f"{result.message} (removed: {result.count}, remaining: {len(session.ledger)})")
    if not result.persisted:
        print("Warning: bookings could not be saved.")
    return 0


def _cmd_bookings(args: argparse.Namespace, session: Session) -> int:
    if not len(session.ledger):
        print("No slots booked yet.")
        return 0

    for b in session.ledger:
        print(f"{b.subject} | {b.day} | {b.time} | {b.teacher}")
    return 0


def _format_grid(grid: Grid) -> list[str]:
    lines: list[str] = []
    for day in grid.days:
        for time in grid.times:
            cell = grid.cell(day, time)
            bits = [f"{b.subject} ({b.teacher}, booked)" for b in cell.bookings]
            for opt, state in cell.options:
                flag = "" if state.state is CellState.CLEAR else f" [{state.state.value}]"
                bits.append(f"{opt.teacher}{flag}")
            if bits:
                lines.append(f"{day:<10} {time:<6} " + "; ".join(bits))
    return lines


def _cmd_grid(args: argparse.Namespace, session: Session) -> int:
    """
    Print the weekly grid: own bookings plus options for --subject.
    """
    subject = (args.subject or "").strip() or None
    session.coordinator.select_for_booking(subject)
    grid = session.grid()

    if grid.is_empty:
        print("Select a subject to start booking.")
        return 0

    lines = _format_grid(grid)
    if not lines:
        print("Nothing to show.")
    for line in lines:
        print(line)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--catalog", type=str, default=None, help="Catalog JSON file or http(s) URL")
    common.add_argument("--bookings", type=str, default=None, help="Bookings JSON file")
    common.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    parser = argparse.ArgumentParser(prog="slotbook", description="SlotBook CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    p_subjects = sub.add_parser("subjects", parents=[common], help="List subjects and teachers")
    p_subjects.add_argument("text", type=str, nargs="?", default="", help="Search text")

    p_grid = sub.add_parser("grid", parents=[common], help="Show the weekly grid")
    p_grid.add_argument("--subject", type=str, default=None, help="Show options for this subject")

    p_book = sub.add_parser("book", parents=[common], help="Book all slots of a teacher")
    p_book.add_argument("subject", type=str, help="Subject name")
    p_book.add_argument("teacher", type=str, help="Teacher name")

    p_cancel = sub.add_parser("cancel", parents=[common], help="Cancel all bookings of a subject")
    p_cancel.add_argument("subject", type=str, help="Subject name")

    sub.add_parser("bookings", parents=[common], help="List my bookings")
    sub.add_parser("interactive", parents=[common], help="Interactive menu mode")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    session = _open_session(args)
    if session is None:
        raise SystemExit(1)

    with session:
        if args.command == "subjects":
            raise SystemExit(_cmd_subjects(args, session))
        if args.command == "grid":
            raise SystemExit(_cmd_grid(args, session))
        if args.command == "book":
            raise SystemExit(_cmd_book(args, session))
        if args.command == "cancel":
            raise SystemExit(_cmd_cancel(args, session))
        if args.command == "bookings":
            raise SystemExit(_cmd_bookings(args, session))

        if args.command == "interactive":
            from slotbook.interactive import run_interactive

            run_interactive(session)
            raise SystemExit(0)

    raise SystemExit(2)
