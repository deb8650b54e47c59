"""
Read-only projections for presentation layers.

Nothing here mutates state, and nothing here is trusted by the enrollment
coordinator: confirm() always re-derives its own gate.
"""

from __future__ import annotations

import enum
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable, Optional

from slotbook.catalog import Catalog
from slotbook.conflicts import blocked_teachers, explain_slot, is_teacher_blocked
from slotbook.ledger import BookingLedger, GlobalOccupancy
from slotbook.model import DAYS, TIME_SLOTS, Booking, SlotOffering, normalize_time


@dataclass(frozen=True)
class SubjectEntry:
    subject: str
    teacher: str
    booked: bool
    code: Optional[str] = None
    id: Optional[str] = None


def _collation_key(text: str) -> tuple[str, str]:
    # accents and case only break ties, like a locale compare
    folded = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in folded if not unicodedata.combining(ch)).casefold()
    return (base, text)


def list_subjects(catalog: Catalog, ledger: BookingLedger, search_term: str = "") -> list[SubjectEntry]:
    """
    Teacher/subject pairs matching `search_term`, sorted by subject name.

    Matching is a case-insensitive substring test on subject or teacher.
    """
    query = (search_term or "").strip().lower()
    booked_subjects = set(ledger.subjects())

    entries: list[SubjectEntry] = []
    for teacher, profile in catalog.teachers.items():
        if query and query not in profile.subject.lower() and query not in teacher.lower():
            continue
        entries.append(
            SubjectEntry(
                subject=profile.subject,
                teacher=teacher,
                booked=profile.subject in booked_subjects,
                code=profile.code,
                id=profile.id,
            )
        )

    entries.sort(key=lambda e: _collation_key(e.subject))
    return entries


def options_for_cell(catalog: Catalog, day: str, time: str, active_subject: Optional[str]) -> list[SlotOffering]:
    """
    Offerings of the active subject's teachers at (day, time).
    """
    if not active_subject:
        return []
    key = normalize_time(time)
    return [
        s
        for s in catalog.slots
        if s.day == day and s.time_key == key and catalog.subject_of(s.teacher) == active_subject
    ]


def bookings_for_cell(ledger: BookingLedger, day: str, time: str) -> list[Booking]:
    return ledger.at(day, time)


class CellState(enum.Enum):
    CLEAR = "clear"
    DIRECT_CONFLICT = "direct_conflict"
    TEACHER_BLOCKED = "teacher_blocked"
    GLOBALLY_BOOKED = "globally_booked"


@dataclass(frozen=True)
class CellConflict:
    state: CellState
    reason: str = ""

    @property
    def selectable(self) -> bool:
        return self.state is CellState.CLEAR


def cell_conflict_state(
    ledger: BookingLedger,
    occupancy: GlobalOccupancy,
    catalog: Catalog,
    slot: SlotOffering,
    blocked: Optional[set[str]] = None,
) -> CellConflict:
    """
    Presentation state of one option card.

    Priority: direct conflict, then blocked teacher, then globally booked.
    `blocked` may carry a precomputed set of blocked teachers.
    """
    direct = ledger.first_at(slot.day, slot.time)
    if direct is not None:
        explanation = explain_slot(ledger, slot, catalog.subject_of(slot.teacher))
        reason = explanation.message or f"Conflict: you already booked {direct.subject} here"
        return CellConflict(CellState.DIRECT_CONFLICT, reason)

    teacher_blocked = slot.teacher in blocked if blocked is not None else is_teacher_blocked(ledger, slot.teacher, catalog)
    if teacher_blocked:
        return CellConflict(
            CellState.TEACHER_BLOCKED,
            "Conflict: this teacher has another class that overlaps with your schedule",
        )

    if occupancy.is_taken(slot.teacher, slot.day, slot.time):
        return CellConflict(CellState.GLOBALLY_BOOKED, "Already booked")

    return CellConflict(CellState.CLEAR)


@dataclass(frozen=True)
class GridCell:
    day: str
    time: str
    bookings: tuple[Booking, ...] = ()
    options: tuple[tuple[SlotOffering, CellConflict], ...] = ()


@dataclass(frozen=True)
class Grid:
    active_subject: Optional[str]
    subject_booked: bool
    days: tuple[str, ...]
    times: tuple[str, ...]
    cells: dict[tuple[str, str], GridCell] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to show: no bookings and no subject selected."""
        return not self.active_subject and not any(c.bookings for c in self.cells.values())

    def cell(self, day: str, time: str) -> GridCell:
        return self.cells[(day, normalize_time(time))]


def build_grid(
    catalog: Catalog,
    ledger: BookingLedger,
    occupancy: GlobalOccupancy,
    active_subject: Optional[str],
    days: Iterable[str] = DAYS,
    times: Iterable[str] = TIME_SLOTS,
) -> Grid:
    """
    Project the whole weekly grid: own bookings plus option cards.

    Options are hidden once the active subject has been booked.
    """
    days = tuple(days)
    times = tuple(times)
    subject_booked = ledger.has_subject(active_subject)
    blocked = blocked_teachers(ledger, catalog, active_subject)

    cells: dict[tuple[str, str], GridCell] = {}
    for day in days:
        for time in times:
            options: tuple[tuple[SlotOffering, CellConflict], ...] = ()
            if active_subject and not subject_booked:
                options = tuple(
                    (opt, cell_conflict_state(ledger, occupancy, catalog, opt, blocked))
                    for opt in options_for_cell(catalog, day, time, active_subject)
                )
            cells[(day, normalize_time(time))] = GridCell(
                day=day,
                time=time,
                bookings=tuple(bookings_for_cell(ledger, day, time)),
                options=options,
            )

    return Grid(active_subject=active_subject, subject_booked=subject_booked, days=days, times=times, cells=cells)
