"""
Conflict detection.

A teacher's slot set conflicts with the student's ledger when any of the
teacher's offerings sits on the same day and normalized time as a booking
held with a different teacher.

Matching rule:
    same day AND normalize_time(a) == normalize_time(b)
No interval overlap arithmetic is done; "8-10" and "9-11" do not collide.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from slotbook.catalog import Catalog
from slotbook.ledger import BookingLedger
from slotbook.model import Booking, SlotOffering


def _collides(booking: Booking, offering: SlotOffering) -> bool:
    if booking.teacher == offering.teacher:
        # same teacher never conflicts with itself, re-checks stay idempotent
        return False
    return booking.day == offering.day and booking.time_key == offering.time_key


def compute_conflicts(ledger: BookingLedger, teacher: str, catalog: Catalog) -> set[SlotOffering]:
    """
    Return the offerings of `teacher` that collide with the ledger.

    Empty set means the teacher's whole slot set can be added safely.
    """
    conflicts: set[SlotOffering] = set()
    for offering in catalog.offerings_for(teacher):
        if any(_collides(b, offering) for b in ledger):
            conflicts.add(offering)
    return conflicts


def is_teacher_blocked(ledger: BookingLedger, teacher: str, catalog: Catalog) -> bool:
    return bool(compute_conflicts(ledger, teacher, catalog))


def blocked_teachers(ledger: BookingLedger, catalog: Catalog, subject: Optional[str]) -> set[str]:
    """
    Teachers of `subject` that cannot be booked because of the current ledger.
    """
    if not subject:
        return set()
    return {t for t in catalog.teachers_for_subject(subject) if is_teacher_blocked(ledger, t, catalog)}


class SlotStatus(enum.Enum):
    CLEAR = "clear"
    ENROLLED_HERE = "enrolled_here"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class SlotExplanation:
    status: SlotStatus
    booking: Optional[Booking] = None

    @property
    def message(self) -> str:
        if self.status is SlotStatus.ENROLLED_HERE and self.booking:
            return f"Already enrolled in {self.booking.subject} here"
        if self.status is SlotStatus.BLOCKED and self.booking:
            return f"Conflict: you already booked {self.booking.subject} ({self.booking.teacher}) here"
        return ""


def explain_slot(ledger: BookingLedger, slot: SlotOffering, subject: Optional[str]) -> SlotExplanation:
    """
    Explain why a slot is (not) available, for display only.

    Never used to gate a booking.
    """
    for b in ledger.at(slot.day, slot.time):
        if subject and b.subject == subject:
            return SlotExplanation(SlotStatus.ENROLLED_HERE, b)
        if b.teacher != slot.teacher:
            return SlotExplanation(SlotStatus.BLOCKED, b)
    return SlotExplanation(SlotStatus.CLEAR)
