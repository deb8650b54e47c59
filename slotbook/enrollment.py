"""
Enrollment coordinator: preview -> request -> confirm -> commit.

Booking a subject means booking *every* offering of the chosen teacher. The
commit is all-or-nothing: conflicts are recomputed at confirm time and, if
any offering collides with another teacher's booking, nothing is added.

Every transition returns a typed result. Business conditions (conflicts,
duplicate submissions, unknown teachers) never raise.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from slotbook.conflicts import compute_conflicts
from slotbook.model import Booking, SlotOffering, utc_timestamp

if TYPE_CHECKING:
    from slotbook.session import Session


logger = logging.getLogger(__name__)


class State(enum.Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"
    CONFIRMING = "confirming"
    COMMITTED = "committed"
    REJECTED = "rejected"


class Reason(enum.Enum):
    CONFLICT = "conflict"
    DIRECT_CONFLICT = "direct_conflict"
    ALREADY_BOOKED = "already_booked"
    NOT_FOUND = "not_found"
    NO_PENDING = "no_pending"


@dataclass(frozen=True)
class EnrollmentResult:
    ok: bool
    state: State
    subject: Optional[str] = None
    teacher: Optional[str] = None
    reason: Optional[Reason] = None
    message: str = ""
    slot: Optional[SlotOffering] = None
    slot_count: int = 0
    added: tuple[Booking, ...] = ()
    conflicts: frozenset[SlotOffering] = frozenset()
    persisted: bool = True


@dataclass(frozen=True)
class CancellationResult:
    subject: str
    removed: tuple[Booking, ...] = ()
    persisted: bool = True

    @property
    def count(self) -> int:
        return len(self.removed)

    @property
    def message(self) -> str:
        if not self.removed:
            return f"No bookings for {self.subject}"
        return f"Cancelled all classes for {self.subject}"


@dataclass(frozen=True)
class _Attempt:
    subject: str
    teacher: str
    slot: SlotOffering


class EnrollmentCoordinator:
    """
    Sequential state machine for one student's enrollment attempts.

    Only one attempt is in flight: a new preview or request replaces the
    pending one, and a rejected request leaves nothing pending. After
    COMMITTED the attempt is kept, so a repeated confirm() is a no-op that
    reports zero additions.
    """

    def __init__(self, session: "Session") -> None:
        self.session = session
        self.state = State.IDLE
        self.active_subject: Optional[str] = None
        self.active_teacher: Optional[str] = None
        self._pending: Optional[_Attempt] = None

    @property
    def pending(self) -> Optional[SlotOffering]:
        return self._pending.slot if self._pending else None

    def _reject(
        self,
        reason: Reason,
        message: str,
        subject: Optional[str] = None,
        teacher: Optional[str] = None,
        **extra,
    ) -> EnrollmentResult:
        return EnrollmentResult(
            ok=False,
            state=self.state,
            subject=subject,
            teacher=teacher,
            reason=reason,
            message=message,
            **extra,
        )

    def _not_found(self, message: str, subject: Optional[str], teacher: Optional[str]) -> EnrollmentResult:
        logger.warning(message)
        return self._reject(Reason.NOT_FOUND, message, subject, teacher)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def preview(self, subject: str, teacher: str) -> EnrollmentResult:
        """
        Show what booking `teacher` for `subject` would mean. No mutation.
        """
        catalog = self.session.catalog
        if teacher not in catalog.teachers:
            return self._not_found(f"Teacher {teacher!r} not found in catalog", subject, teacher)

        offerings = catalog.offerings_for(teacher)
        conflicts = compute_conflicts(self.session.ledger, teacher, catalog)

        self._pending = None
        self.state = State.PREVIEWING
        return EnrollmentResult(
            ok=True,
            state=self.state,
            subject=subject,
            teacher=teacher,
            message=f"{teacher} teaches {len(offerings)} weekly slots",
            slot_count=len(offerings),
            conflicts=frozenset(conflicts),
        )

    def select_for_booking(self, subject: Optional[str], teacher: Optional[str] = None) -> None:
        """
        Set the subject whose options the grid shows.
        """
        self.active_subject = subject
        self.active_teacher = teacher
        self.session.recompute()

    def request_booking(self, slot: SlotOffering) -> EnrollmentResult:
        """
        Open the confirmation step for `slot`.

        Rejected at once if the student already has any booking at that
        day/time, whatever the teacher.
        """
        catalog = self.session.catalog
        direct = self.session.ledger.first_at(slot.day, slot.time)
        if direct is not None:
            logger.info("Request for %s rejected: %s already booked there", slot.slot_id, direct.subject)
            self.cancel()
            return self._reject(
                Reason.DIRECT_CONFLICT,
                f"Conflict: you already booked {direct.subject} here",
                catalog.subject_of(slot.teacher),
                slot.teacher,
                slot=slot,
            )

        subject = catalog.subject_of(slot.teacher)
        if subject is None:
            self.cancel()
            return self._not_found(f"Teacher {slot.teacher!r} not found in catalog", None, slot.teacher)
        if catalog.find_offering(slot.teacher, slot.day, slot.time) is None:
            self.cancel()
            return self._not_found(f"Offering {slot.slot_id} not found in catalog", subject, slot.teacher)

        self._pending = _Attempt(subject=subject, teacher=slot.teacher, slot=slot)
        self.state = State.CONFIRMING
        return EnrollmentResult(
            ok=True,
            state=self.state,
            subject=subject,
            teacher=slot.teacher,
            message=f"Book {subject} with {slot.teacher} ({slot.day} @ {slot.time})?",
            slot=slot,
            slot_count=len(catalog.offerings_for(slot.teacher)),
        )

    def confirm(self) -> EnrollmentResult:
        """
        Commit the pending attempt as a single batch.

        1. subject already booked -> success, nothing added
        2. any of the teacher's offerings conflicts -> REJECTED, nothing added
        3. otherwise add every offering not yet in the ledger, persist, publish
        """
        attempt = self._pending
        if attempt is None:
            return self._reject(Reason.NO_PENDING, "Nothing to confirm")

        session = self.session
        ledger = session.ledger

        if ledger.has_subject(attempt.subject):
            self.state = State.COMMITTED
            logger.info("Duplicate submission for %s ignored", attempt.subject)
            return EnrollmentResult(
                ok=True,
                state=self.state,
                subject=attempt.subject,
                teacher=attempt.teacher,
                reason=Reason.ALREADY_BOOKED,
                message="Slots already booked",
                slot=attempt.slot,
            )

        conflicts = compute_conflicts(ledger, attempt.teacher, session.catalog)
        if conflicts:
            self.state = State.REJECTED
            logger.info(
                "Booking %s with %s rejected: %d conflicting slots",
                attempt.subject,
                attempt.teacher,
                len(conflicts),
            )
            return self._reject(
                Reason.CONFLICT,
                "Cannot book: conflicts with existing classes!",
                attempt.subject,
                attempt.teacher,
                slot=attempt.slot,
                conflicts=frozenset(conflicts),
            )

        booked_at = utc_timestamp()
        additions: list[Booking] = []
        seen: set[str] = set()
        for offering in session.catalog.offerings_for(attempt.teacher):
            if offering.slot_id in seen:
                continue
            if ledger.contains_offering(offering.slot_id, offering.teacher, offering.day, offering.time):
                continue
            seen.add(offering.slot_id)
            additions.append(Booking.from_offering(offering, attempt.subject, booked_at))

        persisted = True
        if additions:
            persisted = session.commit(ledger.extended(additions), added=additions)

        self.state = State.COMMITTED
        if additions:
            message = f"Booked {len(additions)} slots for {attempt.teacher}"
        else:
            message = "Slots already booked"
        logger.info("%s (%s)", message, attempt.subject)
        return EnrollmentResult(
            ok=True,
            state=self.state,
            subject=attempt.subject,
            teacher=attempt.teacher,
            message=message,
            slot=attempt.slot,
            slot_count=len(session.catalog.offerings_for(attempt.teacher)),
            added=tuple(additions),
            persisted=persisted,
        )

    def cancel(self) -> None:
        """
        Close the confirmation step without booking.
        """
        self._pending = None
        self.state = State.IDLE

    def reset(self) -> None:
        self.cancel()
        self.active_subject = None
        self.active_teacher = None

    # ------------------------------------------------------------------
    # Non-interactive helpers
    # ------------------------------------------------------------------

    def enroll(self, subject: str, teacher: str) -> EnrollmentResult:
        """
        Run the whole flow for callers without a confirmation dialog.
        """
        result = self.preview(subject, teacher)
        if not result.ok:
            return result

        catalog = self.session.catalog
        if catalog.subject_of(teacher) != subject:
            self.cancel()
            return self._not_found(f"Teacher {teacher!r} does not teach {subject!r}", subject, teacher)

        offerings = catalog.offerings_for(teacher)
        if not offerings:
            self.cancel()
            return self._not_found(f"Teacher {teacher!r} has no slots in catalog", subject, teacher)

        self.select_for_booking(subject, teacher)

        ledger = self.session.ledger
        if ledger.has_subject(subject):
            # repeated submission: let confirm() report the no-op
            self._pending = _Attempt(subject=subject, teacher=teacher, slot=offerings[0])
            self.state = State.CONFIRMING
        else:
            free = [o for o in offerings if ledger.first_at(o.day, o.time) is None]
            result = self.request_booking(free[0] if free else offerings[0])
            if not result.ok:
                return result
        return self.confirm()

    def cancel_subject(self, subject: str) -> CancellationResult:
        """
        Remove every booking of `subject` (and only those), then persist.

        The sole deletion path: a teacher's slots go away together, the same
        way they were added.
        """
        session = self.session
        remaining, removed = session.ledger.without_subject(subject)
        if not removed:
            logger.info("Nothing to cancel for %s", subject)
            return CancellationResult(subject=subject)

        persisted = session.commit(remaining, removed=removed)
        if self._pending is not None and self._pending.subject == subject:
            self.cancel()
        logger.info("Cancelled %d bookings for %s", len(removed), subject)
        return CancellationResult(subject=subject, removed=removed, persisted=persisted)
