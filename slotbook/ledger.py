"""
The student's booking ledger and the session's global occupancy set.

BookingLedger is a value: every change produces a new ledger, so a caller can
compute the full next state, persist it, and only then publish it.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from slotbook.model import Booking, normalize_time


class BookingLedger:
    """
    Insertion-ordered, immutable sequence of committed bookings.
    """

    __slots__ = ("_bookings",)

    def __init__(self, bookings: Iterable[Booking] = ()) -> None:
        self._bookings: tuple[Booking, ...] = tuple(bookings)

    def __iter__(self) -> Iterator[Booking]:
        return iter(self._bookings)

    def __len__(self) -> int:
        return len(self._bookings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BookingLedger):
            return NotImplemented
        return self._bookings == other._bookings

    def __hash__(self) -> int:
        return hash(self._bookings)

    def __repr__(self) -> str:
        return f"BookingLedger({len(self._bookings)} bookings)"

    @property
    def bookings(self) -> tuple[Booking, ...]:
        return self._bookings

    def subjects(self) -> list[str]:
        out: list[str] = []
        for b in self._bookings:
            if b.subject not in out:
                out.append(b.subject)
        return out

    def has_subject(self, subject: Optional[str]) -> bool:
        if not subject:
            return False
        return any(b.subject == subject for b in self._bookings)

    def for_subject(self, subject: str) -> list[Booking]:
        return [b for b in self._bookings if b.subject == subject]

    def at(self, day: str, time: str) -> list[Booking]:
        """
        All bookings occupying (day, time), compared on the normalized time.
        """
        key = normalize_time(time)
        return [b for b in self._bookings if b.day == day and b.time_key == key]

    def first_at(self, day: str, time: str) -> Optional[Booking]:
        found = self.at(day, time)
        return found[0] if found else None

    def contains_offering(self, slot_id: str, teacher: str, day: str, time: str) -> bool:
        """
        True if a booking matches by slot identity or by (teacher, day, normalized time).
        """
        key = normalize_time(time)
        for b in self._bookings:
            if b.slot_id == slot_id:
                return True
            if b.teacher == teacher and b.day == day and b.time_key == key:
                return True
        return False

    def extended(self, new_bookings: Iterable[Booking]) -> "BookingLedger":
        return BookingLedger(self._bookings + tuple(new_bookings))

    def without_subject(self, subject: str) -> tuple["BookingLedger", tuple[Booking, ...]]:
        """
        Split off every booking of `subject`. Returns (remaining ledger, removed bookings).
        """
        kept: list[Booking] = []
        removed: list[Booking] = []
        for b in self._bookings:
            (removed if b.subject == subject else kept).append(b)
        return BookingLedger(kept), tuple(removed)


class GlobalOccupancy:
    """
    Session-scoped set of (teacher, day, normalized time) keys.

    Simulates other students' demand within one session. It is rebuilt from
    the ledger on load and never persisted.
    """

    def __init__(self) -> None:
        self._keys: set[tuple[str, str, str]] = set()

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[tuple[str, str, str]]:
        return iter(self._keys)

    def rebuild(self, ledger: BookingLedger) -> None:
        self._keys = {b.occupancy_key for b in ledger}

    def add(self, bookings: Iterable[Booking]) -> None:
        for b in bookings:
            self._keys.add(b.occupancy_key)

    def discard(self, bookings: Iterable[Booking]) -> None:
        for b in bookings:
            self._keys.discard(b.occupancy_key)

    def is_taken(self, teacher: str, day: str, time: str) -> bool:
        return (teacher, day, normalize_time(time)) in self._keys

    def clear(self) -> None:
        self._keys.clear()
