"""
Central data model definitions used across the project.

This module defines the canonical structure of catalog and booking objects so that:
- all modules share the same field names
- identity and equality of slots survive catalog reloads
- the stored booking format stays stable between sessions
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
TIME_SLOTS = ("8-10", "10-12", "1-3", "3-5")

_WHITESPACE = re.compile(r"\s")


def normalize_time(text: str) -> str:
    """
    Canonicalize a time band for comparison.

    Strips all whitespace, then drops one leading '0'.
    "08-10", "8-10" and " 8-10 " all become "8-10".
    This is string canonicalization only, no interval arithmetic.
    """
    t = _WHITESPACE.sub("", text)
    if t.startswith("0"):
        t = t[1:]
    return t


def make_slot_id(teacher: str, day: str, time: str) -> str:
    """
    Build a stable slot identity from the immutable (teacher, day, time) tuple.
    """
    return f"{teacher}__{day}__{normalize_time(time)}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class TeacherProfile:
    """
    One teacher as listed in the catalog's teacher map.
    """

    name: str
    subject: str
    id: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class SlotOffering:
    """
    One weekly recurring (teacher, day, time-band) unit.

    `time` keeps the catalog's spelling for display; comparisons go through
    `time_key`. `source_id` is whatever id the provider sent and is not used
    for identity.
    """

    teacher: str
    day: str
    time: str
    slot_id: str = ""
    source_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.slot_id:
            object.__setattr__(self, "slot_id", make_slot_id(self.teacher, self.day, self.time))

    @property
    def time_key(self) -> str:
        return normalize_time(self.time)

    @property
    def cell(self) -> tuple[str, str]:
        return (self.day, self.time_key)

    @property
    def occupancy_key(self) -> tuple[str, str, str]:
        return (self.teacher, self.day, self.time_key)


@dataclass(frozen=True)
class Booking:
    """
    A committed enrollment: a slot offering copied with subject and timestamp.
    """

    subject: str
    teacher: str
    day: str
    time: str
    slot_id: str
    booked_at: str

    @classmethod
    def from_offering(cls, offering: SlotOffering, subject: str, booked_at: str | None = None) -> "Booking":
        return cls(
            subject=subject,
            teacher=offering.teacher,
            day=offering.day,
            time=offering.time,
            slot_id=offering.slot_id,
            booked_at=booked_at or utc_timestamp(),
        )

    @property
    def time_key(self) -> str:
        return normalize_time(self.time)

    @property
    def cell(self) -> tuple[str, str]:
        return (self.day, self.time_key)

    @property
    def occupancy_key(self) -> tuple[str, str, str]:
        return (self.teacher, self.day, self.time_key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "teacher": self.teacher,
            "day": self.day,
            "time": self.time,
            "slot_id": self.slot_id,
            "booked_at": self.booked_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Optional["Booking"]:
        """
        Build a Booking from stored JSON. Returns None if required fields are missing.

        Accepts the older camelCase `bookedAt` / `id` keys as well.
        """
        subject = str(data.get("subject") or "").strip()
        teacher = str(data.get("teacher") or "").strip()
        day = str(data.get("day") or "").strip()
        time = str(data.get("time") or "")
        if not (subject and teacher and day and time.strip()):
            return None

        # identities are always re-derived so old random ids cannot leak in
        slot_id = make_slot_id(teacher, day, time)
        booked_at = str(data.get("booked_at") or data.get("bookedAt") or "")
        return cls(subject=subject, teacher=teacher, day=day, time=time, slot_id=slot_id, booked_at=booked_at)
