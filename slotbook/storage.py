"""
Persistent storage for the student's bookings.

This module manages the file:

    data/bookings.json

The catalog is produced elsewhere and may be regenerated at any time;
bookings.json only holds the student's own committed bookings, so user state
survives catalog reloads.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from slotbook.model import Booking


logger = logging.getLogger(__name__)


def _default_bookings_path() -> Path:
    """
    Return the default path of bookings.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "bookings.json"


class JsonBookingStore:
    """
    Load/save the ledger as JSON: {"bookings": [ {...}, ... ]}.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_bookings_path()

    def __repr__(self) -> str:
        return f"JsonBookingStore({str(self.path)!r})"

    def load(self) -> list[Booking]:
        """
        Load stored bookings in their original order.

        Returns an empty list if the file does not exist or is invalid.
        Never crashes the application on a missing or corrupted file.
        """
        # First run: nothing booked yet
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable bookings file %s: %s", self.path, e)
            return []

        # older files were a bare list
        rows = data.get("bookings", []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            logger.warning("Ignoring bookings file %s: unexpected structure", self.path)
            return []

        out: list[Booking] = []
        for row in rows:
            booking = Booking.from_dict(row) if isinstance(row, dict) else None
            if booking is None:
                logger.warning("Skipping malformed booking record: %r", row)
                continue
            out.append(booking)
        return out

    def save(self, bookings: Iterable[Booking]) -> bool:
        """
        Write the full ledger. Returns False on failure.

        Creates parent directories if needed. Writes to a temporary file and
        renames it, so a failed write leaves the previous file intact.
        """
        payload = {"bookings": [b.to_dict() for b in bookings]}
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            logger.error("Could not save bookings to %s: %s", self.path, e)
            try:
                tmp.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.debug("Could not remove %s: %s", tmp, cleanup_error)
            return False
        return True
