"""
Session context: the one place that owns mutable booking state.

A Session is built at startup from a catalog and a store, and passed to
whatever presents it (CLI, interactive menu, tests). Nothing else keeps
module-level state.

Lifecycle:

    session = Session.open(catalog, store)   # load ledger, rebuild occupancy
    session.coordinator.enroll(...)          # mutations go through commit()
    session.close()                          # drop session-scoped state
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from slotbook.catalog import Catalog
from slotbook.enrollment import EnrollmentCoordinator
from slotbook.ledger import BookingLedger, GlobalOccupancy
from slotbook.model import Booking
from slotbook.queries import Grid, build_grid
from slotbook.storage import JsonBookingStore


logger = logging.getLogger(__name__)

Listener = Callable[[Grid], None]


class Session:
    def __init__(self, catalog: Catalog, store: Optional[JsonBookingStore] = None) -> None:
        self.catalog = catalog
        self.store = store
        self.ledger = BookingLedger()
        self.occupancy = GlobalOccupancy()
        self.coordinator = EnrollmentCoordinator(self)
        self._listeners: list[Listener] = []

    @classmethod
    def open(cls, catalog: Catalog, store: Optional[JsonBookingStore] = None) -> "Session":
        session = cls(catalog, store)
        session.load()
        return session

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def load(self) -> None:
        """
        Load the stored ledger and rebuild occupancy from it.
        """
        bookings = self.store.load() if self.store is not None else []
        self.ledger = BookingLedger(bookings)
        self.occupancy.rebuild(self.ledger)
        self.reconcile()
        logger.debug("Session loaded with %d bookings", len(self.ledger))

    def reconcile(self) -> list[Booking]:
        """
        Report bookings that no longer match a catalog offering.

        Stale bookings are kept: the ledger is the student's record and still
        takes part in conflict checks. Cancelling the subject removes them.
        """
        stale: list[Booking] = []
        for b in self.ledger:
            if b.teacher not in self.catalog.teachers:
                logger.warning("Booked teacher %r is no longer in the catalog (%s)", b.teacher, b.subject)
                stale.append(b)
            elif self.catalog.find_offering(b.teacher, b.day, b.time) is None:
                logger.warning("Booked slot %s is no longer offered (%s)", b.slot_id, b.subject)
                stale.append(b)
        return stale

    def close(self) -> None:
        self.coordinator.reset()
        self.occupancy.clear()
        self.ledger = BookingLedger()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def commit(
        self,
        new_ledger: BookingLedger,
        added: Iterable[Booking] = (),
        removed: Iterable[Booking] = (),
    ) -> bool:
        """
        Persist `new_ledger`, then publish it. Returns False if saving failed.

        A failed save does not roll back: the in-memory ledger stays
        authoritative for the rest of the session.
        """
        persisted = self.store.save(new_ledger) if self.store is not None else True
        if not persisted:
            logger.error("Bookings not saved; changes are kept for this session only")

        self.ledger = new_ledger
        self.occupancy.discard(removed)
        self.occupancy.add(added)
        self.recompute()
        return persisted

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call `listener` with a fresh grid after every recompute().
        Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def grid(self) -> Grid:
        return build_grid(self.catalog, self.ledger, self.occupancy, self.coordinator.active_subject)

    def recompute(self) -> Grid:
        """
        Rebuild the grid projection and hand it to all listeners.

        Hosts call this when their environment changes (e.g. terminal resize);
        state changes call it automatically.
        """
        grid = self.grid()
        for listener in list(self._listeners):
            listener(grid)
        return grid
