"""
Tests for the read-only query surface used by presentation layers.
"""

import unittest

from slotbook.catalog import catalog_from_dict
from slotbook.ledger import BookingLedger, GlobalOccupancy
from slotbook.model import Booking, SlotOffering
from slotbook.queries import CellState, build_grid, cell_conflict_state, list_subjects, options_for_cell


CATALOG = catalog_from_dict(
    {
        "teacherMap": {
            "Zed Ortiz": {"subject": "algebra"},
            "Amy Stone": {"subject": "Physics"},
            "Bob Marsh": {"subject": "Physics"},
            "Éva Kovács": {"subject": "Ética"},
            "Carl Diaz": {"subject": "Chemistry"},
        },
        "slots": [
            {"teacher": "Zed Ortiz", "day": "Monday", "time": "8-10"},
            {"teacher": "Amy Stone", "day": "Monday", "time": "08-10"},
            {"teacher": "Amy Stone", "day": "Thursday", "time": "1-3"},
            {"teacher": "Bob Marsh", "day": "Tuesday", "time": "1-3"},
            {"teacher": "Carl Diaz", "day": "Thursday", "time": "1-3"},
        ],
    }
)


def _book(subject: str, teacher: str, day: str, time: str) -> Booking:
    return Booking.from_offering(SlotOffering(teacher=teacher, day=day, time=time), subject, booked_at="t")


class TestListSubjects(unittest.TestCase):
    def test_sorted_case_and_accent_insensitively(self) -> None:
        entries = list_subjects(CATALOG, BookingLedger())
        self.assertEqual(
            [e.subject for e in entries],
            ["algebra", "Chemistry", "Ética", "Physics", "Physics"],
        )

    def test_search_matches_subject_or_teacher(self) -> None:
        by_subject = list_subjects(CATALOG, BookingLedger(), "PHYS")
        self.assertEqual({e.teacher for e in by_subject}, {"Amy Stone", "Bob Marsh"})

        by_teacher = list_subjects(CATALOG, BookingLedger(), " marsh ")
        self.assertEqual([e.teacher for e in by_teacher], ["Bob Marsh"])

        self.assertEqual(list_subjects(CATALOG, BookingLedger(), "nothing-here"), [])

    def test_booked_flag(self) -> None:
        ledger = BookingLedger([_book("Physics", "Amy Stone", "Monday", "8-10")])
        flags = {e.teacher: e.booked for e in list_subjects(CATALOG, ledger)}
        self.assertTrue(flags["Amy Stone"])
        self.assertTrue(flags["Bob Marsh"])
        self.assertFalse(flags["Zed Ortiz"])


class TestOptionsForCell(unittest.TestCase):
    def test_matches_day_time_and_subject(self) -> None:
        opts = options_for_cell(CATALOG, "Monday", "8-10", "Physics")
        self.assertEqual([o.teacher for o in opts], ["Amy Stone"])

    def test_empty_without_active_subject(self) -> None:
        self.assertEqual(options_for_cell(CATALOG, "Monday", "8-10", None), [])


class TestCellConflictState(unittest.TestCase):
    def test_clear(self) -> None:
        slot = CATALOG.offerings_for("Bob Marsh")[0]
        state = cell_conflict_state(BookingLedger(), GlobalOccupancy(), CATALOG, slot)
        self.assertEqual(state.state, CellState.CLEAR)
        self.assertTrue(state.selectable)

    def test_direct_conflict_wins(self) -> None:
        ledger = BookingLedger([_book("algebra", "Zed Ortiz", "Monday", "8-10")])
        occ = GlobalOccupancy()
        occ.rebuild(ledger)
        slot = CATALOG.find_offering("Amy Stone", "Monday", "8-10")
        assert slot is not None
        state = cell_conflict_state(ledger, occ, CATALOG, slot)
        self.assertEqual(state.state, CellState.DIRECT_CONFLICT)
        self.assertIn("algebra", state.reason)
        self.assertIn("(Zed Ortiz)", state.reason)

    def test_teacher_blocked_on_other_slot(self) -> None:
        ledger = BookingLedger([_book("algebra", "Zed Ortiz", "Monday", "8-10")])
        slot = CATALOG.find_offering("Amy Stone", "Thursday", "1-3")
        assert slot is not None
        state = cell_conflict_state(ledger, GlobalOccupancy(), CATALOG, slot)
        self.assertEqual(state.state, CellState.TEACHER_BLOCKED)
        self.assertFalse(state.selectable)

    def test_globally_booked(self) -> None:
        occ = GlobalOccupancy()
        occ.add([_book("Physics", "Bob Marsh", "Tuesday", "1-3")])
        slot = CATALOG.offerings_for("Bob Marsh")[0]
        state = cell_conflict_state(BookingLedger(), occ, CATALOG, slot)
        self.assertEqual(state.state, CellState.GLOBALLY_BOOKED)


class TestBuildGrid(unittest.TestCase):
    def test_empty_grid(self) -> None:
        grid = build_grid(CATALOG, BookingLedger(), GlobalOccupancy(), None)
        self.assertTrue(grid.is_empty)
        self.assertEqual(len(grid.cells), 6 * 4)

    def test_options_and_bookings(self) -> None:
        ledger = BookingLedger([_book("Chemistry", "Carl Diaz", "Thursday", "1-3")])
        grid = build_grid(CATALOG, ledger, GlobalOccupancy(), "Physics")
        self.assertFalse(grid.is_empty)

        thursday = grid.cell("Thursday", "01-3")
        self.assertEqual([b.subject for b in thursday.bookings], ["Chemistry"])
        self.assertEqual([(o.teacher, s.state) for o, s in thursday.options], [("Amy Stone", CellState.DIRECT_CONFLICT)])

        monday = grid.cell("Monday", "8-10")
        self.assertEqual([(o.teacher, s.state) for o, s in monday.options], [("Amy Stone", CellState.TEACHER_BLOCKED)])

        tuesday = grid.cell("Tuesday", "1-3")
        self.assertEqual([(o.teacher, s.state) for o, s in tuesday.options], [("Bob Marsh", CellState.CLEAR)])

    def test_options_hidden_once_subject_booked(self) -> None:
        ledger = BookingLedger([_book("Physics", "Bob Marsh", "Tuesday", "1-3")])
        grid = build_grid(CATALOG, ledger, GlobalOccupancy(), "Physics")
        self.assertTrue(grid.subject_booked)
        self.assertTrue(all(not c.options for c in grid.cells.values()))


if __name__ == "__main__":
    unittest.main()
