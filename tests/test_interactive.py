"""
Tests for the interactive menu's rendering.

Catalog names are plain text: brackets in subject or teacher names must be
shown as-is, never read as rich style tags.
"""

import io
import unittest
from unittest import mock

from rich.console import Console

import slotbook.interactive as interactive
from slotbook.catalog import catalog_from_dict
from slotbook.session import Session


CATALOG = {
    "teacherMap": {
        "Dr. Lee": {"subject": "Physics [lab]"},
        "Prof. Hale": {"subject": "Intro [/x]"},
        "Ann [b] Moss": {"subject": "Chem"},
    },
    "slots": [
        {"teacher": "Dr. Lee", "day": "Monday", "time": "8-10"},
        {"teacher": "Prof. Hale", "day": "Friday", "time": "3-5"},
        {"teacher": "Ann [b] Moss", "day": "Monday", "time": "08-10"},
        {"teacher": "Ann [b] Moss", "day": "Tuesday", "time": "1-3"},
    ],
}


class TestInteractiveRendering(unittest.TestCase):
    def setUp(self) -> None:
        self.out = io.StringIO()
        console = Console(file=self.out, width=200, color_system=None)
        self._patch = mock.patch.object(interactive, "console", console)
        self._patch.start()
        self.session = Session.open(catalog_from_dict(CATALOG))

    def tearDown(self) -> None:
        self._patch.stop()
        self.session.close()

    def test_my_bookings_shows_bracketed_subject(self) -> None:
        self.assertTrue(self.session.coordinator.enroll("Physics [lab]", "Dr. Lee").ok)
        interactive._flow_my_bookings(self.session)
        self.assertIn("Physics [lab]", self.out.getvalue())

    def test_select_subject_with_closing_tag_name(self) -> None:
        # entries sort as "Chem", "Intro [/x]", "Physics [lab]"
        with mock.patch.object(interactive, "_prompt", side_effect=["", "2"]):
            interactive._flow_select_subject(self.session)
        interactive._print_header(self.session)

        text = self.out.getvalue()
        self.assertIn("Intro [/x]", text)
        self.assertIn("Physics [lab]", text)
        self.assertIn("Ann [b] Moss", text)
        self.assertEqual(self.session.coordinator.active_subject, "Intro [/x]")

    def test_timetable_and_blocked_reasons(self) -> None:
        self.session.coordinator.enroll("Physics [lab]", "Dr. Lee")
        self.session.coordinator.select_for_booking("Chem", "Ann [b] Moss")

        interactive._render_grid(self.session.recompute())
        interactive._flow_book(self.session)

        text = self.out.getvalue()
        self.assertIn("Ann [b] Moss", text)
        self.assertIn("you already booked Physics [lab] (Dr. Lee) here", text)
        self.assertIn("overlaps with your schedule", text)
        self.assertIn("No bookable slots for this subject.", text)


if __name__ == "__main__":
    unittest.main()
