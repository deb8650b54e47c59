"""
Unit tests for catalog loading.

Catalog contract:
- rows missing teacher or time are skipped, day defaults to Monday
- repeated (teacher, day, normalized time) offerings are dropped
- unreadable sources raise CatalogError
"""

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from slotbook.catalog import catalog_from_dict, fetch_catalog, load_catalog, open_catalog
from slotbook.errors import CatalogError


RAW = {
    "teacherMap": {
        "TeacherA": {"subject": "MathX", "id": 7, "code": "M1"},
        "TeacherB": {"subject": "PhysY"},
        "NoSubject": {"subject": ""},
    },
    "slots": [
        {"teacher": "TeacherA", "day": "Monday", "time": "8-10", "id": "a"},
        {"teacher": "TeacherA", "day": "Monday ", "time": "08-10", "id": "b"},
        {"teacher": "TeacherA", "day": "Wednesday", "time": "10-12", "id": "c"},
        {"teacher": "TeacherB", "time": "8-10", "id": "d"},
        {"teacher": "TeacherB", "day": "Friday", "time": "", "id": "e"},
        {"teacher": "Ghost", "day": "Friday", "time": "3-5", "id": "f"},
        {"day": "Friday", "time": "3-5"},
    ],
}


class TestCatalogFromDict(unittest.TestCase):
    def test_cleaning_rules(self) -> None:
        cat = catalog_from_dict(RAW)

        self.assertEqual(set(cat.teachers), {"TeacherA", "TeacherB"})
        self.assertEqual(cat.teachers["TeacherA"].id, "7")
        self.assertEqual(cat.teachers["TeacherA"].code, "M1")

        # duplicate Monday 08-10 dropped
        self.assertEqual(len(cat.offerings_for("TeacherA")), 2)

        # missing day defaults to Monday, empty time skipped
        b_slots = cat.offerings_for("TeacherB")
        self.assertEqual(len(b_slots), 1)
        self.assertEqual(b_slots[0].day, "Monday")

    def test_unknown_teacher_slot_kept_and_logged(self) -> None:
        with self.assertLogs("slotbook.catalog", level="WARNING") as logs:
            cat = catalog_from_dict(RAW)
        self.assertEqual(len(cat.offerings_for("Ghost")), 1)
        self.assertIsNone(cat.subject_of("Ghost"))
        self.assertTrue(any("Ghost" in line for line in logs.output))

    def test_find_offering_uses_normalized_time(self) -> None:
        cat = catalog_from_dict(RAW)
        found = cat.find_offering("TeacherA", "Monday", " 08-10")
        self.assertIsNotNone(found)
        self.assertIsNone(cat.find_offering("TeacherA", "Tuesday", "8-10"))

    def test_teachers_for_subject(self) -> None:
        cat = catalog_from_dict(RAW)
        self.assertEqual(cat.teachers_for_subject("MathX"), ["TeacherA"])

    def test_invalid_structure_raises(self) -> None:
        with self.assertRaises(CatalogError):
            catalog_from_dict({"teacherMap": [], "slots": {}})


class TestCatalogSources(unittest.TestCase):
    def test_load_missing_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(CatalogError):
                load_catalog(Path(d) / "missing.json")

    def test_load_broken_json_raises(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "catalog.json"
            p.write_text("{not json", encoding="utf-8")
            with self.assertRaises(CatalogError):
                load_catalog(p)

    def test_load_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "catalog.json"
            p.write_text(json.dumps(RAW), encoding="utf-8")
            cat = open_catalog(str(p))
            self.assertIn("TeacherA", cat.teachers)

    def test_fetch_catalog(self) -> None:
        resp = mock.Mock()
        resp.json.return_value = RAW
        resp.raise_for_status.return_value = None
        with mock.patch("slotbook.catalog.requests.get", return_value=resp) as get:
            cat = open_catalog("https://example.org/catalog.json")
        get.assert_called_once_with("https://example.org/catalog.json", timeout=30)
        self.assertIn("TeacherB", cat.teachers)

    def test_fetch_http_error_raises(self) -> None:
        resp = mock.Mock()
        resp.raise_for_status.side_effect = requests.HTTPError("404")
        with mock.patch("slotbook.catalog.requests.get", return_value=resp):
            with self.assertRaises(CatalogError):
                fetch_catalog("https://example.org/missing.json")


if __name__ == "__main__":
    unittest.main()
