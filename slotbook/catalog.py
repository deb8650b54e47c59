"""
Catalog of teachers and their weekly slot offerings.

The catalog is produced by an external converter as JSON:

    {
      "teacherMap": {"<teacher>": {"subject": "...", "id": ..., "code": ...}},
      "slots": [{"teacher": "...", "day": "...", "time": "...", "id": "..."}]
    }

It is immutable for the whole session. Slot ids from the provider are not
stable across conversions, so every offering gets an identity derived from
(teacher, day, normalized time) instead.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

import requests

from slotbook.errors import CatalogError
from slotbook.model import DAYS, SlotOffering, TeacherProfile


logger = logging.getLogger(__name__)

DEFAULT_DAY = DAYS[0]


def _default_catalog_path() -> Path:
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "catalog.json"


def _opt_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


class Catalog:
    """
    Immutable teacher map plus slot offerings, indexed by teacher.
    """

    def __init__(self, teachers: Mapping[str, TeacherProfile], slots: Iterable[SlotOffering]) -> None:
        self.teachers: Mapping[str, TeacherProfile] = MappingProxyType(dict(teachers))
        self.slots: tuple[SlotOffering, ...] = tuple(slots)

        by_teacher: dict[str, list[SlotOffering]] = defaultdict(list)
        for s in self.slots:
            by_teacher[s.teacher].append(s)
        self._by_teacher = {t: tuple(v) for t, v in by_teacher.items()}

    def __repr__(self) -> str:
        return f"Catalog(teachers={len(self.teachers)}, slots={len(self.slots)})"

    def subject_of(self, teacher: str) -> Optional[str]:
        profile = self.teachers.get(teacher)
        return profile.subject if profile else None

    def offerings_for(self, teacher: str) -> tuple[SlotOffering, ...]:
        return self._by_teacher.get(teacher, ())

    def teachers_for_subject(self, subject: str) -> list[str]:
        return [name for name, p in self.teachers.items() if p.subject == subject]

    def find_offering(self, teacher: str, day: str, time: str) -> Optional[SlotOffering]:
        wanted = SlotOffering(teacher=teacher, day=day.strip(), time=time)
        for s in self.offerings_for(teacher):
            if s.slot_id == wanted.slot_id:
                return s
        return None


def catalog_from_dict(data: Mapping[str, Any]) -> Catalog:
    """
    Build a Catalog from the converter's JSON structure.

    Rows are cleaned like the converter would:
    - teacher map entries without subject are skipped
    - slot rows missing teacher or time are skipped
    - day is stripped and defaults to Monday
    - a repeated (teacher, day, normalized time) is dropped
    """
    if not isinstance(data, Mapping):
        raise CatalogError("Catalog must be a JSON object")

    raw_map = data.get("teacherMap", {})
    raw_slots = data.get("slots", [])
    if not isinstance(raw_map, Mapping) or not isinstance(raw_slots, list):
        raise CatalogError("Catalog needs a 'teacherMap' object and a 'slots' list")

    teachers: dict[str, TeacherProfile] = {}
    for name, info in raw_map.items():
        teacher = str(name).strip()
        if not teacher or not isinstance(info, Mapping):
            continue
        subject = _opt_str(info.get("subject"))
        if not subject:
            logger.warning("Teacher %r has no subject, skipped", teacher)
            continue
        teachers[teacher] = TeacherProfile(
            name=teacher,
            subject=subject,
            id=_opt_str(info.get("id")),
            code=_opt_str(info.get("code")),
        )

    slots: list[SlotOffering] = []
    seen: set[str] = set()
    for row in raw_slots:
        if not isinstance(row, Mapping):
            continue
        teacher = _opt_str(row.get("teacher"))
        time = row.get("time")
        if not teacher or time is None or not str(time).strip():
            continue
        day = _opt_str(row.get("day")) or DEFAULT_DAY

        offering = SlotOffering(teacher=teacher, day=day, time=str(time), source_id=_opt_str(row.get("id")))
        if offering.slot_id in seen:
            logger.warning("Duplicate offering %s dropped", offering.slot_id)
            continue
        seen.add(offering.slot_id)

        if teacher not in teachers:
            logger.warning("Slot %s references teacher %r missing from teacherMap", offering.slot_id, teacher)
        slots.append(offering)

    logger.debug("Catalog loaded: %d teachers, %d slots", len(teachers), len(slots))
    return Catalog(teachers=teachers, slots=tuple(slots))


def load_catalog(path: str | Path | None = None) -> Catalog:
    """
    Load the catalog JSON from disk.

    Raises CatalogError if the file is missing or not valid JSON.
    """
    catalog_path = Path(path) if path is not None else _default_catalog_path()
    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CatalogError(f"Catalog not found: {catalog_path}") from e
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CatalogError(f"Cannot read catalog {catalog_path}: {e}") from e
    return catalog_from_dict(data)


def fetch_catalog(url: str, timeout: float = 30) -> Catalog:
    """
    Download the catalog JSON over HTTP.
    """
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        raise CatalogError(f"Cannot fetch catalog from {url}: {e}") from e
    except ValueError as e:
        raise CatalogError(f"Catalog at {url} is not valid JSON") from e
    return catalog_from_dict(data)


def open_catalog(source: str | Path | None = None) -> Catalog:
    """
    Load from a URL when `source` looks like one, otherwise from a file.
    """
    if isinstance(source, str) and source.startswith(("http://", "https://")):
        return fetch_catalog(source)
    return load_catalog(source)
