# barbershop/templates.py
"""
Per-barber working hours.

A template holds a default list of ``HH:MM`` slots plus explicit per-date
overrides. An override of ``[]`` blocks the whole day; a date without an
override follows whatever the default is at the time it is read.
"""

import re
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .exceptions import ValidationException

_SLOT_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def normalize_slots(slots: Iterable[str]) -> List[str]:
    """Validate ``HH:MM`` values and return them unique and sorted."""
    cleaned = set()
    for slot in slots:
        if not isinstance(slot, str) or not _SLOT_RE.match(slot):
            raise ValidationException(
                f"Invalid time slot {slot!r}, expected zero-padded HH:MM",
                code="INVALID_SLOT",
                details={"slot": slot},
            )
        cleaned.add(slot)
    # zero-padded HH:MM sorts correctly as plain strings
    return sorted(cleaned)


def parse_day(day: str) -> Date:
    try:
        parsed = Date.fromisoformat(day)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None or parsed.isoformat() != day:
        raise ValidationException(
            f"Invalid date {day!r}, expected YYYY-MM-DD",
            code="INVALID_DATE",
            details={"date": day},
        )
    return parsed


@dataclass(frozen=True)
class Override:
    slots: Tuple[str, ...]

    @property
    def blocks_day(self) -> bool:
        return not self.slots


class NoOverride:
    """Marker for a date that falls back to the default slots."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_OVERRIDE"


NO_OVERRIDE = NoOverride()

DateOverride = Union[Override, NoOverride]


@dataclass
class WorkingHoursTemplate:
    staff_id: int
    default_slots: List[str] = field(default_factory=list)
    _overrides: Dict[str, Tuple[str, ...]] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def empty(cls, staff_id: int) -> "WorkingHoursTemplate":
        return cls(staff_id=staff_id)

    @classmethod
    def from_record(cls, staff_id: int, record: Optional[dict]) -> "WorkingHoursTemplate":
        """Build from the stored ``{"default": [...], "dates": {...}}`` shape."""
        record = record or {}
        template = cls(staff_id=staff_id, default_slots=normalize_slots(record.get("default") or []))
        for day, slots in (record.get("dates") or {}).items():
            if isinstance(slots, list):
                template.set_override(day, slots)
        return template

    def to_record(self) -> dict:
        return {
            "default": list(self.default_slots),
            "dates": {day: list(slots) for day, slots in sorted(self._overrides.items())},
        }

    def override_for(self, day: str) -> DateOverride:
        slots = self._overrides.get(day)
        if slots is None:
            return NO_OVERRIDE
        return Override(slots)

    def overridden_dates(self) -> List[str]:
        return sorted(self._overrides)

    def set_override(self, day: str, slots: Iterable[str]) -> None:
        parse_day(day)
        self._overrides[day] = tuple(normalize_slots(slots))

    def clear_override(self, day: str) -> bool:
        """Drop the override for ``day``. Returns False if there was none."""
        return self._overrides.pop(day, None) is not None

    def set_default(self, slots: Iterable[str]) -> None:
        self.default_slots = normalize_slots(slots)
