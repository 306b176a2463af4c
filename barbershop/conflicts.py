# barbershop/conflicts.py
"""
Find bookings that a working-hours edit would orphan.

The result is only ever used to let the operator choose between cancelling
those bookings and keeping them as exceptions; it is never stored.
"""

from typing import Iterable, List, Optional, Sequence

from .models import Appointment
from .schemas import ACTIVE_STATUSES
from .slots import effective_slots, month_days
from .templates import WorkingHoursTemplate

ConflictSet = List[Appointment]


def detect_conflicts(
    bookings: Iterable,
    day: str,
    proposed: Iterable[str],
    current: Optional[Iterable[str]] = None,
) -> ConflictSet:
    """
    Active bookings on ``day`` whose time is missing from ``proposed``.

    ``current`` is the slot list already in force for that day. When the
    edit leaves it unchanged nothing is reported, so saving the same hours
    twice never asks about bookings that were kept as exceptions.
    """
    proposed = set(proposed)
    if current is not None and set(current) == proposed:
        return []

    conflicts = []
    for b in bookings:
        if b.date != day or b.status not in ACTIVE_STATUSES:
            continue
        if b.time not in proposed:
            conflicts.append(b)
    return sorted(conflicts, key=lambda b: (b.date, b.time))


def detect_month_conflicts(
    template: WorkingHoursTemplate,
    bookings: Iterable,
    day: str,
    proposed: Sequence[str],
    fallback: Sequence[str],
) -> ConflictSet:
    """Per-day check over every date in the month that contains ``day``."""
    bookings = list(bookings)
    conflicts = []
    for d in month_days(day):
        current = effective_slots(template, d, fallback)
        conflicts.extend(detect_conflicts(bookings, d, proposed, current=current))
    return conflicts
