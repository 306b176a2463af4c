# barbershop/slots.py

import calendar
from datetime import datetime, timedelta
from typing import Iterable, List, Sequence
from zoneinfo import ZoneInfo

from .schemas import ACTIVE_STATUSES
from .templates import Override, WorkingHoursTemplate, parse_day


def effective_slots(template: WorkingHoursTemplate, day: str, fallback: Sequence[str]) -> List[str]:
    """
    Slots offered on ``day`` before bookings are taken into account.

    A date override always wins, including an empty one (day blocked).
    Without one the barber's default applies, or ``fallback`` when the
    barber never configured a default.
    """
    override = template.override_for(day)
    if isinstance(override, Override):
        return list(override.slots)
    if template.default_slots:
        return list(template.default_slots)
    return list(fallback)


def resolve_bookable_slots(
    template: WorkingHoursTemplate,
    staff_id: int,
    day: str,
    bookings: Iterable,
    fallback: Sequence[str],
) -> List[str]:
    offered = effective_slots(template, day, fallback)
    if not offered:
        return []

    taken = set()
    for b in bookings:
        if b.staff_id != staff_id or b.date != day:
            continue
        # cancelled frees the slot, completed is history
        if b.status not in ACTIVE_STATUSES:
            continue
        taken.add(b.time)

    return sorted(slot for slot in offered if slot not in taken)


def drop_past_slots(slots: Iterable[str], day: str, now: datetime, buffer_minutes: int) -> List[str]:
    """Hide slots that already started (plus a buffer) when ``day`` is today."""
    if parse_day(day) != now.date():
        return list(slots)
    cutoff = (now + timedelta(minutes=buffer_minutes)).strftime("%H:%M")
    if cutoff < now.strftime("%H:%M"):
        # buffer runs past midnight, nothing left today
        return []
    return [slot for slot in slots if slot > cutoff]


def month_days(day: str) -> List[str]:
    """Every calendar date of the month that contains ``day``."""
    d = parse_day(day)
    last = calendar.monthrange(d.year, d.month)[1]
    return [d.replace(day=n).isoformat() for n in range(1, last + 1)]


def shop_now(timezone: str) -> datetime:
    """Naive wall-clock time at the shop."""
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)
