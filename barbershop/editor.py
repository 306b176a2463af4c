# barbershop/editor.py

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .booking import change_status
from .config import FALLBACK_HOURS
from .conflicts import ConflictSet, detect_conflicts, detect_month_conflicts
from .exceptions import ValidationException
from .repository import BookingRepository, load_template
from .schemas import ACTIVE_STATUSES, ApplyScope, AppointmentStatus, Resolution, UserRole
from .slots import effective_slots, month_days
from .templates import normalize_slots, parse_day

logger = logging.getLogger(__name__)

SCHEDULE_CHANGE_REASON = "The barber's working hours changed for this date"


@dataclass
class ApplyResult:
    applied: bool
    scope: ApplyScope
    dates: List[str] = field(default_factory=list)
    conflicts: ConflictSet = field(default_factory=list)
    cancelled: ConflictSet = field(default_factory=list)


def apply_template(
    repo: BookingRepository,
    scope: ApplyScope,
    staff_id: int,
    day: Optional[str],
    slots: Iterable[str],
    resolution: Optional[Resolution] = None,
    *,
    fallback: Sequence[str] = FALLBACK_HOURS,
    reason: Optional[str] = None,
) -> ApplyResult:
    """
    Write ``slots`` to one date, a whole month, or the default list.

    Single-date and whole-month edits are checked against active bookings
    first. If some would lose their slot and no ``resolution`` was given,
    nothing is written and the conflicts are returned for the operator.
    Setting a new default is never checked: dates without an override pick
    it up lazily and existing overrides are left alone.

    Whole-month edits replace every override in that month, including ones
    unrelated to this edit.
    """
    scope = ApplyScope(scope)
    slots = normalize_slots(slots)
    template = load_template(repo, staff_id)

    if scope is ApplyScope.new_default:
        template.set_default(slots)
        repo.save_template(template)
        logger.info("Barber %s default hours set to %s", staff_id, slots)
        return ApplyResult(applied=True, scope=scope)

    if day is None:
        raise ValidationException("A date is required for this scope", code="DATE_REQUIRED")
    parse_day(day)

    if scope is ApplyScope.single_date:
        dates = [day]
        bookings = repo.list_bookings(staff_id, on_date=day, statuses=ACTIVE_STATUSES)
        conflicts = detect_conflicts(
            bookings, day, slots, current=effective_slots(template, day, fallback)
        )
    else:
        dates = month_days(day)
        bookings = repo.list_bookings(staff_id, in_month=day[:7], statuses=ACTIVE_STATUSES)
        conflicts = detect_month_conflicts(template, bookings, day, slots, fallback)

    if conflicts and resolution is None:
        logger.info(
            "Hours edit for barber %s (%s, %s) blocked by %d conflicting bookings",
            staff_id, scope.value, day, len(conflicts),
        )
        return ApplyResult(applied=False, scope=scope, dates=dates, conflicts=conflicts)

    cancelled = []
    if conflicts and Resolution(resolution) is Resolution.cancel_conflicting:
        for booking in conflicts:
            cancelled.append(
                change_status(
                    repo,
                    booking,
                    AppointmentStatus.cancelled,
                    actor_role=UserRole.barber,
                    reason=reason or SCHEDULE_CHANGE_REASON,
                )
            )

    for d in dates:
        template.set_override(d, slots)
    repo.save_template(template)

    logger.info(
        "Barber %s hours applied (%s, %s): %d dates, %d conflicts, %d cancelled",
        staff_id, scope.value, day, len(dates), len(conflicts), len(cancelled),
    )
    return ApplyResult(
        applied=True, scope=scope, dates=dates, conflicts=conflicts, cancelled=cancelled
    )


def restore_default(repo: BookingRepository, staff_id: int, day: str) -> bool:
    """
    Remove the override for ``day`` so it follows the default again.

    The key is deleted rather than filled with the current default, so later
    default changes apply to this date too.
    """
    parse_day(day)
    template = load_template(repo, staff_id)
    removed = template.clear_override(day)
    if removed:
        repo.save_template(template)
        logger.info("Barber %s hours for %s restored to default", staff_id, day)
    return removed
