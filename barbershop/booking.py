# barbershop/booking.py

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError

from .config import FALLBACK_HOURS
from .exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidTransitionError,
    NotFoundException,
    SlotUnavailableError,
    ValidationException,
)
from .models import Appointment, Review
from .repository import BookingRepository, load_template
from .schemas import AppointmentStatus, UserRole
from .slots import drop_past_slots, resolve_bookable_slots
from .templates import normalize_slots, parse_day

logger = logging.getLogger(__name__)

PENDING = AppointmentStatus.pending.value
CONFIRMED = AppointmentStatus.confirmed.value
COMPLETED = AppointmentStatus.completed.value
CANCELLED = AppointmentStatus.cancelled.value

# normal lifecycle; admins may additionally move completed/cancelled back to confirmed
TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
}
REACTIVATION = {COMPLETED: {CONFIRMED}, CANCELLED: {CONFIRMED}}


def slot_taken(
    repo: BookingRepository, staff_id: int, day: str, time: str, exclude_id: Optional[int] = None
) -> bool:
    for b in repo.list_bookings(staff_id, on_date=day):
        if b.id == exclude_id:
            continue
        if b.time == time and b.status != CANCELLED:
            return True
    return False


def create_booking(
    repo: BookingRepository,
    staff_id: int,
    day: str,
    time: str,
    customer_name: str,
    customer_id: Optional[int] = None,
    service_id: Optional[int] = None,
    status: AppointmentStatus = AppointmentStatus.pending,
    *,
    now: datetime,
    check_bookable: bool = True,
    fallback: Sequence[str] = FALLBACK_HOURS,
    buffer_minutes: int = 20,
) -> Appointment:
    """
    Book ``time`` on ``day`` with a barber.

    Customer requests (``check_bookable``) must pick a slot the barber
    currently offers. In every case the slot is re-checked right before the
    insert, and a taken slot raises ``SlotUnavailableError`` so the caller can
    reload the slots and ask again.
    """
    status = AppointmentStatus(status)
    if status not in (AppointmentStatus.pending, AppointmentStatus.confirmed):
        raise ValidationException("New appointments must be pending or confirmed")

    d = parse_day(day)
    (time,) = normalize_slots([time])
    if d < now.date():
        raise ValidationException("Cannot book an appointment in the past", code="PAST_DATE")

    staff = repo.get_user(staff_id)
    if staff is None or staff.role != UserRole.barber.value:
        raise NotFoundException("Barber not found", details={"staff_id": staff_id})

    if check_bookable:
        template = load_template(repo, staff_id)
        bookings = repo.list_bookings(staff_id, on_date=day)
        bookable = resolve_bookable_slots(template, staff_id, day, bookings, fallback)
        bookable = drop_past_slots(bookable, day, now, buffer_minutes)
        if time not in bookable:
            logger.info("Barber %s slot %s %s not bookable", staff_id, day, time)
            raise SlotUnavailableError(staff_id, day, time)

    # final recheck inside the same request
    if slot_taken(repo, staff_id, day, time):
        logger.info("Barber %s slot %s %s lost to another booking", staff_id, day, time)
        raise SlotUnavailableError(staff_id, day, time)

    booking = Appointment(
        staff_id=staff_id,
        customer_id=customer_id,
        customer_name=customer_name,
        service_id=service_id,
        date=day,
        time=time,
        status=status.value,
    )
    try:
        booking = repo.insert_booking(booking)
    except IntegrityError:
        repo.rollback()
        logger.info("Barber %s slot %s %s lost to a concurrent insert", staff_id, day, time)
        raise SlotUnavailableError(staff_id, day, time)

    logger.info("Appointment %s created (%s) for barber %s at %s %s",
                booking.id, booking.status, staff_id, day, time)

    link = f"/appointments/{booking.id}"
    if status is AppointmentStatus.pending:
        repo.add_notification(
            staff_id,
            "New request",
            f"{customer_name} requested {day} at {time}",
            kind="appointment",
            link=link,
        )
    elif customer_id is not None and customer_id != staff_id:
        repo.add_notification(
            customer_id,
            "Appointment booked",
            f"Your barber booked you for {day} at {time}",
            kind="appointment",
            link=link,
        )
    return booking


def change_status(
    repo: BookingRepository,
    booking: Appointment,
    new_status: AppointmentStatus,
    actor_role: UserRole,
    reason: Optional[str] = None,
) -> Appointment:
    new_status = AppointmentStatus(new_status).value
    current = booking.status

    allowed = TRANSITIONS.get(current, set())
    if UserRole(actor_role) is UserRole.admin:
        allowed = allowed | REACTIVATION.get(current, set())
    if new_status not in allowed:
        raise InvalidTransitionError(current, new_status)

    if current == CANCELLED and slot_taken(repo, booking.staff_id, booking.date, booking.time,
                                           exclude_id=booking.id):
        raise SlotUnavailableError(booking.staff_id, booking.date, booking.time)

    try:
        booking = repo.update_booking_status(
            booking, new_status, reason if new_status == CANCELLED else None
        )
    except IntegrityError:
        repo.rollback()
        raise SlotUnavailableError(booking.staff_id, booking.date, booking.time)

    logger.info("Appointment %s: %s -> %s", booking.id, current, new_status)

    if new_status == COMPLETED and booking.customer_id is not None:
        customer = repo.get_user(booking.customer_id)
        if customer is not None:
            repo.add_loyalty_stamp(customer)

    link = f"/appointments/{booking.id}"
    if booking.customer_id is not None and booking.customer_id != booking.staff_id:
        if new_status == CANCELLED and reason:
            message = f"Reason: {reason}"
        else:
            message = "Check the details in the app."
        repo.add_notification(
            booking.customer_id, f"Appointment {new_status}", message, link=link
        )
    if new_status == CANCELLED:
        message = f"{booking.customer_name}'s appointment on {booking.date} at {booking.time} was cancelled."
        if reason:
            message += f" Reason: {reason}"
        repo.add_notification(
            booking.staff_id, "Appointment cancelled", message, kind="appointment", link=link
        )
    return booking


def add_review(
    repo: BookingRepository,
    booking: Appointment,
    customer_id: int,
    rating: int,
    comment: str = "",
) -> Review:
    """Rate a completed appointment. Each appointment takes one review."""
    if booking.customer_id != customer_id:
        raise ForbiddenException("Only the customer who booked can review this appointment")
    if booking.status != COMPLETED:
        raise ValidationException(
            "Only completed appointments can be reviewed", code="NOT_COMPLETED"
        )
    if not 1 <= rating <= 5:
        raise ValidationException("Rating must be between 1 and 5", code="INVALID_RATING")
    if repo.get_review_for_booking(booking.id) is not None:
        raise ConflictException("Appointment already reviewed", code="ALREADY_REVIEWED")

    review = Review(
        appointment_id=booking.id,
        staff_id=booking.staff_id,
        customer_id=customer_id,
        customer_name=booking.customer_name,
        rating=rating,
        comment=comment,
    )
    try:
        review = repo.insert_review(review)
    except IntegrityError:
        repo.rollback()
        raise ConflictException("Appointment already reviewed", code="ALREADY_REVIEWED")

    logger.info("Appointment %s reviewed (%d stars)", booking.id, rating)
    repo.add_notification(
        booking.staff_id,
        "New review",
        f"{booking.customer_name} rated the appointment on {booking.date} {rating}/5",
        kind="review",
        link=f"/barbers/{booking.staff_id}/reviews",
    )
    return review
