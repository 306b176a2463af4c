from datetime import datetime, timezone

import pytest

from barbershop import booking as booking_service
from barbershop.booking import add_review, change_status, create_booking
from barbershop.editor import apply_template
from barbershop.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidTransitionError,
    NotFoundException,
    SlotUnavailableError,
    ValidationException,
)
from barbershop.schemas import ApplyScope
from barbershop.models import Notification
from sqlmodel import select

NOW = datetime(2026, 3, 1, 9, 0)
DAY = "2026-03-10"


def book(repo, barber, customer, time="14:00", **kwargs):
    kwargs.setdefault("now", NOW)
    return create_booking(
        repo, barber.id, DAY, time, customer.name, customer_id=customer.id, **kwargs
    )


def active_rows(repo, staff_id, time):
    return [b for b in repo.list_bookings(staff_id, on_date=DAY)
            if b.time == time and b.status != "cancelled"]


def test_customer_booking_starts_pending(repo, barber, customer):
    appt = book(repo, barber, customer)
    assert appt.id is not None
    assert appt.status == "pending"
    assert (appt.date, appt.time) == (DAY, "14:00")


def test_second_insert_for_same_slot_is_rejected(repo, barber, customer, make_user):
    rival = make_user("Grace")
    book(repo, barber, customer)

    with pytest.raises(SlotUnavailableError) as excinfo:
        book(repo, barber, rival)

    assert excinfo.value.details == {"staff_id": barber.id, "date": DAY, "time": "14:00"}
    assert len(active_rows(repo, barber.id, "14:00")) == 1


def test_recheck_rejects_walk_in_on_taken_slot(repo, barber, customer, make_user):
    book(repo, barber, customer)
    with pytest.raises(SlotUnavailableError):
        create_booking(repo, barber.id, DAY, "14:00", "Guest", status="confirmed",
                       now=NOW, check_bookable=False)


def test_race_lost_at_insert_is_reported_as_unavailable(repo, barber, customer, make_user, monkeypatch):
    rival = make_user("Grace")
    book(repo, barber, customer)
    # both requests passed the recheck; the database decides
    monkeypatch.setattr(booking_service, "slot_taken", lambda *a, **kw: False)

    with pytest.raises(SlotUnavailableError):
        book(repo, barber, rival, check_bookable=False)

    assert len(active_rows(repo, barber.id, "14:00")) == 1


def test_cancelled_booking_frees_the_slot(repo, barber, customer, make_user):
    first = book(repo, barber, customer)
    change_status(repo, first, "cancelled", actor_role="customer")

    second = book(repo, barber, make_user("Grace"))
    assert second.status == "pending"


def test_slot_not_offered_is_rejected(repo, barber, customer):
    apply_template(repo, ApplyScope.single_date, barber.id, DAY, [])
    with pytest.raises(SlotUnavailableError):
        book(repo, barber, customer)


def test_same_day_slot_inside_buffer_is_rejected(repo, barber, customer):
    now = datetime(2026, 3, 10, 13, 50)
    with pytest.raises(SlotUnavailableError):
        book(repo, barber, customer, now=now, buffer_minutes=20)
    assert book(repo, barber, customer, time="15:00", now=now).status == "pending"


def test_past_date_is_rejected(repo, barber, customer):
    with pytest.raises(ValidationException):
        book(repo, barber, customer, now=datetime(2026, 3, 11, 8, 0))


def test_unknown_barber(repo, customer):
    with pytest.raises(NotFoundException):
        create_booking(repo, 999, DAY, "14:00", "Ada", now=NOW)


def test_walk_in_is_confirmed_and_may_be_off_grid(repo, barber, customer):
    appt = create_booking(repo, barber.id, DAY, "14:30", customer.name, customer_id=customer.id,
                          status="confirmed", now=NOW, check_bookable=False)
    assert appt.status == "confirmed"


def test_normal_lifecycle_awards_loyalty_stamp(repo, session, barber, customer):
    appt = book(repo, barber, customer)
    change_status(repo, appt, "confirmed", actor_role="barber")
    change_status(repo, appt, "completed", actor_role="barber")

    session.refresh(customer)
    assert appt.status == "completed"
    assert customer.loyalty_stamps == 1


@pytest.mark.parametrize("start,target", [
    ("pending", "completed"),
    ("pending", "pending"),
    ("cancelled", "confirmed"),
    ("completed", "cancelled"),
])
def test_invalid_transitions(repo, barber, customer, start, target):
    appt = book(repo, barber, customer)
    if start != "pending":
        appt = repo.update_booking_status(appt, start)

    with pytest.raises(InvalidTransitionError):
        change_status(repo, appt, target, actor_role="barber")


def test_admin_reactivates_cancelled_booking(repo, barber, customer):
    appt = book(repo, barber, customer)
    change_status(repo, appt, "cancelled", actor_role="barber", reason="sick")

    appt = change_status(repo, appt, "confirmed", actor_role="admin")
    assert appt.status == "confirmed"


def test_reactivation_blocked_when_slot_retaken(repo, barber, customer, make_user):
    appt = book(repo, barber, customer)
    change_status(repo, appt, "cancelled", actor_role="customer")
    book(repo, barber, make_user("Grace"))

    with pytest.raises(SlotUnavailableError):
        change_status(repo, appt, "confirmed", actor_role="admin")


def test_notifications(repo, session, barber, customer):
    appt = book(repo, barber, customer)
    change_status(repo, appt, "cancelled", actor_role="customer", reason="Running late")

    to_barber = session.exec(select(Notification).where(Notification.user_id == barber.id).order_by(Notification.id)).all()
    to_customer = session.exec(select(Notification).where(Notification.user_id == customer.id).order_by(Notification.id)).all()

    assert [n.title for n in to_barber] == ["New request", "Appointment cancelled"]
    assert "Running late" in to_barber[1].message
    assert [n.message for n in to_customer] == ["Reason: Running late"]


def test_created_at_round_trips_as_utc(repo, session, barber, customer):
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    appt = book(repo, barber, customer)
    session.expire_all()

    stored = repo.get_booking(appt.id).created_at
    if stored.tzinfo is not None:
        stored = stored.astimezone(timezone.utc).replace(tzinfo=None)
    assert abs((stored - before).total_seconds()) < 60


def completed(repo, barber, customer, time="14:00"):
    appt = book(repo, barber, customer, time=time)
    change_status(repo, appt, "confirmed", actor_role="barber")
    return change_status(repo, appt, "completed", actor_role="barber")


def test_review_completed_appointment(repo, session, barber, customer):
    appt = completed(repo, barber, customer)

    review = add_review(repo, appt, customer.id, 5, "Sharp fade")

    assert review.id is not None
    assert (review.staff_id, review.customer_name, review.rating) == (barber.id, customer.name, 5)
    assert [r.id for r in repo.list_reviews(barber.id)] == [review.id]
    note = session.exec(
        select(Notification).where(Notification.user_id == barber.id).order_by(Notification.id.desc())
    ).first()
    assert note.title == "New review"


def test_only_completed_appointments_can_be_reviewed(repo, barber, customer):
    appt = book(repo, barber, customer)
    with pytest.raises(ValidationException) as excinfo:
        add_review(repo, appt, customer.id, 4)
    assert excinfo.value.code == "NOT_COMPLETED"


def test_one_review_per_appointment(repo, barber, customer):
    appt = completed(repo, barber, customer)
    add_review(repo, appt, customer.id, 4)

    with pytest.raises(ConflictException):
        add_review(repo, appt, customer.id, 1)
    assert len(repo.list_reviews(barber.id)) == 1


def test_review_by_someone_else_is_forbidden(repo, barber, customer, make_user):
    appt = completed(repo, barber, customer)
    with pytest.raises(ForbiddenException):
        add_review(repo, appt, make_user("Grace").id, 5)


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range(repo, barber, customer, rating):
    appt = completed(repo, barber, customer)
    with pytest.raises(ValidationException):
        add_review(repo, appt, customer.id, rating)


def test_pending_counts_per_barber(repo, barber, customer, make_user):
    other = make_user("John", role="barber")
    book(repo, barber, customer, time="10:00")
    book(repo, barber, customer, time="11:00")
    confirmed = book(repo, other, customer)
    change_status(repo, confirmed, "confirmed", actor_role="barber")

    assert repo.pending_counts() == {barber.id: 2}
