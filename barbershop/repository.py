# barbershop/repository.py

from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy import func
from sqlmodel import Session, select

from .models import Appointment, Notification, Review, User, WorkingHours, utcnow
from .templates import WorkingHoursTemplate


class BookingRepository(Protocol):
    """Storage seen by the scheduling core."""

    def get_template(self, staff_id: int) -> Optional[WorkingHoursTemplate]: ...

    def save_template(self, template: WorkingHoursTemplate) -> None: ...

    def list_bookings(
        self,
        staff_id: int,
        on_date: Optional[str] = None,
        in_month: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> List[Appointment]: ...

    def get_booking(self, booking_id: int) -> Optional[Appointment]: ...

    def insert_booking(self, booking: Appointment) -> Appointment: ...

    def update_booking_status(
        self, booking: Appointment, status: str, reason: Optional[str] = None
    ) -> Appointment: ...

    def get_user(self, user_id: int) -> Optional[User]: ...

    def add_loyalty_stamp(self, user: User) -> None: ...

    def add_notification(
        self, user_id: int, title: str, message: str, kind: str = "system", link: str = ""
    ) -> None: ...

    def get_review_for_booking(self, booking_id: int) -> Optional[Review]: ...

    def insert_review(self, review: Review) -> Review: ...

    def list_reviews(self, staff_id: int) -> List[Review]: ...

    def rollback(self) -> None: ...


class SqlRepository:
    """BookingRepository over a SQLModel session. Each write commits."""

    def __init__(self, session: Session):
        self.session = session

    def get_template(self, staff_id: int) -> Optional[WorkingHoursTemplate]:
        row = self.session.get(WorkingHours, staff_id)
        if row is None:
            return None
        return WorkingHoursTemplate.from_record(staff_id, row.availability)

    def save_template(self, template: WorkingHoursTemplate) -> None:
        row = self.session.get(WorkingHours, template.staff_id)
        if row is None:
            row = WorkingHours(staff_id=template.staff_id)
        # assign a fresh dict so the JSON column is flagged dirty
        row.availability = template.to_record()
        row.updated_at = utcnow()
        self.session.add(row)
        self.session.commit()

    def list_bookings(
        self,
        staff_id: int,
        on_date: Optional[str] = None,
        in_month: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> List[Appointment]:
        stmt = select(Appointment).where(Appointment.staff_id == staff_id)
        if on_date is not None:
            stmt = stmt.where(Appointment.date == on_date)
        if in_month is not None:
            # dates are YYYY-MM-DD, so a month is a string prefix
            stmt = stmt.where(Appointment.date.startswith(f"{in_month}-"))
        if statuses is not None:
            stmt = stmt.where(Appointment.status.in_(list(statuses)))
        stmt = stmt.order_by(Appointment.date, Appointment.time)
        return list(self.session.exec(stmt).all())

    def get_booking(self, booking_id: int) -> Optional[Appointment]:
        return self.session.get(Appointment, booking_id)

    def insert_booking(self, booking: Appointment) -> Appointment:
        self.session.add(booking)
        self.session.commit()
        self.session.refresh(booking)
        return booking

    def update_booking_status(
        self, booking: Appointment, status: str, reason: Optional[str] = None
    ) -> Appointment:
        booking.status = status
        if reason is not None:
            booking.cancellation_reason = reason
        self.session.add(booking)
        self.session.commit()
        self.session.refresh(booking)
        return booking

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def add_loyalty_stamp(self, user: User) -> None:
        user.loyalty_stamps += 1
        self.session.add(user)
        self.session.commit()

    def add_notification(
        self, user_id: int, title: str, message: str, kind: str = "system", link: str = ""
    ) -> None:
        self.session.add(
            Notification(user_id=user_id, title=title, message=message, kind=kind, link=link)
        )
        self.session.commit()

    def get_review_for_booking(self, booking_id: int) -> Optional[Review]:
        stmt = select(Review).where(Review.appointment_id == booking_id)
        return self.session.exec(stmt).first()

    def insert_review(self, review: Review) -> Review:
        self.session.add(review)
        self.session.commit()
        self.session.refresh(review)
        return review

    def list_reviews(self, staff_id: int) -> List[Review]:
        stmt = (
            select(Review)
            .where(Review.staff_id == staff_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return list(self.session.exec(stmt).all())

    def pending_counts(self) -> Dict[int, int]:
        """Pending requests per barber."""
        stmt = (
            select(Appointment.staff_id, func.count())
            .where(Appointment.status == "pending")
            .group_by(Appointment.staff_id)
        )
        return {staff_id: count for staff_id, count in self.session.exec(stmt).all()}

    def rollback(self) -> None:
        self.session.rollback()


def load_template(repo: BookingRepository, staff_id: int) -> WorkingHoursTemplate:
    """Stored template, or an empty one for a barber who never set hours."""
    return repo.get_template(staff_id) or WorkingHoursTemplate.empty(staff_id)
