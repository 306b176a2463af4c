# barbershop/models.py

from typing import Optional
from datetime import datetime, timezone

from sqlalchemy import Index, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # one non-cancelled appointment per barber/date/time
        Index(
            "uq_active_slot",
            "staff_id", "date", "time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    staff_id: int = Field(foreign_key="user.id", index=True)
    customer_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    customer_name: str
    service_id: Optional[int] = Field(default=None, foreign_key="service.id")
    date: str = Field(index=True)   # YYYY-MM-DD
    time: str                       # HH:MM
    status: str = "pending"
    cancellation_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # customer, barber or admin
    loyalty_stamps: int = 0


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    duration: int  # minutes
    active: bool = True


class WorkingHours(SQLModel, table=True):
    staff_id: int = Field(foreign_key="user.id", primary_key=True)
    # {"default": ["09:00", ...], "dates": {"2026-04-01": ["11:00"]}}
    availability: dict = Field(default_factory=dict, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=utcnow)


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    title: str
    message: str
    kind: str = "system"  # appointment, review or system
    link: str = ""
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class Review(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    # one review per appointment
    appointment_id: int = Field(foreign_key="appointment.id", unique=True)
    staff_id: int = Field(foreign_key="user.id", index=True)
    customer_id: int = Field(foreign_key="user.id")
    customer_name: str
    rating: int  # 1 to 5
    comment: str = ""
    created_at: datetime = Field(default_factory=utcnow)
