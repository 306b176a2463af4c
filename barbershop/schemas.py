# barbershop/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime
from typing import Dict, List, Optional

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class UserRole(str, Enum):
    customer = "customer"
    barber = "barber"
    admin = "admin"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


# statuses that hold a slot
ACTIVE_STATUSES = (AppointmentStatus.pending.value, AppointmentStatus.confirmed.value)


class ApplyScope(str, Enum):
    single_date = "single_date"
    whole_month = "whole_month"
    new_default = "new_default"


class Resolution(str, Enum):
    cancel_conflicting = "cancel_conflicting"
    keep_as_exception = "keep_as_exception"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    loyalty_stamps: int = 0


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.customer


class BarberPublic(BaseModel):
    id: int
    name: str


class ServicePublic(BaseModel):
    id: int
    name: str
    duration: int


class AppointmentCreate(BaseModel):
    """Walk-in entered by a barber: a registered customer or a named guest."""
    date: str = Field(pattern=DATE_PATTERN)
    time: str = Field(pattern=TIME_PATTERN)
    customer_id: Optional[int] = None
    guest_name: Optional[str] = None
    service_id: Optional[int] = None


class ClientAppointmentCreate(BaseModel):
    date: str = Field(pattern=DATE_PATTERN)
    time: str = Field(pattern=TIME_PATTERN)
    service_id: Optional[int] = None


class AppointmentPublic(BaseModel):
    id: int
    staff_id: int
    customer_id: Optional[int]
    customer_name: str
    service_id: Optional[int]
    date: str
    time: str
    status: AppointmentStatus
    cancellation_reason: Optional[str] = None
    created_at: datetime


class QueueAppointment(AppointmentPublic):
    # slot no longer offered by the barber's hours for that date
    off_schedule: bool = False


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = Field(default=None, max_length=500)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class WorkingHoursView(BaseModel):
    staff_id: int
    default_slots: List[str]
    # no default configured, dates without an override use the shop hours
    uses_fallback: bool = False
    date_overrides: Dict[str, List[str]]
    on_date: Optional[str] = None
    has_override: Optional[bool] = None
    effective_slots: Optional[List[str]] = None


class ApplyHoursRequest(BaseModel):
    scope: ApplyScope
    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    slots: List[str]
    resolution: Optional[Resolution] = None


class ApplyHoursResponse(BaseModel):
    applied: bool
    scope: ApplyScope
    dates: List[str]
    conflicts: List[AppointmentPublic]
    cancelled: List[AppointmentPublic]


class AvailabilityResponse(BaseModel):
    staff_id: int
    date: str
    available_starts: List[str]


class NotificationPublic(BaseModel):
    id: int
    title: str
    message: str
    kind: str
    link: str
    is_read: bool
    created_at: datetime


class UnreadCount(BaseModel):
    unread: int


class PendingCount(BaseModel):
    pending: int


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=1000)


class ReviewPublic(BaseModel):
    id: int
    appointment_id: int
    staff_id: int
    customer_name: str
    rating: int
    comment: str
    created_at: datetime
