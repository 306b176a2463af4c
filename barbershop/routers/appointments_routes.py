# barbershop/routers/appointments_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import select

from barbershop.auth import get_current_user
from barbershop.booking import add_review, change_status, create_booking
from barbershop.config import get_settings
from barbershop.deps import get_repository, require_role
from barbershop.models import Appointment, Service
from barbershop.repository import SqlRepository, load_template
from barbershop.routers.barbers_routes import get_barber_or_404
from barbershop.schemas import (
    ACTIVE_STATUSES,
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    CancelRequest,
    ClientAppointmentCreate,
    PendingCount,
    QueueAppointment,
    ReviewCreate,
    ReviewPublic,
    StatusUpdate,
    UserRole,
)
from barbershop.slots import effective_slots, shop_now

router = APIRouter(
    tags=["appointments"],
)

# admin listing tabs
STATUS_FILTERS = {
    "open": list(ACTIVE_STATUSES),
    "completed": [AppointmentStatus.completed.value],
    "cancelled": [AppointmentStatus.cancelled.value],
}


def _check_service(repo: SqlRepository, service_id: Optional[int]):
    if service_id is None:
        return
    service = repo.session.get(Service, service_id)
    if service is None or not service.active:
        raise HTTPException(status_code=422, detail="Service not available")


def _get_appointment_or_404(repo: SqlRepository, appt_id: int) -> Appointment:
    target = repo.get_booking(appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return target


def _can_see(user: dict, appt: Appointment) -> bool:
    return user["role"] == "admin" or user["id"] in (appt.customer_id, appt.staff_id)


@router.post("/barbers/{staff_id}/appointments", response_model=AppointmentPublic, status_code=201)
def client_create_appointment(
    staff_id: int,
    appt: ClientAppointmentCreate,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")
    get_barber_or_404(repo, staff_id)
    _check_service(repo, appt.service_id)

    settings = get_settings()
    return create_booking(
        repo,
        staff_id,
        appt.date,
        appt.time,
        customer_name=current_user["name"],
        customer_id=current_user["id"],
        service_id=appt.service_id,
        status=AppointmentStatus.pending,
        now=shop_now(settings.timezone),
        fallback=settings.fallback_hours,
        buffer_minutes=settings.booking_buffer_minutes,
    )


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")  # walk-ins are entered by the barber
    _check_service(repo, appt.service_id)

    if appt.customer_id is not None:
        customer = repo.get_user(appt.customer_id)
        if customer is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        customer_name = customer.name
    elif appt.guest_name:
        customer_name = appt.guest_name
    else:
        raise HTTPException(status_code=422, detail="customer_id or guest_name is required")

    settings = get_settings()
    return create_booking(
        repo,
        current_user["id"],
        appt.date,
        appt.time,
        customer_name=customer_name,
        customer_id=appt.customer_id,
        service_id=appt.service_id,
        status=AppointmentStatus.confirmed,
        now=shop_now(settings.timezone),
        check_bookable=False,
    )


@router.get("/appointments/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    target = _get_appointment_or_404(repo, appt_id)
    if not _can_see(current_user, target):
        raise HTTPException(status_code=403, detail="Forbidden")
    return target


@router.patch("/appointments/{appt_id}/status", response_model=AppointmentPublic)
def update_appointment_status(
    appt_id: int,
    body: StatusUpdate,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    target = _get_appointment_or_404(repo, appt_id)

    # customers may only cancel their own appointments
    role = current_user["role"]
    if role == "customer":
        if target.customer_id != current_user["id"] or body.status != AppointmentStatus.cancelled:
            raise HTTPException(status_code=403, detail="Forbidden")
    elif role == "barber" and target.staff_id != current_user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")

    return change_status(repo, target, body.status, actor_role=UserRole(role), reason=body.reason)


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    body: Optional[CancelRequest] = None,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    target = _get_appointment_or_404(repo, appt_id)

    # Already cancelled?
    if target.status == AppointmentStatus.cancelled.value:
        raise HTTPException(status_code=409, detail="Appointment already cancelled")

    # client who booked, the barber, or an admin
    if not _can_see(current_user, target):
        raise HTTPException(status_code=403, detail="Forbidden")

    reason = body.reason if body is not None else None
    return change_status(
        repo, target, AppointmentStatus.cancelled,
        actor_role=UserRole(current_user["role"]), reason=reason,
    )


@router.get("/barbers/me/appointments", response_model=List[QueueAppointment])
def list_barber_appointments(
    status: Optional[str] = "open",
    on_date: Optional[str] = None,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    if status not in (*STATUS_FILTERS, "all"):
        raise HTTPException(status_code=422, detail="status must be 'open', 'completed', 'cancelled', or 'all'")

    staff_id = current_user["id"]
    appts = repo.list_bookings(
        staff_id,
        on_date=on_date,
        statuses=None if status == "all" else STATUS_FILTERS[status],
    )

    # flag active bookings whose slot the barber no longer offers
    template = load_template(repo, staff_id)
    fallback = get_settings().fallback_hours
    result = []
    for a in appts:
        item = QueueAppointment.model_validate(a, from_attributes=True)
        if a.status in ACTIVE_STATUSES:
            item.off_schedule = a.time not in effective_slots(template, a.date, fallback)
        result.append(item)
    return result


@router.get("/clients/me/appointments", response_model=List[AppointmentPublic])
def list_my_appointments(
    status: Optional[str] = "open",
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")
    if status not in (*STATUS_FILTERS, "all"):
        raise HTTPException(status_code=422, detail="status must be 'open', 'completed', 'cancelled', or 'all'")

    stmt = select(Appointment).where(Appointment.customer_id == current_user["id"])
    if status != "all":
        stmt = stmt.where(Appointment.status.in_(STATUS_FILTERS[status]))
    stmt = stmt.order_by(Appointment.date, Appointment.time)

    return repo.session.exec(stmt).all()


@router.get("/admin/appointments", response_model=List[AppointmentPublic])
def list_all_appointments(
    status: Optional[str] = "open",
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    if status not in (*STATUS_FILTERS, "all"):
        raise HTTPException(status_code=422, detail="status must be 'open', 'completed', 'cancelled', or 'all'")

    stmt = select(Appointment)
    if status != "all":
        stmt = stmt.where(Appointment.status.in_(STATUS_FILTERS[status]))
    # newest requests first
    stmt = stmt.order_by(Appointment.created_at.desc())

    return repo.session.exec(stmt).all()


# polled by the barber dashboard badge
@router.get("/barbers/me/pending-count", response_model=PendingCount)
def barber_pending_count(
    request: Request,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")

    poller = getattr(request.app.state, "pending_poller", None)
    counts = poller.last_result if poller is not None else None
    if counts is None:
        # no snapshot yet, count directly
        counts = repo.pending_counts()
    return {"pending": counts.get(current_user["id"], 0)}


@router.post("/appointments/{appt_id}/review", response_model=ReviewPublic, status_code=201)
def review_appointment(
    appt_id: int,
    body: ReviewCreate,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")
    target = _get_appointment_or_404(repo, appt_id)
    return add_review(repo, target, current_user["id"], body.rating, body.comment)


@router.get("/appointments/{appt_id}/review", response_model=ReviewPublic)
def get_appointment_review(
    appt_id: int,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    target = _get_appointment_or_404(repo, appt_id)
    if not _can_see(current_user, target):
        raise HTTPException(status_code=403, detail="Forbidden")

    review = repo.get_review_for_booking(appt_id)
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return review
