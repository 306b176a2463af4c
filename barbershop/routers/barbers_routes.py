# barbershop/routers/barbers_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from barbershop.auth import get_current_user
from barbershop.config import get_settings
from barbershop.deps import get_repository, require_self_or_admin
from barbershop.editor import apply_template, restore_default
from barbershop.repository import SqlRepository, load_template
from barbershop.schemas import (
    ApplyHoursRequest,
    ApplyHoursResponse,
    AppointmentPublic,
    AvailabilityResponse,
    ReviewPublic,
    UserRole,
    WorkingHoursView,
)
from barbershop.slots import drop_past_slots, effective_slots, resolve_bookable_slots, shop_now
from barbershop.templates import Override, parse_day

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def get_barber_or_404(repo: SqlRepository, staff_id: int):
    barber = repo.get_user(staff_id)
    if barber is None or barber.role != UserRole.barber.value:
        raise HTTPException(status_code=404, detail="Barber Not Found")
    return barber


@router.get("/{staff_id}/hours", response_model=WorkingHoursView)
def get_hours(
    staff_id: int,
    on_date: Optional[str] = None,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_self_or_admin(current_user, staff_id)
    get_barber_or_404(repo, staff_id)

    template = load_template(repo, staff_id)
    record = template.to_record()
    view = {
        "staff_id": staff_id,
        "default_slots": record["default"],
        "uses_fallback": not record["default"],
        "date_overrides": record["dates"],
    }
    if on_date is not None:
        parse_day(on_date)
        view["on_date"] = on_date
        view["has_override"] = isinstance(template.override_for(on_date), Override)
        view["effective_slots"] = effective_slots(template, on_date, get_settings().fallback_hours)
    return view


@router.post("/{staff_id}/hours", response_model=ApplyHoursResponse)
def apply_hours(
    staff_id: int,
    body: ApplyHoursRequest,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_self_or_admin(current_user, staff_id)
    get_barber_or_404(repo, staff_id)

    result = apply_template(
        repo,
        body.scope,
        staff_id,
        body.date,
        body.slots,
        body.resolution,
        fallback=get_settings().fallback_hours,
    )
    payload = {
        "applied": result.applied,
        "scope": result.scope,
        "dates": result.dates,
        "conflicts": [AppointmentPublic.model_validate(b, from_attributes=True) for b in result.conflicts],
        "cancelled": [AppointmentPublic.model_validate(b, from_attributes=True) for b in result.cancelled],
    }
    if not result.applied:
        # caller must resend with a resolution
        return JSONResponse(
            status_code=409,
            content=ApplyHoursResponse(**payload).model_dump(mode="json"),
        )
    return payload


@router.delete("/{staff_id}/hours/{day}", status_code=204)
def restore_hours(
    staff_id: int,
    day: str,
    repo: SqlRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_self_or_admin(current_user, staff_id)
    get_barber_or_404(repo, staff_id)
    restore_default(repo, staff_id, day)


@router.get("/{staff_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    staff_id: int,
    date: str,
    repo: SqlRepository = Depends(get_repository),
):
    settings = get_settings()
    get_barber_or_404(repo, staff_id)
    parse_day(date)

    template = load_template(repo, staff_id)
    bookings = repo.list_bookings(staff_id, on_date=date)
    slots = resolve_bookable_slots(template, staff_id, date, bookings, settings.fallback_hours)

    now = shop_now(settings.timezone)
    if parse_day(date) < now.date():
        slots = []
    slots = drop_past_slots(slots, date, now, settings.booking_buffer_minutes)

    return {"staff_id": staff_id, "date": date, "available_starts": slots}


@router.get("/{staff_id}/reviews", response_model=List[ReviewPublic])
def barber_reviews(
    staff_id: int,
    repo: SqlRepository = Depends(get_repository),
):
    get_barber_or_404(repo, staff_id)
    return repo.list_reviews(staff_id)
