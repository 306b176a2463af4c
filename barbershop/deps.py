# barbershop/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from .db import get_session
from .repository import SqlRepository


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def require_self_or_admin(user: dict, staff_id: int):
    """Barbers manage their own hours and queue; admins act for anyone."""
    if user["role"] == "admin":
        return
    if user["role"] == "barber" and user["id"] == staff_id:
        return
    raise HTTPException(status_code=403, detail="Forbidden")


def get_repository(session: Session = Depends(get_session)) -> SqlRepository:
    return SqlRepository(session)
