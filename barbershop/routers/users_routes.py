# barbershop/routers/users_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Service, User
from barbershop.schemas import BarberPublic, ServicePublic, UserCreate, UserPublic, UserRole
from barbershop.auth import get_current_user, hash_password
from barbershop.deps import require_role

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


def _public(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "loyalty_stamps": user.loyalty_stamps,
    }


@router.get("/me", response_model=UserPublic)
def me(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _public(session.get(User, current_user["id"]))


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    if user.role == UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin accounts cannot self-register")

    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB
    db_user = User(
        name=user.name,
        email=user.email,
        password_hash=hash_password(user.password),
        role=user.role.value,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id
    logger.info("Registered %s user %s", db_user.role, db_user.id)

    return _public(db_user)


@router.get("/users", response_model=List[UserPublic])
def list_users(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    users = session.exec(select(User).order_by(User.id)).all()
    return [_public(u) for u in users]


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    if user_id == current_user["id"]:
        raise HTTPException(status_code=409, detail="Admins cannot delete themselves")

    target = session.get(User, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")

    session.delete(target)
    session.commit()
    logger.info("Admin %s deleted user %s", current_user["id"], user_id)


@router.get("/barbers", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    barbers = session.exec(
        select(User).where(User.role == UserRole.barber.value).order_by(User.name)
    ).all()
    return [{"id": b.id, "name": b.name} for b in barbers]


@router.get("/services", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    services = session.exec(
        select(Service).where(Service.active == True).order_by(Service.id)  # noqa: E712
    ).all()
    return [{"id": s.id, "name": s.name, "duration": s.duration} for s in services]
