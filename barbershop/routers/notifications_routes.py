# barbershop/routers/notifications_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.models import Notification
from barbershop.schemas import NotificationPublic, UnreadCount

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)


@router.get("", response_model=List[NotificationPublic])
def list_notifications(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = (
        select(Notification)
        .where(Notification.user_id == current_user["id"])
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return session.exec(stmt).all()


# polled by the badge in the navigation bar
@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    count = session.exec(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == current_user["id"])
        .where(Notification.is_read == False)  # noqa: E712
    ).one()
    return {"unread": count}


@router.patch("/{notification_id}/read", response_model=NotificationPublic)
def mark_read(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    target = session.get(Notification, notification_id)
    if target is None or target.user_id != current_user["id"]:
        raise HTTPException(status_code=404, detail="Notification not found")

    if not target.is_read:
        target.is_read = True
        session.add(target)
        session.commit()
        session.refresh(target)
    return target
