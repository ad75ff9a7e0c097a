"""
In-app notifications for back-office staff

Currently raised when a customer signs a contract for a vehicle that was
already delivered, so the desk knows the paperwork caught up.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import desc, or_
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from ..database import get_db
from ..utils.dependencies import get_current_user
from ..models import User, Notification, NotificationType


router = APIRouter(prefix="/api/notifications", tags=["Notificaciones"])


class NotificationResponse(BaseModel):
    id: str
    type: str
    type_label: str
    icon: str
    title: str
    message: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread_count: int


def _visible_to(user: User):
    # Addressed to the user, or broadcast to the whole desk
    return or_(Notification.user_id == user.id, Notification.user_id.is_(None))


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False),
    type: Optional[NotificationType] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    base = db.query(Notification).filter(_visible_to(current_user))
    if type is not None:
        base = base.filter(Notification.type == type.value)

    unread = base.filter(Notification.is_read.is_(False))
    query = unread if unread_only else base

    items = query.order_by(desc(Notification.created_at)).offset(offset).limit(limit).all()

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in items],
        total=query.count(),
        unread_count=unread.count(),
    )


@router.put("/read-all")
async def mark_all_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    updated = db.query(Notification).filter(
        _visible_to(current_user),
        Notification.is_read.is_(False),
    ).update({Notification.is_read: True, Notification.read_at: datetime.utcnow()}, synchronize_session=False)
    db.commit()
    return {"updated": updated}


@router.put("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        _visible_to(current_user)
    ).first()

    if not notification:
        raise HTTPException(status_code=404, detail="Notificación no encontrada")

    notification.mark_as_read()
    db.commit()

    return {"message": "Notificación marcada como leída"}
