"""Notification feed API endpoints."""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from core.auth import get_current_user
from core.database import get_db
from models import User
from routers.messages import set_poll_interval
from schemas import MessageOut, NotificationResponse, NotificationSettings, NotificationSettingsUpdate
from services import notifications

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
def list_notifications(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Most recent notifications, newest first."""
    set_poll_interval(response)
    return notifications.list_for(db, current_user.id)


@router.put("/read-all", response_model=MessageOut)
def read_all(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notifications.mark_all_read(db, current_user.id)
    db.commit()
    return {"message": "All notifications marked as read"}


@router.put("/settings", response_model=NotificationSettings)
def update_settings(
    data: NotificationSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notifications.update_settings(
        db, current_user, messages=data.messages, plans=data.plans, system=data.system
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notifications.mark_read(db, notification_id, current_user.id)
