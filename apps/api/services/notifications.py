"""
Notification feed.

Append-only per-recipient feed (message / plan / system / alert). Callers
never create rows directly: they go through `notify`, which honours the
recipient's opt-in flags for the gated kinds.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import ForbiddenError, NotFoundError
from models import Notification, NotificationType, User

logger = logging.getLogger(__name__)

# Kind -> opt-in flag on the recipient. Alerts are always delivered.
_OPT_IN_FLAG = {
    NotificationType.MESSAGE.value: "notify_messages",
    NotificationType.PLAN.value: "notify_plans",
    NotificationType.SYSTEM.value: "notify_system",
}


def wants(recipient: User, kind: str) -> bool:
    flag = _OPT_IN_FLAG.get(kind)
    return True if flag is None else bool(getattr(recipient, flag))


def notify(
    db: Session,
    recipient: User,
    kind: NotificationType | str,
    content: str,
    related_id: Optional[UUID] = None,
    *,
    respect_settings: bool = True,
) -> Optional[Notification]:
    """
    Queue a notification for `recipient` in the current transaction.

    Returns None when the recipient opted out of this kind. The caller commits.
    """
    kind = NotificationType(kind).value
    if respect_settings and not wants(recipient, kind):
        logger.debug("Notification suppressed by settings", extra={"extra_fields": {"kind": kind}})
        return None

    notification = Notification(
        recipient_id=recipient.id,
        type=kind,
        content=content,
        related_id=related_id,
    )
    db.add(notification)
    return notification


def list_for(db: Session, user_id: UUID, limit: Optional[int] = None) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit or settings.NOTIFICATION_FEED_LIMIT)
        .all()
    )


def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise NotFoundError("Notification")
    if notification.recipient_id != user_id:
        raise ForbiddenError("Not your notification")

    notification.is_read = True
    db.commit()
    return notification


def mark_all_read(db: Session, user_id: UUID, kind: Optional[str] = None, related_id: Optional[UUID] = None) -> int:
    """Flip unread notifications to read, optionally narrowed by kind/related entity."""
    query = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read.is_(False),
    )
    if kind is not None:
        query = query.filter(Notification.type == kind)
    if related_id is not None:
        query = query.filter(Notification.related_id == related_id)
    return query.update({Notification.is_read: True}, synchronize_session=False)


def update_settings(
    db: Session,
    user: User,
    messages: Optional[bool] = None,
    plans: Optional[bool] = None,
    system: Optional[bool] = None,
) -> dict:
    """Patch opt-in flags independently; None leaves a flag untouched."""
    if messages is not None:
        user.notify_messages = messages
    if plans is not None:
        user.notify_plans = plans
    if system is not None:
        user.notify_system = system
    db.commit()
    return user.notification_settings
