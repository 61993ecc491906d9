"""
Direct messages between two users.

Deleting a conversation is per user: the deleter is added to each message's
hidden-for set (message_hidden_for rows) and the partner's view is unchanged.
Every read path excludes messages hidden for the requester.
"""

from __future__ import annotations

import logging
from typing import Dict, List
from uuid import UUID

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import Session, joinedload

from core.exceptions import NotFoundError, ValidationError
from models import Message, MessageHiddenFor, NotificationType, User
from services import notifications

logger = logging.getLogger(__name__)


def _visible_to(user_id: UUID):
    return ~exists().where(
        and_(MessageHiddenFor.message_id == Message.id, MessageHiddenFor.user_id == user_id)
    )


def _between(a: UUID, b: UUID):
    return or_(
        and_(Message.sender_id == a, Message.recipient_id == b),
        and_(Message.sender_id == b, Message.recipient_id == a),
    )


def send(db: Session, sender: User, to: UUID, text: str) -> Message:
    text = (text or "").strip()
    if not to or not text:
        raise ValidationError("Recipient and text are required")
    if to == sender.id:
        raise ValidationError("You cannot send a message to yourself", field="to")

    recipient = db.query(User).filter(User.id == to).first()
    if not recipient:
        raise NotFoundError("Recipient")

    message = Message(sender_id=sender.id, recipient_id=recipient.id, text=text, read=False)
    db.add(message)

    notifications.notify(
        db,
        recipient,
        NotificationType.MESSAGE,
        f"You received a message from {sender.display_name}",
        related_id=sender.id,
    )
    db.commit()
    return message


def thread(db: Session, user_id: UUID, partner_id: UUID) -> List[Message]:
    """Messages between the two users, oldest first."""
    return (
        db.query(Message)
        .options(joinedload(Message.sender))
        .filter(_between(user_id, partner_id), _visible_to(user_id))
        .order_by(Message.created_at.asc())
        .all()
    )


def conversations(db: Session, user_id: UUID) -> List[Dict]:
    """One row per partner with the latest visible message, newest first."""
    messages = (
        db.query(Message)
        .options(joinedload(Message.sender), joinedload(Message.recipient))
        .filter(
            or_(Message.sender_id == user_id, Message.recipient_id == user_id),
            _visible_to(user_id),
        )
        .order_by(Message.created_at.desc())
        .all()
    )

    rows: Dict[UUID, Dict] = {}
    for msg in messages:
        from_me = msg.sender_id == user_id
        partner = msg.recipient if from_me else msg.sender
        if partner is None:
            continue

        row = rows.get(partner.id)
        if row is None:
            row = rows[partner.id] = {
                "partner": partner,
                "last_message": msg.text,
                "last_message_date": msg.created_at,
                "last_message_from_me": from_me,
                "unread_count": 0,
            }
        if not from_me and not msg.read:
            row["unread_count"] += 1

    # dicts keep insertion order, and messages were iterated newest first
    return list(rows.values())


def mark_read(db: Session, user_id: UUID, sender_id: UUID) -> int:
    """
    Mark everything from `sender_id` as read, together with the reader's
    message notifications about that sender, so badge and feed agree.
    """
    updated = (
        db.query(Message)
        .filter(
            Message.sender_id == sender_id,
            Message.recipient_id == user_id,
            Message.read.is_(False),
        )
        .update({Message.read: True}, synchronize_session=False)
    )
    notifications.mark_all_read(
        db, user_id, kind=NotificationType.MESSAGE.value, related_id=sender_id
    )
    db.commit()
    return updated


def soft_delete_conversation(db: Session, user_id: UUID, partner_id: UUID) -> int:
    """Hide the whole conversation for `user_id` only. Adding twice is a no-op."""
    message_ids = [
        row.id
        for row in db.query(Message.id)
        .filter(_between(user_id, partner_id), _visible_to(user_id))
        .all()
    ]
    for message_id in message_ids:
        db.add(MessageHiddenFor(message_id=message_id, user_id=user_id))
    db.commit()
    logger.debug("Conversation hidden", extra={"extra_fields": {"messages": len(message_ids)}})
    return len(message_ids)


def unread_summary(db: Session, user_id: UUID) -> Dict:
    unread = (
        db.query(Message)
        .options(joinedload(Message.sender))
        .filter(
            Message.recipient_id == user_id,
            Message.read.is_(False),
            _visible_to(user_id),
        )
        .all()
    )

    by_user: Dict[str, Dict] = {}
    for msg in unread:
        key = str(msg.sender_id)
        if key not in by_user:
            by_user[key] = {"count": 0, "name": msg.sender.display_name if msg.sender else ""}
        by_user[key]["count"] += 1

    return {"total": len(unread), "by_user": by_user}
