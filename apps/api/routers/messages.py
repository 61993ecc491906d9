"""
Direct messaging API endpoints.

Clients poll these: unread summary and open thread responses carry an
X-Poll-Interval header with the suggested refresh period in seconds.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from core.auth import get_current_user
from core.config import settings
from core.database import get_db
from models import User
from schemas import ConversationSummary, MessageCreate, MessageOut, MessageResponse, UnreadSummary
from services import messaging

router = APIRouter(prefix="/v1/messages", tags=["messages"])

POLL_INTERVAL_HEADER = "X-Poll-Interval"


def set_poll_interval(response: Response) -> None:
    response.headers[POLL_INTERVAL_HEADER] = str(settings.POLL_INTERVAL_SECONDS)


@router.get("/unread", response_model=UnreadSummary)
def unread(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    set_poll_interval(response)
    return messaging.unread_summary(db, current_user.id)


@router.get("/conversations", response_model=List[ConversationSummary])
def conversations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return messaging.conversations(db, current_user.id)


@router.put("/read/{sender_id}", response_model=MessageOut)
def mark_read(
    sender_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    messaging.mark_read(db, current_user.id, sender_id)
    return {"message": "Conversation marked as read"}


@router.delete("/conversation/{partner_id}", response_model=MessageOut)
def delete_conversation(
    partner_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Hide the conversation for me only; the partner still sees it."""
    messaging.soft_delete_conversation(db, current_user.id, partner_id)
    return {"message": "Conversation deleted"}


@router.get("/{partner_id}", response_model=List[MessageResponse])
def thread(
    partner_id: UUID,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    set_poll_interval(response)
    return messaging.thread(db, current_user.id, partner_id)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return messaging.send(db, current_user, data.to, data.text)
