"""
Workout entry API endpoints.

Clients log one entry per day; clients, their trainer and admins read the
history and weekly/monthly aggregates.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from core.auth import get_current_user, require_client
from core.database import get_db
from models import User
from schemas import EntryResponse, EntryStatsBucket, EntryUpsert
from services import entry_log

router = APIRouter(prefix="/v1/entries", tags=["entries"])


@router.post("", response_model=EntryResponse)
def save_entry(
    data: EntryUpsert,
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db),
):
    """Create or update the entry for `date`."""
    return entry_log.upsert(db, current_user, data)


@router.get("", response_model=List[EntryResponse])
def list_entries(
    client_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort: Literal["asc", "desc"] = "desc",
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    subject = entry_log.resolve_subject(db, current_user, client_id)
    return entry_log.history(db, subject, start_date=start_date, end_date=end_date, sort=sort)


@router.get("/stats", response_model=List[EntryStatsBucket])
def entry_stats(
    period: Literal["week", "month"] = Query("week"),
    client_id: Optional[UUID] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    subject = entry_log.resolve_subject(db, current_user, client_id)
    return entry_log.stats(db, subject, period)
