"""
Entry log.

One row per (client, calendar day). Writes are upserts on that key. A
transition into `completed` stamps `completed_at` and may notify the
client; un-completing clears the stamp.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.clock import day_name, day_start_utc, local_today, utcnow
from core.exceptions import ForbiddenError, ValidationError
from models import Entry, Notification, NotificationType, Plan, User, UserRole
from schemas import EntryUpsert
from services import accounts, notifications
from services.plan_store import scheduled_days

logger = logging.getLogger(__name__)

PERIODS = ("week", "month")


def upsert(db: Session, client: User, data: EntryUpsert) -> Entry:
    """
    Create or update the client's entry for `data.date`.

    Completed and calories are always overwritten; reason, proof and notes
    keep their previous value when the new one is empty.
    """
    if data.completed and data.date > local_today():
        raise ForbiddenError("You cannot complete this workout yet. Wait until the workout day.")
    if data.weight is not None:
        accounts.check_weight(data.weight)

    entry = (
        db.query(Entry)
        .filter(Entry.client_id == client.id, Entry.date == data.date)
        .first()
    )

    if entry is None:
        entry = Entry(
            client_id=client.id,
            date=data.date,
            completed=data.completed,
            completed_at=utcnow() if data.completed else None,
            reason=data.reason,
            proof_media=data.proof_media,
            calories_burned=data.calories_burned,
            notes=data.notes,
        )
        db.add(entry)
        new_completion = data.completed
    else:
        new_completion = data.completed and not entry.completed
        entry.completed = data.completed
        entry.reason = data.reason or entry.reason
        entry.proof_media = data.proof_media or entry.proof_media
        entry.calories_burned = data.calories_burned
        entry.notes = data.notes or entry.notes
        if data.completed and entry.completed_at is None:
            entry.completed_at = utcnow()
        if not data.completed:
            entry.completed_at = None

    db.flush()

    if new_completion:
        notifications.notify(
            db,
            client,
            NotificationType.SYSTEM,
            "Congratulations! You completed today's workout.",
            related_id=entry.id,
        )
        if data.weight is not None:
            accounts.apply_weight(client, data.weight)

    db.commit()
    logger.debug(
        "Entry saved",
        extra={"extra_fields": {"entry_id": str(entry.id), "completed": entry.completed, "new_completion": new_completion}},
    )
    return entry


def resolve_subject(db: Session, principal: User, client_id: Optional[UUID]) -> UUID:
    """
    Whose entries a read is about.

    Clients always read their own. Trainers may name one of their clients;
    admins may name anyone.
    """
    if client_id is None or principal.role == UserRole.CLIENT.value or client_id == principal.id:
        return principal.id

    if principal.role == UserRole.ADMIN.value:
        return client_id

    client = db.query(User).filter(User.id == client_id).first()
    if client is None or client.assigned_trainer_id != principal.id:
        raise ForbiddenError("This client is not assigned to you")
    return client_id


def period_key(d: date, period: str) -> str:
    if period == "month":
        return f"{d.year:04d}-{d.month:02d}"
    iso_year, iso_week, _ = d.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def stats(db: Session, client_id: UUID, period: str = "week") -> List[Dict]:
    """Completed entries grouped by ISO week or month, oldest bucket first."""
    if period not in PERIODS:
        raise ValidationError("period must be 'week' or 'month'", field="period")

    rows = (
        db.query(Entry.date, Entry.calories_burned)
        .filter(Entry.client_id == client_id, Entry.completed.is_(True))
        .order_by(Entry.date)
        .all()
    )

    buckets: "OrderedDict[str, Dict]" = OrderedDict()
    for entry_date, calories in rows:
        key = period_key(entry_date, period)
        bucket = buckets.setdefault(key, {"period": key, "count": 0, "calories": 0.0})
        bucket["count"] += 1
        bucket["calories"] += calories or 0

    return [buckets[k] for k in sorted(buckets)]


def history(
    db: Session,
    client_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort: str = "desc",
) -> List[Entry]:
    if sort not in ("asc", "desc"):
        raise ValidationError("sort must be 'asc' or 'desc'", field="sort")

    query = db.query(Entry).filter(Entry.client_id == client_id)
    if start_date is not None:
        query = query.filter(Entry.date >= start_date)
    if end_date is not None:
        query = query.filter(Entry.date <= end_date)

    order = Entry.date.asc() if sort == "asc" else Entry.date.desc()
    return query.order_by(order).all()


def missed_workout_check(db: Session, client: User) -> Dict:
    """
    Alert the client once if yesterday was a scheduled day with no completed entry.

    Idempotent: an alert created since the start of yesterday suppresses another.
    """
    yesterday = local_today() - timedelta(days=1)
    weekday = day_name(yesterday)

    plan = db.query(Plan).filter(Plan.client_id == client.id).first()
    if plan is None:
        return {"missed": False, "notified": False, "message": "No active plan"}

    was_workout_day = any(
        (d.get("day_of_week") or "").strip().lower() == weekday.lower()
        for d in scheduled_days(plan)
    )
    if not was_workout_day:
        return {"missed": False, "notified": False, "message": "Yesterday was not a workout day"}

    done = (
        db.query(Entry.id)
        .filter(Entry.client_id == client.id, Entry.date == yesterday, Entry.completed.is_(True))
        .first()
    )
    if done:
        return {"missed": False, "notified": False, "message": "Workout completed"}

    already_alerted = (
        db.query(Notification.id)
        .filter(
            Notification.recipient_id == client.id,
            Notification.type == NotificationType.ALERT.value,
            Notification.created_at >= day_start_utc(yesterday),
        )
        .first()
    )
    if already_alerted:
        return {"missed": True, "notified": False, "message": "Already notified"}

    notifications.notify(
        db,
        client,
        NotificationType.ALERT,
        f"Heads up: you missed yesterday's workout ({weekday}). Consistency is key.",
    )
    db.commit()
    logger.info("Missed workout alert created", extra={"extra_fields": {"day": weekday}})
    return {"missed": True, "notified": True, "message": "Notification created"}
