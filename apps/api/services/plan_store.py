"""
Plan store.

Each client has at most one active plan (enforced by a unique key on
plan.client_id). Creating or applying a plan hard-replaces the previous
one: the old row is deleted before the new one is inserted.

Trainers carry a lifetime `total_plans` counter, bumped on every
create/apply. Before bumping it is corrected upward to the number of live
plans the trainer owns, never downward.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from core.clock import day_start_utc, local_date, local_today, week_start
from core.config import settings
from core.exceptions import ForbiddenError, NotFoundError, ValidationError
from models import Entry, NotificationType, Plan, PlanTemplate, User, UserRole, WeightEntry
from services import notifications
from services.audit_logger import log_plan_assigned

logger = logging.getLogger(__name__)

DEFAULT_PLAN_NAME = "Custom Plan"
DEFAULT_PLAN_WEEKS = 8
DEFAULT_SESSIONS_PER_WEEK = 4


def dump_days(days: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
    """Normalise day entries (pydantic models or dicts) into JSON-ready dicts."""
    out = []
    for day in days or []:
        if hasattr(day, "model_dump"):
            day = day.model_dump()
        out.append(
            {
                "day_of_week": day["day_of_week"],
                "exercises": [
                    ex.model_dump() if hasattr(ex, "model_dump") else dict(ex)
                    for ex in day.get("exercises") or []
                ],
            }
        )
    return out


def check_exercise_limit(days: List[Dict[str, Any]]) -> None:
    limit = settings.MAX_EXERCISES_PER_DAY
    for day in days:
        count = len(day.get("exercises") or [])
        if count > limit:
            raise ValidationError(
                f"At most {limit} exercises per session. "
                f'"{day.get("day_of_week") or "unknown"}" has {count}.',
                field="days",
            )


def _get_assignable_client(db: Session, trainer: User, client_id: UUID) -> User:
    client = (
        db.query(User)
        .filter(
            User.id == client_id,
            User.assigned_trainer_id == trainer.id,
            User.role == UserRole.CLIENT.value,
        )
        .first()
    )
    if not client:
        raise ForbiddenError("This client is not assigned to you")
    return client


def reconcile_plan_counter(db: Session, trainer: User) -> None:
    """Raise total_plans to the live plan count if it has fallen behind."""
    live = db.query(func.count(Plan.id)).filter(Plan.trainer_id == trainer.id).scalar() or 0
    if (trainer.total_plans or 0) < live:
        logger.info(
            "Correcting trainer plan counter",
            extra={"extra_fields": {"trainer_id": str(trainer.id), "from": trainer.total_plans, "to": live}},
        )
        trainer.total_plans = live


def _replace_plan(
    db: Session,
    trainer: User,
    client: User,
    *,
    name: str,
    weeks: int,
    sessions_per_week: int,
    days: List[Dict[str, Any]],
    notes: str,
    from_template: bool,
    notification_text: str,
) -> Plan:
    reconcile_plan_counter(db, trainer)

    # Bulk delete runs immediately, so the unique client key is free for the insert.
    replaced = db.query(Plan).filter(Plan.client_id == client.id).delete(synchronize_session=False)

    plan = Plan(
        trainer_id=trainer.id,
        client_id=client.id,
        name=name,
        weeks=weeks,
        sessions_per_week=sessions_per_week,
        days=days,
        notes=notes or "",
        is_from_template=from_template,
    )
    db.add(plan)
    trainer.total_plans = (trainer.total_plans or 0) + 1
    db.flush()

    notifications.notify(db, client, NotificationType.PLAN, notification_text, related_id=plan.id)
    db.commit()

    log_plan_assigned(
        trainer.id,
        client.id,
        plan.id,
        from_template=from_template,
        replaced=bool(replaced),
        total_plans=trainer.total_plans,
    )
    return plan


def apply_template(db: Session, trainer: User, client_id: UUID, template_id: UUID) -> Plan:
    template = (
        db.query(PlanTemplate)
        .filter(PlanTemplate.id == template_id, PlanTemplate.trainer_id == trainer.id)
        .first()
    )
    if not template:
        raise NotFoundError("Template")

    client = _get_assignable_client(db, trainer, client_id)

    return _replace_plan(
        db,
        trainer,
        client,
        name=template.name,
        weeks=template.weeks,
        sessions_per_week=template.sessions_per_week,
        days=dump_days(template.days),
        notes=template.notes,
        from_template=True,
        notification_text=f"New plan assigned: {template.name}",
    )


def create_direct(
    db: Session,
    trainer: User,
    client_id: UUID,
    *,
    name: Optional[str] = None,
    weeks: Optional[int] = None,
    sessions_per_week: Optional[int] = None,
    days: Optional[Iterable[Any]] = None,
    notes: Optional[str] = None,
) -> Plan:
    client = _get_assignable_client(db, trainer, client_id)

    day_dicts = dump_days(days)
    check_exercise_limit(day_dicts)

    return _replace_plan(
        db,
        trainer,
        client,
        name=(name or "").strip() or DEFAULT_PLAN_NAME,
        weeks=weeks or DEFAULT_PLAN_WEEKS,
        sessions_per_week=sessions_per_week or DEFAULT_SESSIONS_PER_WEEK,
        days=day_dicts,
        notes=notes or "",
        from_template=False,
        notification_text="You have a new custom workout plan!",
    )


def remove_for_client(db: Session, trainer: User, client_id: UUID) -> None:
    plan = db.query(Plan).filter(Plan.client_id == client_id).first()
    if not plan:
        raise NotFoundError("Plan")
    if plan.trainer_id != trainer.id:
        raise ForbiddenError("This plan was not created by you")
    db.delete(plan)
    db.commit()


def _with_people(db: Session):
    return db.query(Plan).options(joinedload(Plan.trainer), joinedload(Plan.client))


def get_for_client(db: Session, client: User) -> Optional[Plan]:
    """The client's own plan. Viewing it clears their unread plan notifications."""
    plan = _with_people(db).filter(Plan.client_id == client.id).first()
    notifications.mark_all_read(db, client.id, kind=NotificationType.PLAN.value)
    db.commit()
    return plan


def get_as_trainer(db: Session, trainer: User, client_id: UUID) -> Optional[Plan]:
    """A client's plan as seen by a trainer: allowed for own clients or own plans."""
    plan = _with_people(db).filter(Plan.client_id == client_id).first()
    if plan is not None and plan.trainer_id == trainer.id:
        return plan

    client = db.query(User).filter(User.id == client_id).first()
    if not client:
        raise NotFoundError("Client")
    if client.assigned_trainer_id != trainer.id:
        raise ForbiddenError("This client is not assigned to you")
    return plan


def list_trainer_plans(db: Session, trainer: User, client_id: Optional[UUID] = None) -> List[Plan]:
    query = db.query(Plan).options(joinedload(Plan.client)).filter(Plan.trainer_id == trainer.id)
    if client_id is not None:
        query = query.filter(Plan.client_id == client_id)
    return query.order_by(Plan.created_at.desc()).all()


def scheduled_days(plan: Optional[Plan]) -> List[Dict[str, Any]]:
    """Plan days that actually prescribe exercises."""
    if plan is None:
        return []
    return [d for d in plan.days or [] if d.get("exercises")]


def my_stats(db: Session, client: User) -> Dict[str, Any]:
    today = local_today()
    month_start = today.replace(day=1)
    monday = week_start(today)

    completed = db.query(Entry).filter(Entry.client_id == client.id, Entry.completed.is_(True))

    workouts_this_month = completed.filter(Entry.date >= month_start, Entry.date <= today).count()
    workouts_this_week = completed.filter(Entry.date >= monday, Entry.date <= today).count()
    calories_today = (
        db.query(func.coalesce(func.sum(Entry.calories_burned), 0))
        .filter(Entry.client_id == client.id, Entry.completed.is_(True), Entry.date == today)
        .scalar()
    )

    plan = db.query(Plan).filter(Plan.client_id == client.id).first()
    expected = len(scheduled_days(plan))
    adherence = min(100, round(workouts_this_week / expected * 100)) if expected else 0

    return {
        "workouts_this_month": workouts_this_month,
        "workouts_this_week": workouts_this_week,
        "weekly_adherence": adherence,
        "calories_today": float(calories_today or 0),
        "weight_lost_this_month": _weight_lost_since(db, client, month_start),
    }


def _weight_lost_since(db: Session, client: User, since) -> float:
    if client.weight is None:
        return 0.0
    # History is small per user; filtering by local calendar day in Python
    # keeps the month boundary in APP_TIMEZONE.
    points = (
        db.query(WeightEntry)
        .filter(
            WeightEntry.user_id == client.id,
            WeightEntry.recorded_at >= day_start_utc(since - timedelta(days=1)),
        )
        .order_by(WeightEntry.recorded_at)
        .all()
    )
    for point in points:
        if local_date(point.recorded_at) >= since:
            return round(point.weight - client.weight, 1)
    return 0.0
