"""Trainer-owned plan templates."""

from __future__ import annotations

from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models import PlanTemplate, User
from schemas import PlanTemplateCreate, PlanTemplateUpdate
from services.plan_store import dump_days


def list_for_trainer(db: Session, trainer: User) -> List[PlanTemplate]:
    return (
        db.query(PlanTemplate)
        .filter(PlanTemplate.trainer_id == trainer.id)
        .order_by(PlanTemplate.created_at.desc())
        .all()
    )


def get_owned(db: Session, trainer: User, template_id: UUID) -> PlanTemplate:
    # Someone else's template is reported as missing, not forbidden.
    template = (
        db.query(PlanTemplate)
        .filter(PlanTemplate.id == template_id, PlanTemplate.trainer_id == trainer.id)
        .first()
    )
    if not template:
        raise NotFoundError("Template")
    return template


def create(db: Session, trainer: User, data: PlanTemplateCreate) -> PlanTemplate:
    template = PlanTemplate(
        trainer_id=trainer.id,
        name=data.name.strip(),
        weeks=data.weeks,
        sessions_per_week=data.sessions_per_week,
        days=dump_days(data.days),
        notes=data.notes or "",
    )
    db.add(template)
    db.commit()
    return template


def update(db: Session, trainer: User, template_id: UUID, data: PlanTemplateUpdate) -> PlanTemplate:
    template = get_owned(db, trainer, template_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        template.name = changes["name"].strip()
    if changes.get("weeks") is not None:
        template.weeks = changes["weeks"]
    if changes.get("sessions_per_week") is not None:
        template.sessions_per_week = changes["sessions_per_week"]
    if "days" in changes and data.days is not None:
        template.days = dump_days(data.days)
    if "notes" in changes:
        template.notes = changes["notes"] or ""

    db.commit()
    return template


def delete(db: Session, trainer: User, template_id: UUID) -> None:
    template = get_owned(db, trainer, template_id)
    db.delete(template)
    db.commit()
