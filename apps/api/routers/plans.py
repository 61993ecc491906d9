"""
Plan API endpoints.

Trainers create (directly or from a template), list and remove plans for
their clients; clients read their own plan and progress stats.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from core.auth import require_client, require_trainer
from core.database import get_db
from models import User
from schemas import (
    MessageOut,
    PlanCreate,
    PlanCreatedResponse,
    PlanFromTemplate,
    PlanResponse,
    PlanStats,
)
from services import plan_store

router = APIRouter(prefix="/v1/plans", tags=["plans"])


@router.post("", response_model=PlanCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    data: PlanCreate,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    """Create a custom plan, replacing the client's current one."""
    plan = plan_store.create_direct(
        db,
        current_user,
        data.client_id,
        name=data.name,
        weeks=data.weeks,
        sessions_per_week=data.sessions_per_week,
        days=data.days,
        notes=data.notes,
    )
    return {"message": "Plan created", "plan": plan}


@router.post("/from-template", response_model=PlanCreatedResponse, status_code=status.HTTP_201_CREATED)
def apply_template(
    data: PlanFromTemplate,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    plan = plan_store.apply_template(db, current_user, data.client_id, data.template_id)
    return {"message": "Plan applied", "plan": plan}


@router.get("", response_model=List[PlanResponse])
def list_plans(
    client_id: Optional[UUID] = None,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return plan_store.list_trainer_plans(db, current_user, client_id)


@router.get("/my", response_model=Optional[PlanResponse])
def my_plan(
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db),
):
    """The client's active plan (null when none). Clears unread plan notifications."""
    return plan_store.get_for_client(db, current_user)


@router.get("/my/stats", response_model=PlanStats)
def my_stats(
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db),
):
    return plan_store.my_stats(db, current_user)


@router.get("/client/{client_id}", response_model=Optional[PlanResponse])
def client_plan(
    client_id: UUID,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return plan_store.get_as_trainer(db, current_user, client_id)


@router.delete("/client/{client_id}", response_model=MessageOut)
def delete_client_plan(
    client_id: UUID,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    plan_store.remove_for_client(db, current_user, client_id)
    return {"message": "Plan removed"}
