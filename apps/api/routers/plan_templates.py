"""Plan template CRUD, scoped to the calling trainer."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from core.auth import require_trainer
from core.database import get_db
from models import User
from schemas import MessageOut, PlanTemplateCreate, PlanTemplateResponse, PlanTemplateUpdate
from services import templates

router = APIRouter(prefix="/v1/plan-templates", tags=["plan-templates"])


@router.post("", response_model=PlanTemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template(
    data: PlanTemplateCreate,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return templates.create(db, current_user, data)


@router.get("", response_model=List[PlanTemplateResponse])
def list_templates(
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return templates.list_for_trainer(db, current_user)


@router.get("/{template_id}", response_model=PlanTemplateResponse)
def get_template(
    template_id: UUID,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return templates.get_owned(db, current_user, template_id)


@router.put("/{template_id}", response_model=PlanTemplateResponse)
def update_template(
    template_id: UUID,
    data: PlanTemplateUpdate,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return templates.update(db, current_user, template_id, data)


@router.delete("/{template_id}", response_model=MessageOut)
def delete_template(
    template_id: UUID,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    templates.delete(db, current_user, template_id)
    return {"message": "Template deleted"}
