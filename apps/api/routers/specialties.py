"""
Specialty endpoints.

- GET /v1/specialties: public list of active specialties (cached)
- /v1/admin/specialties: admin catalogue management
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from core.auth import require_admin
from core.database import get_db
from models import User
from schemas import MessageOut, SpecialtyBrief, SpecialtyCreate, SpecialtyResponse, SpecialtyUpdate
from services import specialties

router = APIRouter(prefix="/v1/specialties", tags=["specialties"])
admin_router = APIRouter(prefix="/v1/admin/specialties", tags=["admin"])


@router.get("", response_model=List[SpecialtyBrief])
def list_active(db: Session = Depends(get_db)):
    return specialties.list_active(db)


@admin_router.get("", response_model=List[SpecialtyResponse])
def list_all(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return specialties.list_all(db)


@admin_router.post("", response_model=SpecialtyResponse, status_code=status.HTTP_201_CREATED)
def create(
    data: SpecialtyCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return specialties.create(db, data.name, description=data.description, icon=data.icon)


@admin_router.patch("/{specialty_id}", response_model=SpecialtyResponse)
def update(
    specialty_id: UUID,
    data: SpecialtyUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return specialties.update(db, specialty_id, data.model_dump(exclude_unset=True))


@admin_router.delete("/{specialty_id}", response_model=MessageOut)
def delete(
    specialty_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Refused with 409 while any trainer lists the specialty."""
    specialties.delete(db, specialty_id)
    return {"message": "Specialty removed"}
