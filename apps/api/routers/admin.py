"""
Admin API Router

User management (create, edit, validate, activate/deactivate, delete) and
adjudication of pending trainer-change requests. Admin role only.
Destructive account actions require the admin to re-enter their password.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from core.auth import require_admin
from core.database import get_db
from models import User
from schemas import (
    AdjudicateRequest,
    AdminStatusChange,
    AdminUserCreate,
    AdminUserUpdate,
    MessageOut,
    PasswordConfirm,
    TrainerChangeRequestResponse,
    UserResponse,
)
from services import accounts, pairing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.get("/users", response_model=List[UserResponse])
def list_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return accounts.list_users(db)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    data: AdminUserCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = accounts.admin_create_user(
        db, data.username, data.password, data.role, name=data.name, email=data.email
    )
    logger.info(
        "Admin created user",
        extra={"extra_fields": {"admin_id": str(admin.id), "user_id": str(user.id), "role": user.role}},
    )
    return user


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    data: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return accounts.admin_update_user(db, admin, user_id, data.model_dump(exclude_unset=True))


@router.post("/users/{user_id}/validate", response_model=UserResponse)
def validate_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Make a trainer discoverable by clients."""
    return accounts.validate_trainer(db, user_id)


@router.post("/users/{user_id}/status", response_model=UserResponse)
def set_user_status(
    user_id: UUID,
    data: AdminStatusChange,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return accounts.set_status(db, admin, user_id, data.password, data.is_active)


@router.delete("/users/{user_id}", response_model=MessageOut)
def delete_user(
    user_id: UUID,
    data: PasswordConfirm,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    accounts.delete_user(db, admin, user_id, data.password)
    return {"message": "User permanently deleted"}


@router.get("/trainer-change-requests", response_model=List[TrainerChangeRequestResponse])
def list_trainer_change_requests(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return pairing.list_pending(db)


@router.post("/trainer-change-requests/{request_id}", response_model=TrainerChangeRequestResponse)
def adjudicate_trainer_change(
    request_id: UUID,
    data: AdjudicateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return pairing.adjudicate(db, request_id, admin, accept=data.accept)
