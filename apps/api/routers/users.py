"""
User & profile API endpoints.

Own profile, password, weight and avatar; the trainer directory; the
client side of the pairing workflow; a trainer's view of their clients.
"""
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from core.auth import get_current_user, require_client, require_trainer
from core.database import get_db
from models import User
from schemas import (
    AssignTrainerRequest,
    AvatarResponse,
    ClientSummary,
    MessageOut,
    MissedWorkoutResult,
    PasswordChange,
    ProfileUpdate,
    TrainerChangeCreate,
    TrainerChangeRequestResponse,
    TrainerDetail,
    TrainerPage,
    UserCard,
    UserResponse,
    WeightResponse,
    WeightUpdate,
)
from services import accounts, entry_log, media_storage, pairing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserResponse)
def update_me(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Partial profile update. Unknown keys are rejected with 400."""
    return accounts.update_profile(db, current_user, data.model_dump(exclude_unset=True))


@router.patch("/me/password", response_model=MessageOut)
def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.change_password(
        db, current_user, data.current_password, data.new_password, data.confirm_password
    )
    return {"message": "Password changed"}


@router.post("/me/weight", response_model=WeightResponse)
def record_weight(
    data: WeightUpdate,
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db),
):
    user = accounts.record_weight(db, current_user, data.weight)
    return {
        "message": "Weight updated",
        "weight": user.weight,
        "initial_weight": user.initial_weight,
        "weight_lost": user.weight_lost,
        "last_weight_update": user.last_weight_update,
        "weight_history": user.weight_history,
    }


@router.post("/me/avatar", response_model=AvatarResponse)
def upload_avatar(
    avatar: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    content = avatar.file.read()
    stored = media_storage.store_avatar(content, avatar.filename, avatar.content_type)

    previous = current_user.avatar_url
    current_user.avatar_url = stored.url
    db.commit()

    if previous:
        media_storage.delete_by_url(previous)

    return {"avatar_url": stored.url}


@router.get("/support-agent", response_model=UserCard)
def support_agent(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Public card of the admin who answers support chats."""
    return accounts.support_agent(db)


@router.get("/trainers", response_model=TrainerPage)
def list_trainers(
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(accounts.TRAINERS_PAGE_SIZE, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return accounts.list_trainers(db, q=q, page=page, limit=limit)


@router.get("/trainers/{trainer_id}", response_model=TrainerDetail)
def get_trainer(trainer_id: UUID, db: Session = Depends(get_db)):
    trainer, clients_count = accounts.get_trainer(db, trainer_id)
    detail = TrainerDetail.model_validate(trainer)
    detail.clients_count = clients_count
    return detail


@router.post(
    "/me/assign-trainer",
    response_model=TrainerChangeRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_trainer(
    data: AssignTrainerRequest,
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db),
):
    """Ask a trainer to take the client on. The trainer must accept."""
    return pairing.request_assignment(db, current_user, data.trainer_id)


@router.post(
    "/me/request-trainer-change",
    response_model=TrainerChangeRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def request_trainer_change(
    data: TrainerChangeCreate,
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db),
):
    return pairing.request_assignment(db, current_user, data.new_trainer_id)


@router.get("/my-clients", response_model=List[ClientSummary])
def my_clients(
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return pairing.list_clients(db, current_user.id)


@router.post("/me/check-missed-workout", response_model=MissedWorkoutResult)
def check_missed_workout(
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db),
):
    return entry_log.missed_workout_check(db, current_user)


@router.get("/{client_id}", response_model=UserResponse)
def get_client(
    client_id: UUID,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return pairing.get_own_client(db, current_user, client_id)
