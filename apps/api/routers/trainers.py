"""
Trainer-side pairing endpoints: incoming requests, client removal, alerts.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from core.auth import require_trainer
from core.database import get_db
from models import User
from schemas import (
    AlertClientRequest,
    MessageOut,
    ResolveRequest,
    TrainerChangeRequestResponse,
)
from services import pairing

router = APIRouter(prefix="/v1/trainers", tags=["trainers"])


@router.get("/requests", response_model=List[TrainerChangeRequestResponse])
def pending_requests(
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    """Pending requests addressed to me, newest first."""
    return pairing.list_pending_for_trainer(db, current_user.id)


@router.post("/requests/{request_id}/resolve", response_model=TrainerChangeRequestResponse)
def resolve_request(
    request_id: UUID,
    data: ResolveRequest,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return pairing.resolve_request(db, request_id, current_user, accept=data.action == "accept")


@router.patch("/clients/{client_id}/remove", response_model=MessageOut)
def remove_client(
    client_id: UUID,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    pairing.remove_client(db, current_user, client_id)
    return {"message": "Client removed"}


@router.post("/alert-client", response_model=MessageOut)
def alert_client(
    data: AlertClientRequest,
    current_user: User = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    pairing.alert_client(db, current_user, data.client_id, data.message)
    return {"message": "Alert sent"}
