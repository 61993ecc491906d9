"""
Pairing ledger.

Trainer <-> client assignment and the request workflow that changes it.

Capacity (settings.TRAINER_CLIENT_CAPACITY) is checked when a request is
created AND again when it is accepted. Between the two a trainer can fill
up, and an acceptance that would exceed capacity is rejected while the
request stays pending. Trainer acceptance and admin adjudication share
`_resolve`, so both paths apply the same checks and side effects.

Requests are never deleted; decided rows are the audit trail.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from core.clock import utcnow
from core.config import settings
from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import (
    NotificationType,
    Plan,
    RequestStatus,
    TrainerChangeRequest,
    User,
    UserRole,
)
from services import notifications
from services.audit_logger import log_client_removed, log_pairing_requested, log_pairing_resolved

logger = logging.getLogger(__name__)

DEFAULT_ALERT_MESSAGE = "Your trainer noticed you have been away. Let's get back on track!"


def count_clients(db: Session, trainer_id: UUID) -> int:
    return db.query(User).filter(User.assigned_trainer_id == trainer_id).count()


def has_capacity(db: Session, trainer_id: UUID) -> bool:
    return count_clients(db, trainer_id) < settings.TRAINER_CLIENT_CAPACITY


def get_validated_trainer(db: Session, trainer_id: UUID) -> User:
    trainer = (
        db.query(User)
        .filter(
            User.id == trainer_id,
            User.role == UserRole.TRAINER.value,
            User.validated.is_(True),
            User.is_active.is_(True),
        )
        .first()
    )
    if not trainer:
        raise NotFoundError("Trainer")
    return trainer


def request_assignment(db: Session, client: User, trainer_id: UUID) -> TrainerChangeRequest:
    """
    Open a pending request from `client` to the trainer `trainer_id`.

    The client's current trainer (if any) is recorded on the request.
    """
    trainer = get_validated_trainer(db, trainer_id)

    if client.assigned_trainer_id == trainer.id:
        raise ValidationError("This trainer is already your trainer")

    pending = (
        db.query(TrainerChangeRequest)
        .filter(
            TrainerChangeRequest.client_id == client.id,
            TrainerChangeRequest.new_trainer_id == trainer.id,
            TrainerChangeRequest.status == RequestStatus.PENDING.value,
        )
        .first()
    )
    if pending:
        raise ConflictError("You already have a pending request for this trainer", "REQUEST_PENDING")

    if not has_capacity(db, trainer.id):
        raise ConflictError("This trainer has reached the maximum number of clients", "TRAINER_AT_CAPACITY")

    request = TrainerChangeRequest(
        client_id=client.id,
        current_trainer_id=client.assigned_trainer_id,
        new_trainer_id=trainer.id,
        status=RequestStatus.PENDING.value,
    )
    db.add(request)
    db.commit()

    log_pairing_requested(client.id, trainer.id, request.id, change=request.current_trainer_id is not None)
    return request


def list_pending_for_trainer(db: Session, trainer_id: UUID) -> List[TrainerChangeRequest]:
    return (
        db.query(TrainerChangeRequest)
        .options(joinedload(TrainerChangeRequest.client))
        .filter(
            TrainerChangeRequest.new_trainer_id == trainer_id,
            TrainerChangeRequest.status == RequestStatus.PENDING.value,
        )
        .order_by(TrainerChangeRequest.created_at.desc())
        .all()
    )


def list_pending(db: Session) -> List[TrainerChangeRequest]:
    """All pending requests, for admin review."""
    return (
        db.query(TrainerChangeRequest)
        .options(
            joinedload(TrainerChangeRequest.client),
            joinedload(TrainerChangeRequest.current_trainer),
            joinedload(TrainerChangeRequest.new_trainer),
        )
        .filter(TrainerChangeRequest.status == RequestStatus.PENDING.value)
        .order_by(TrainerChangeRequest.created_at.desc())
        .all()
    )


def _resolve(db: Session, request: TrainerChangeRequest, accept: bool, actor: User, by_admin: bool) -> TrainerChangeRequest:
    if request.status != RequestStatus.PENDING.value:
        raise ConflictError(f"Request has already been {request.status}", "REQUEST_ALREADY_RESOLVED")

    client = db.query(User).filter(User.id == request.client_id).first()

    if accept:
        # The target may have been demoted or deactivated while the request waited
        try:
            get_validated_trainer(db, request.new_trainer_id)
        except NotFoundError:
            raise ConflictError(
                "The trainer is no longer available for new clients",
                "TRAINER_UNAVAILABLE",
            )
        if not has_capacity(db, request.new_trainer_id):
            raise ConflictError(
                "The trainer has reached the maximum number of clients",
                "TRAINER_AT_CAPACITY",
            )
        if client is not None:
            client.assigned_trainer_id = request.new_trainer_id
        request.status = RequestStatus.ACCEPTED.value
        content = "Your trainer request was accepted. You are now on the same team!"
    else:
        request.status = RequestStatus.REJECTED.value
        content = "Your trainer request was not accepted this time."

    request.resolved_at = utcnow()

    if client is not None:
        notifications.notify(
            db,
            client,
            NotificationType.SYSTEM,
            content,
            related_id=request.id,
            respect_settings=False,
        )

    db.commit()

    log_pairing_resolved(actor.id, request.client_id, request.id, accepted=accept, by_admin=by_admin)
    logger.info(
        "Trainer request resolved",
        extra={"extra_fields": {"request_id": str(request.id), "status": request.status, "by_admin": by_admin}},
    )
    return request


def resolve_request(db: Session, request_id: UUID, trainer: User, accept: bool) -> TrainerChangeRequest:
    """Target trainer accepts or rejects a request addressed to them."""
    request = db.query(TrainerChangeRequest).filter(TrainerChangeRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Request")
    if request.new_trainer_id != trainer.id:
        raise ForbiddenError("This request is not addressed to you")
    return _resolve(db, request, accept, actor=trainer, by_admin=False)


def adjudicate(db: Session, request_id: UUID, admin: User, accept: bool) -> TrainerChangeRequest:
    """Administrative override: decide any pending request."""
    request = db.query(TrainerChangeRequest).filter(TrainerChangeRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Request")
    return _resolve(db, request, accept, actor=admin, by_admin=True)


def get_own_client(db: Session, trainer: User, client_id: UUID) -> User:
    client = db.query(User).filter(User.id == client_id).first()
    if not client:
        raise NotFoundError("Client")
    if client.assigned_trainer_id != trainer.id:
        raise ForbiddenError("This client is not assigned to you")
    return client


def list_clients(db: Session, trainer_id: UUID) -> List[User]:
    return (
        db.query(User)
        .filter(User.assigned_trainer_id == trainer_id, User.role == UserRole.CLIENT.value)
        .order_by(User.name, User.username)
        .all()
    )


def remove_client(db: Session, trainer: User, client_id: UUID) -> None:
    """Stop coaching a client: unassign, drop their plan, tell them."""
    client = get_own_client(db, trainer, client_id)

    client.assigned_trainer_id = None
    deleted = db.query(Plan).filter(Plan.client_id == client.id).delete(synchronize_session=False)

    notifications.notify(
        db,
        client,
        NotificationType.SYSTEM,
        "Your trainer has ended your coaching. You can pick a new trainer from the list.",
        related_id=trainer.id,
        respect_settings=False,
    )
    db.commit()

    log_client_removed(trainer.id, client.id, plan_deleted=bool(deleted))


def alert_client(db: Session, trainer: User, client_id: UUID, message: Optional[str] = None) -> None:
    client = (
        db.query(User)
        .filter(User.id == client_id, User.assigned_trainer_id == trainer.id)
        .first()
    )
    if not client:
        raise ForbiddenError("Client not found or not assigned to you")

    notifications.notify(
        db,
        client,
        NotificationType.ALERT,
        (message or "").strip() or DEFAULT_ALERT_MESSAGE,
        related_id=trainer.id,
    )
    db.commit()
