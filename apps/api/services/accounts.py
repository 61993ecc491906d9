"""
Accounts and profiles.

Registration, credential checks, activation state, profile edits, body
weight tracking and the trainer directory. Admin user management lives
here too, since it edits the same rows with the same rules.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from core.account_security import clear_lockout, is_account_locked, record_login_attempt
from core.clock import local_date, local_today, utcnow
from core.exceptions import (
    AccountDeactivatedError,
    APIException,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from core.password_policy import validate_password
from core.security import get_password_hash, verify_password
from models import (
    Entry,
    Message,
    MessageHiddenFor,
    Notification,
    Plan,
    PlanTemplate,
    Specialty,
    TrainerChangeRequest,
    User,
    UserRole,
    WeightEntry,
)
from services.audit_logger import log_account_deleted, log_account_status, log_role_changed

logger = logging.getLogger(__name__)

MIN_WEIGHT_KG = 30
MAX_WEIGHT_KG = 300
TRAINERS_PAGE_SIZE = 12
ADMIN_USER_LIST_LIMIT = 300


# =============================================================================
# CREDENTIALS
# =============================================================================

def _check_password_policy(password: str) -> None:
    ok, errors = validate_password(password or "")
    if not ok:
        raise ValidationError(errors[0], field="password")


def _new_user(db: Session, username: str, password: str, role: str, name: Optional[str], email: Optional[str]) -> User:
    username = username.strip()
    if db.query(User.id).filter(User.username == username).first():
        raise ConflictError("Username already exists", "USERNAME_TAKEN")
    _check_password_policy(password)

    user = User(
        username=username,
        password_hash=get_password_hash(password),
        role=role,
        is_active=True,
        # Trainers are hidden from clients until an admin validates them
        validated=role != UserRole.TRAINER.value,
        name=(name or "").strip(),
        email=(email or "").strip(),
    )
    db.add(user)
    return user


def register(db: Session, username: str, password: str, role: str = "client",
             name: Optional[str] = None, email: Optional[str] = None) -> User:
    if role not in (UserRole.CLIENT.value, UserRole.TRAINER.value):
        raise ValidationError("Role must be client or trainer", field="role")
    user = _new_user(db, username, password, role, name, email)
    db.commit()
    logger.info("User registered", extra={"extra_fields": {"user_id": str(user.id), "role": role}})
    return user


def _check_credentials(db: Session, username: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.username == (username or "").strip()).first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    """
    Login check. Deactivation is reported only after the password matched,
    so the response does not reveal account state to strangers.
    """
    locked, seconds = is_account_locked(username)
    if locked:
        minutes = max(1, math.ceil((seconds or 0) / 60))
        raise APIException(
            status_code=429,
            detail=f"Too many failed login attempts. Try again in {minutes} minutes.",
            error_code="ACCOUNT_LOCKED",
            headers={"Retry-After": str(seconds or 0)},
        )

    user = _check_credentials(db, username, password)
    if user is None:
        record_login_attempt(username, success=False)
        raise ValidationError("Invalid credentials")

    record_login_attempt(username, success=True)
    if not user.is_active:
        raise AccountDeactivatedError()
    return user


def deactivate(db: Session, user: User, password: str) -> None:
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Incorrect password")
    user.is_active = False
    db.commit()
    log_account_status(user.id, user.id, is_active=False, source="self")


def reactivate(db: Session, username: str, password: str) -> User:
    user = db.query(User).filter(User.username == (username or "").strip()).first()
    if user is None:
        raise NotFoundError("User")
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")

    user.is_active = True
    db.commit()
    clear_lockout(username)
    log_account_status(user.id, user.id, is_active=True, source="self")
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str, confirm_password: str) -> None:
    if not current_password or not new_password or not confirm_password:
        raise ValidationError("All fields are required")
    if new_password != confirm_password:
        raise ValidationError("New passwords do not match", field="confirm_password")
    _check_password_policy(new_password)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", field="current_password")

    user.password_hash = get_password_hash(new_password)
    db.commit()


# =============================================================================
# PROFILE
# =============================================================================

_TEXT_FIELDS = ("name", "email", "bio", "goal")


def _set_specialties(db: Session, user: User, specialty_ids: List[UUID]) -> None:
    wanted = set(specialty_ids)
    found = (
        db.query(Specialty)
        .filter(Specialty.id.in_(wanted), Specialty.active.is_(True))
        .all()
        if wanted else []
    )
    if len(found) != len(wanted):
        raise ValidationError("Unknown or inactive specialty", field="specialty_ids")
    user.specialties = found


def update_profile(db: Session, user: User, changes: Dict[str, Any]) -> User:
    """
    Apply a partial profile edit. `changes` holds only the keys the caller sent.

    Empty strings clear a field.
    """
    if "specialty_ids" in changes and user.role != UserRole.TRAINER.value:
        raise ValidationError("Invalid fields for update", field="specialty_ids")

    for key, value in changes.items():
        if key == "specialty_ids":
            _set_specialties(db, user, value or [])
        elif key in _TEXT_FIELDS:
            setattr(user, key, (value or "").strip())
        elif key == "avatar_url":
            user.avatar_url = value or None
        elif key in ("weight", "height", "birth_date"):
            setattr(user, key, value)
        else:
            raise ValidationError("Invalid fields for update")

    db.commit()
    return user


def check_weight(weight: float) -> None:
    if weight is None or not (MIN_WEIGHT_KG < weight < MAX_WEIGHT_KG):
        raise ValidationError(f"Invalid weight ({MIN_WEIGHT_KG}-{MAX_WEIGHT_KG} kg)", field="weight")


def apply_weight(user: User, weight: float) -> None:
    """
    Record a scale reading on `user` without committing.

    At most one history point per local day: a second reading on the same
    day overwrites the latest point instead of appending.
    """
    check_weight(weight)
    now = utcnow()

    if not user.initial_weight:
        user.initial_weight = weight
    user.weight = weight
    user.last_weight_update = now

    history = user.weight_history
    latest = history[-1] if history else None
    if latest is None or local_date(latest.recorded_at) < local_today():
        history.append(WeightEntry(weight=weight, recorded_at=now))
    else:
        latest.weight = weight
        latest.recorded_at = now

    user.weight_lost = round(user.initial_weight - weight, 1)


def record_weight(db: Session, user: User, weight: float) -> User:
    apply_weight(user, weight)
    db.commit()
    return user


# =============================================================================
# DIRECTORY
# =============================================================================

def _trainer_query(db: Session):
    return db.query(User).filter(
        User.role == UserRole.TRAINER.value,
        User.validated.is_(True),
        User.is_active.is_(True),
    )


def list_trainers(db: Session, q: Optional[str] = None, page: int = 1, limit: int = TRAINERS_PAGE_SIZE) -> Dict[str, Any]:
    page = max(1, page)
    limit = max(1, limit)

    query = _trainer_query(db)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.username.ilike(pattern)))

    total = query.count()
    trainers = (
        query.options(selectinload(User.specialties))
        .order_by(User.name, User.username)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "trainers": trainers,
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit) if total else 0,
    }


def get_trainer(db: Session, trainer_id: UUID) -> Tuple[User, int]:
    trainer = _trainer_query(db).filter(User.id == trainer_id).first()
    if not trainer:
        raise NotFoundError("Trainer")
    clients = db.query(User).filter(User.assigned_trainer_id == trainer.id).count()
    return trainer, clients


def support_agent(db: Session) -> User:
    admin = (
        db.query(User)
        .filter(User.role == UserRole.ADMIN.value, User.is_active.is_(True))
        .order_by(User.created_at)
        .first()
    )
    if not admin:
        raise NotFoundError("Support agent")
    return admin


# =============================================================================
# ADMIN
# =============================================================================

def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc()).limit(ADMIN_USER_LIST_LIMIT).all()


def get_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User")
    return user


def admin_create_user(db: Session, username: str, password: str, role: str,
                      name: Optional[str] = None, email: Optional[str] = None) -> User:
    user = _new_user(db, username, password, role, name, email)
    db.commit()
    return user


def admin_update_user(db: Session, admin: User, user_id: UUID, changes: Dict[str, Any]) -> User:
    user = get_user(db, user_id)

    username = changes.pop("username", None)
    if username and username.strip() != user.username:
        if db.query(User.id).filter(User.username == username.strip(), User.id != user.id).first():
            raise ConflictError("Username already exists", "USERNAME_TAKEN")
        user.username = username.strip()

    role = changes.pop("role", None)
    if role and role != user.role:
        log_role_changed(admin.id, user.id, before=user.role, after=role)
        user.role = role

    password = changes.pop("password", None)
    if password:
        _check_password_policy(password)
        user.password_hash = get_password_hash(password)

    for key in _TEXT_FIELDS:
        if key in changes:
            setattr(user, key, (changes[key] or "").strip())

    db.commit()
    return user


def validate_trainer(db: Session, user_id: UUID) -> User:
    user = get_user(db, user_id)
    user.validated = True
    db.commit()
    return user


def _confirm_admin(admin: User, password: str, target: User, verb: str) -> None:
    if not password:
        raise ValidationError("Password is required", field="password")
    if not verify_password(password, admin.password_hash):
        raise UnauthorizedError("Incorrect administrator password")
    if target.id == admin.id:
        raise ValidationError(f"You cannot {verb} your own account here")


def set_status(db: Session, admin: User, user_id: UUID, password: str, is_active: bool) -> User:
    user = get_user(db, user_id)
    _confirm_admin(admin, password, user, "change the status of")
    user.is_active = is_active
    db.commit()
    log_account_status(admin.id, user.id, is_active=is_active, source="admin")
    return user


def delete_user(db: Session, admin: User, user_id: UUID, password: str) -> None:
    """Permanently delete a user together with everything that hangs off them."""
    user = get_user(db, user_id)
    _confirm_admin(admin, password, user, "delete")

    unassigned = (
        db.query(User)
        .filter(User.assigned_trainer_id == user.id)
        .update({User.assigned_trainer_id: None}, synchronize_session=False)
    )

    message_ids = db.query(Message.id).filter(
        or_(Message.sender_id == user.id, Message.recipient_id == user.id)
    )
    db.query(MessageHiddenFor).filter(
        or_(MessageHiddenFor.user_id == user.id, MessageHiddenFor.message_id.in_(message_ids))
    ).delete(synchronize_session=False)
    db.query(Message).filter(
        or_(Message.sender_id == user.id, Message.recipient_id == user.id)
    ).delete(synchronize_session=False)

    db.query(Notification).filter(Notification.recipient_id == user.id).delete(synchronize_session=False)
    db.query(Entry).filter(Entry.client_id == user.id).delete(synchronize_session=False)
    db.query(Plan).filter(
        or_(Plan.client_id == user.id, Plan.trainer_id == user.id)
    ).delete(synchronize_session=False)
    db.query(PlanTemplate).filter(PlanTemplate.trainer_id == user.id).delete(synchronize_session=False)

    db.query(TrainerChangeRequest).filter(
        TrainerChangeRequest.current_trainer_id == user.id
    ).update({TrainerChangeRequest.current_trainer_id: None}, synchronize_session=False)
    db.query(TrainerChangeRequest).filter(
        or_(TrainerChangeRequest.client_id == user.id, TrainerChangeRequest.new_trainer_id == user.id)
    ).delete(synchronize_session=False)

    role = user.role
    db.delete(user)
    db.commit()

    log_account_deleted(admin.id, user_id, role=role, unassigned_clients=unassigned)
