"""
Authentication API endpoints.

Provides:
- Registration (client or trainer)
- Login (JWT token generation, lockout protection)
- Self-service deactivation / reactivation
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from core.auth import get_current_user
from core.database import get_db
from core.security import create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from models import User
from schemas import (
    LoginRequest,
    MessageOut,
    PasswordConfirm,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from services import accounts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


def _token_response(user: User, message: str = None) -> dict:
    return {
        "access_token": create_access_token({"sub": str(user.id)}),
        "token_type": "bearer",
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": user,
        "message": message,
    }


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Create a client or trainer account. Trainers start unvalidated."""
    user = accounts.register(
        db,
        username=data.username,
        password=data.password,
        role=data.role,
        name=data.name,
        email=data.email,
    )
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """
    Exchange username/password for a bearer token.

    A deactivated account answers 403 with code ACCOUNT_DEACTIVATED so the
    client can offer reactivation.
    """
    user = accounts.authenticate(db, data.username, data.password)
    logger.info("User logged in", extra={"extra_fields": {"user_id": str(user.id)}})
    return _token_response(user)


@router.post("/deactivate", response_model=MessageOut)
def deactivate(
    data: PasswordConfirm,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.deactivate(db, current_user, data.password)
    return {"message": "Account deactivated"}


@router.post("/reactivate", response_model=TokenResponse)
def reactivate(data: LoginRequest, db: Session = Depends(get_db)):
    user = accounts.reactivate(db, data.username, data.password)
    return _token_response(user, message="Account reactivated")


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
