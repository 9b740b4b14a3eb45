"""
Estimator accounts and sessions.

Register and login both return a token pair. The refresh token is checked
twice on /refresh: its JWT signature and type, then its digest in auth_tokens.
Emails are matched case-insensitively.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Optional

from .. import models
from ..auth import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_current_user,
    hash_password,
    hash_token,
    store_refresh_token,
    verify_password,
)
from ..config import settings
from ..currency import normalize_code
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class Credentials(BaseModel):
    email: str
    password: str


class SignUp(Credentials):
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    default_currency: Optional[str] = None


def _find_user(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def _account(user: models.User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "default_currency": user.default_currency,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _session_for(user: models.User, db: Session) -> dict:
    """New access + refresh pair, with the refresh digest persisted."""
    refresh_token = create_refresh_token(user.id)
    store_refresh_token(db, user.id, refresh_token)
    return {
        "access_token": create_access_token(user.id),
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user_id": user.id,
        "user": _account(user),
    }


def _rejected(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


@router.post("/register")
def register(request: SignUp, db: Session = Depends(get_db)):
    if _find_user(db, request.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An estimator account already uses this email",
        )

    user = models.User(
        email=request.email.strip().lower(),
        password_hash=hash_password(request.password),
        full_name=request.full_name,
        default_currency=settings.DEFAULT_CURRENCY,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return _session_for(user, db)


@router.post("/login")
def login(request: Credentials, db: Session = Depends(get_db)):
    user = _find_user(db, request.email)
    if user is None or not verify_password(request.password, user.password_hash):
        raise _rejected("Email or password is incorrect")
    return _session_for(user, db)


@router.post("/refresh")
def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    """New access token for a stored, unexpired refresh token."""
    claims = decode_token(request.refresh_token)
    if claims.get("type") != REFRESH:
        raise _rejected("A refresh token is required here")

    stored = db.query(models.AuthToken).filter(
        models.AuthToken.token_hash == hash_token(request.refresh_token),
        models.AuthToken.token_type == REFRESH,
    ).first()
    if stored is None:
        raise _rejected("Unknown or revoked refresh token")
    if stored.expires_at < datetime.utcnow():
        raise _rejected("Refresh token expired")

    user = db.get(models.User, int(claims["sub"]))
    if user is None:
        raise _rejected("User not found")
    return {
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
        "user_id": user.id,
    }


@router.get("/me")
def me(current_user: models.User = Depends(get_current_user)):
    return _account(current_user)


@router.put("/profile")
def update_profile(
    update: ProfileUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Display name and the currency new projects start in."""
    changes = update.model_dump(exclude_unset=True)
    if changes.get("default_currency"):
        changes["default_currency"] = normalize_code(changes["default_currency"])
    for field, value in changes.items():
        setattr(current_user, field, value)

    current_user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(current_user)
    return _account(current_user)
