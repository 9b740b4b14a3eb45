"""
Identity and access for the estimator.

Two kinds of secrets are hashed with bcrypt (passlib): account passwords and
the passwords guarding external share links. Sessions are JWTs (python-jose):
a short-lived access token sent as a Bearer header, and a long-lived refresh
token whose SHA-256 digest is kept in auth_tokens so it can be revoked.

Project access is role based: owner, editor (internal share) or viewer
(internal share). Admins manage data shared by every user.
"""

import hashlib
import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from . import models

ADMIN = "admin"
OWNER = "owner"
EDITOR = models.ShareRole.EDITOR.value
VIEWER = models.ShareRole.VIEWER.value

ACCESS = "access"
REFRESH = "refresh"

# --- Password hashing ---

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """bcrypt hash for an account or share-link password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# --- Session tokens ---

bearer_scheme = HTTPBearer(auto_error=False)


def _signing_key() -> str:
    """The JWT_SECRET setting. Unset is a deployment error, reported as 500."""
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET is not configured on this server",
        )
    return settings.JWT_SECRET


def _encode(user_id: int, token_type: str, lifetime: timedelta, **claims) -> str:
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "exp": datetime.utcnow() + lifetime,
        **claims,
    }
    return jwt.encode(payload, _signing_key(), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _encode(user_id, ACCESS, timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES))


def create_refresh_token(user_id: int) -> str:
    """
    Refresh token for the estimator session.

    The jti makes every token unique, so two logins in the same second still
    get distinct rows in auth_tokens. Only the digest is stored.
    """
    return _encode(
        user_id, REFRESH, timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS), jti=str(uuid.uuid4()),
    )


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def decode_token(token: str) -> dict:
    """Claims of a valid, unexpired token; 401 for anything else."""
    try:
        return jwt.decode(token, _signing_key(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def store_refresh_token(db: Session, user_id: int, token: str) -> models.AuthToken:
    row = models.AuthToken(
        user_id=user_id,
        token_hash=hash_token(token),
        token_type=REFRESH,
        expires_at=datetime.utcnow() + timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
    )
    db.add(row)
    db.commit()
    return row


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


# --- Dependencies ---

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    """The estimator account behind the Bearer access token."""
    if credentials is None:
        raise _unauthorized("Authentication required")

    claims = decode_token(credentials.credentials)
    if claims.get("type") != ACCESS:
        raise _unauthorized("Refresh tokens cannot be used to call the API")
    if not claims.get("sub"):
        raise _unauthorized("Invalid token payload")

    user = db.query(models.User).filter(models.User.id == int(claims["sub"])).first()
    if not user:
        raise _unauthorized("User not found")
    return user


def require_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    """For endpoints that change data every user sees, such as currency rates."""
    if current_user.role != ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator rights required",
        )
    return current_user


# --- Project access ---

def project_role(project: models.Project, user: models.User, db: Session) -> Optional[str]:
    """owner | editor | viewer, or None when the user has no access."""
    if project.user_id == user.id:
        return OWNER
    share = db.query(models.ProjectShare).filter(
        models.ProjectShare.project_id == project.id,
        models.ProjectShare.shared_with_user_id == user.id,
    ).first()
    return share.role if share else None


def can_edit(role: Optional[str]) -> bool:
    return role in (OWNER, EDITOR)


def load_project(
    project_id: int,
    user: models.User,
    db: Session,
    require_edit: bool = False,
    require_owner: bool = False,
):
    """
    Fetch a live (not soft-deleted) project the user can access.

    Returns (project, role). Raises 404 when the project does not exist or is
    invisible to the user, 403 when the access level is too low.
    """
    project = db.query(models.Project).filter(
        models.Project.id == project_id,
        models.Project.deleted_at.is_(None),
    ).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    role = project_role(project, user, db)
    if role is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if require_owner and role != OWNER:
        raise HTTPException(status_code=403, detail="Only the project owner can do this")
    if require_edit and not can_edit(role):
        raise HTTPException(status_code=403, detail="You do not have edit rights on this project")
    return project, role
