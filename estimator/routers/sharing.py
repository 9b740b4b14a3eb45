"""
Project sharing.

Internal shares give another registered user viewer or editor rights and are
managed by the owner only. External links are read-only: a random access
token plus a bcrypt-hashed password, valid until expires_at. Editors may
create them. POST /share/verify is the only unauthenticated endpoint here.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import VIEWER, get_current_user, hash_password, load_project, verify_password
from ..config import settings
from ..database import get_db
from ..rollup import project_summary
from .projects import project_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sharing"])


def _share_to_dict(share: models.ProjectShare) -> dict:
    return {
        "id": share.id,
        "project_id": share.project_id,
        "user_id": share.shared_with_user_id,
        "email": share.shared_with.email if share.shared_with else None,
        "full_name": share.shared_with.full_name if share.shared_with else None,
        "role": share.role,
        "created_at": share.created_at.isoformat() if share.created_at else None,
    }


def _link_to_dict(link: models.SharedProjectLink) -> dict:
    """Never expose password_hash."""
    return {
        "id": link.id,
        "project_id": link.project_id,
        "access_token": link.access_token,
        "expires_at": link.expires_at.isoformat(),
        "expired": link.expires_at < datetime.utcnow(),
        "created_by_user_id": link.created_by_user_id,
        "created_at": link.created_at.isoformat() if link.created_at else None,
    }


def _get_share(db: Session, project_id: int, share_id: int) -> models.ProjectShare:
    share = db.query(models.ProjectShare).filter(
        models.ProjectShare.id == share_id,
        models.ProjectShare.project_id == project_id,
    ).first()
    if not share:
        raise HTTPException(status_code=404, detail="Share not found")
    return share


# --- Internal shares ---

@router.get("/projects/{project_id}/shares")
def list_shares(
    project_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, _ = load_project(project_id, current_user, db, require_owner=True)
    return [_share_to_dict(s) for s in project.shares]


@router.post("/projects/{project_id}/shares")
def add_share(
    project_id: int,
    request: schemas.InternalShareCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_owner=True)

    email = request.email.strip().lower()
    user = db.query(models.User).filter(models.User.email == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="No user with this email")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You already own this project")

    existing = db.query(models.ProjectShare).filter(
        models.ProjectShare.project_id == project_id,
        models.ProjectShare.shared_with_user_id == user.id,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Project is already shared with this user")

    share = models.ProjectShare(project_id=project_id, shared_with_user_id=user.id, role=request.role.value)
    db.add(share)
    db.commit()
    db.refresh(share)
    logger.info("Project %s shared with user %s as %s", project_id, user.id, share.role)
    return _share_to_dict(share)


@router.patch("/projects/{project_id}/shares/{share_id}")
def update_share(
    project_id: int,
    share_id: int,
    request: schemas.InternalShareUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_owner=True)
    share = _get_share(db, project_id, share_id)
    share.role = request.role.value
    db.commit()
    db.refresh(share)
    return _share_to_dict(share)


@router.delete("/projects/{project_id}/shares/{share_id}")
def delete_share(
    project_id: int,
    share_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_owner=True)
    share = _get_share(db, project_id, share_id)
    db.delete(share)
    db.commit()
    return {"deleted": True, "id": share_id}


# --- External links ---

@router.get("/projects/{project_id}/links")
def list_links(
    project_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, _ = load_project(project_id, current_user, db, require_edit=True)
    return [_link_to_dict(link) for link in project.share_links]


@router.post("/projects/{project_id}/links")
def create_link(
    project_id: int,
    request: schemas.ExternalLinkCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)

    # Stored and compared as naive UTC
    expires_at = request.expires_at
    if expires_at.tzinfo is not None:
        expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)
    now = datetime.utcnow()
    if expires_at <= now:
        raise HTTPException(status_code=400, detail="Expiry date must be in the future")
    if expires_at > now + timedelta(days=settings.SHARE_LINK_MAX_DAYS):
        raise HTTPException(
            status_code=400,
            detail=f"Expiry date must be within {settings.SHARE_LINK_MAX_DAYS} days",
        )

    link = models.SharedProjectLink(
        project_id=project_id,
        created_by_user_id=current_user.id,
        access_token=str(uuid.uuid4()),
        password_hash=hash_password(request.password),
        expires_at=expires_at,
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    logger.info("Share link %s created for project %s, expires %s", link.id, project_id, expires_at.isoformat())
    return _link_to_dict(link)


@router.delete("/projects/{project_id}/links/{link_id}")
def delete_link(
    project_id: int,
    link_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    link = db.query(models.SharedProjectLink).filter(
        models.SharedProjectLink.id == link_id,
        models.SharedProjectLink.project_id == project_id,
    ).first()
    if not link:
        raise HTTPException(status_code=404, detail="Share link not found")
    db.delete(link)
    db.commit()
    logger.info("Share link %s for project %s revoked", link_id, project_id)
    return {"deleted": True, "id": link_id}


@router.post("/share/verify")
def verify_share_link(request: schemas.ShareVerifyRequest, db: Session = Depends(get_db)):
    """Read-only project view for holders of an access token and its password."""
    if not request.access_token or not request.password:
        raise HTTPException(status_code=400, detail="Access token and password are required")

    link = db.query(models.SharedProjectLink).filter(
        models.SharedProjectLink.access_token == request.access_token
    ).first()
    if not link or link.project is None or link.project.deleted_at is not None:
        logger.warning("Share link verification failed: unknown token")
        raise HTTPException(status_code=404, detail="Share link not found")

    if link.expires_at < datetime.utcnow():
        logger.warning("Share link %s used after expiry", link.id)
        raise HTTPException(status_code=403, detail="Share link has expired")

    if not verify_password(request.password, link.password_hash):
        logger.warning("Share link %s: wrong password", link.id)
        raise HTTPException(status_code=401, detail="Invalid password")

    project = link.project
    rates = db.query(models.CurrencyRate).order_by(models.CurrencyRate.currency_code).all()
    logger.info("Share link %s opened project %s", link.id, project.id)
    return {
        "project": project_to_dict(project, VIEWER),
        "totals": project_summary(project),
        "currency_rates": {r.currency_code: r.rate_to_usd for r in rates},
        "expires_at": link.expires_at.isoformat(),
    }
