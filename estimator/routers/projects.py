import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import OWNER, get_current_user, load_project
from ..config import settings
from ..currency import normalize_code
from ..database import get_db
from ..rollup import project_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def project_to_dict(project: models.Project, role: Optional[str] = None) -> dict:
    return {
        "id": project.id,
        "user_id": project.user_id,
        "name": project.name,
        "description": project.description,
        "type": project.type,
        "size": project.size,
        "size_unit": project.size_unit,
        "location": project.location,
        "client_requirements": project.client_requirements,
        "duration_days": project.duration_days,
        "duration_unit": project.duration_unit,
        "currency": project.currency,
        "overhead_percent": project.overhead_percent,
        "contingency_percent": project.contingency_percent,
        "markup_percent": project.markup_percent,
        "tax_percent": project.tax_percent,
        "created_at": project.created_at.isoformat() if project.created_at else None,
        "updated_at": project.updated_at.isoformat() if project.updated_at else None,
        "role": role,
    }


@router.post("/")
def create_project(
    project: schemas.ProjectCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = project.model_dump(exclude={"financial_settings"})
    data["currency"] = normalize_code(data.get("currency")) or current_user.default_currency or settings.DEFAULT_CURRENCY

    if project.financial_settings is not None:
        financial = project.financial_settings.model_dump()
    else:
        financial = {
            "overhead_percent": settings.DEFAULT_OVERHEAD_PERCENT,
            "contingency_percent": settings.DEFAULT_CONTINGENCY_PERCENT,
            "markup_percent": settings.DEFAULT_MARKUP_PERCENT,
            "tax_percent": settings.DEFAULT_TAX_PERCENT,
        }

    db_project = models.Project(user_id=current_user.id, **data, **financial)
    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    logger.info("Project %s created by user %s", db_project.id, current_user.id)
    return project_to_dict(db_project, OWNER)


@router.get("/")
def list_projects(
    skip: int = 0,
    limit: int = 100,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    projects = db.query(models.Project).filter(
        models.Project.user_id == current_user.id,
        models.Project.deleted_at.is_(None),
    ).order_by(models.Project.updated_at.desc()).offset(skip).limit(limit).all()
    return [project_to_dict(p, OWNER) for p in projects]


@router.get("/shared")
def list_shared_projects(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Projects other users shared with the caller, with the caller's role."""
    rows = db.query(models.Project, models.ProjectShare.role).join(
        models.ProjectShare, models.ProjectShare.project_id == models.Project.id,
    ).filter(
        models.ProjectShare.shared_with_user_id == current_user.id,
        models.Project.deleted_at.is_(None),
    ).order_by(models.Project.updated_at.desc()).all()
    return [project_to_dict(project, role) for project, role in rows]


@router.get("/{project_id}")
def get_project(
    project_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, role = load_project(project_id, current_user, db)
    return project_to_dict(project, role)


@router.patch("/{project_id}")
def update_project(
    project_id: int,
    update: schemas.ProjectUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, role = load_project(project_id, current_user, db, require_edit=True)
    update_data = update.model_dump(exclude_unset=True)
    if "currency" in update_data:
        update_data["currency"] = normalize_code(update_data["currency"]) or project.currency
    if update_data.get("name", "") is None:
        del update_data["name"]
    for field, value in update_data.items():
        setattr(project, field, value)
    db.commit()
    db.refresh(project)
    return project_to_dict(project, role)


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, _ = load_project(project_id, current_user, db, require_owner=True)
    project.deleted_at = datetime.utcnow()
    db.commit()
    logger.info("Project %s soft-deleted by user %s", project_id, current_user.id)
    return {"deleted": True, "project_id": project_id}


@router.put("/{project_id}/financial-settings")
def update_financial_settings(
    project_id: int,
    update: schemas.FinancialSettingsUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, _ = load_project(project_id, current_user, db, require_edit=True)
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(project, field, value if value is not None else 0.0)
    db.commit()
    db.refresh(project)
    return project_summary(project)


@router.get("/{project_id}/summary")
def get_project_summary(
    project_id: int,
    currency: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, _ = load_project(project_id, current_user, db)
    return project_summary(project, db, currency)
