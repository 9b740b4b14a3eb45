import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, load_project
from ..database import get_db
from ..rollup import project_snapshot
from ..scenario import simulate_scenario

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scenarios"])


@router.post("/scenarios", response_model=schemas.Scenario)
def create_scenario(
    scenario: schemas.ScenarioCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    db_scenario = models.Scenario(
        user_id=current_user.id,
        name=scenario.name,
        description=scenario.description,
        is_public=scenario.is_public,
        impact_rules=[rule.model_dump() for rule in scenario.impact_rules],
    )
    db.add(db_scenario)
    db.commit()
    db.refresh(db_scenario)
    return db_scenario


@router.get("/scenarios", response_model=List[schemas.Scenario])
def list_scenarios(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's own scenarios plus everyone's public ones."""
    return db.query(models.Scenario).filter(
        or_(models.Scenario.user_id == current_user.id, models.Scenario.is_public.is_(True))
    ).order_by(models.Scenario.created_at.desc()).all()


@router.delete("/scenarios/{scenario_id}")
def delete_scenario(
    scenario_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    scenario = db.query(models.Scenario).filter(
        models.Scenario.id == scenario_id,
        models.Scenario.user_id == current_user.id,
    ).first()
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    db.delete(scenario)
    db.commit()
    return {"deleted": True, "id": scenario_id}


@router.post("/projects/{project_id}/simulate")
def simulate(
    project_id: int,
    request: schemas.SimulateRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Run a saved scenario or inline rules against the project. Nothing is written."""
    project, _ = load_project(project_id, current_user, db)

    if request.scenario_id is not None:
        scenario = db.query(models.Scenario).filter(
            models.Scenario.id == request.scenario_id,
            or_(models.Scenario.user_id == current_user.id, models.Scenario.is_public.is_(True)),
        ).first()
        if not scenario:
            raise HTTPException(status_code=404, detail="Scenario not found")
        rules = scenario.impact_rules or []
    elif request.impact_rules:
        rules = [rule.model_dump() for rule in request.impact_rules]
    else:
        raise HTTPException(status_code=400, detail="Provide scenario_id or impact_rules")

    logger.info("Simulating %d rule(s) on project %s", len(rules), project_id)
    return simulate_scenario(project_snapshot(project), rules)
