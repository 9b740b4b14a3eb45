"""
Line items and groups of a project.

Reads need view access, writes need edit access. Derived columns
(labor/equipment total_cost, risk contingency_amount) are recomputed on every
write so stored rows always agree with the calculators.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, load_project
from ..cost_calculator import equipment_cost, labor_cost
from ..database import get_db
from ..money import as_float
from ..risk import calculate_risk_contingency

router = APIRouter(prefix="/projects/{project_id}", tags=["items"])


def _get_item(db: Session, model, project_id: int, item_id: int):
    item = db.query(model).filter(model.id == item_id, model.project_id == project_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


def _check_group(db: Session, project_id: int, group_id: Optional[int]):
    if group_id is None:
        return
    group = db.query(models.ProjectGroup).filter(
        models.ProjectGroup.id == group_id,
        models.ProjectGroup.project_id == project_id,
    ).first()
    if not group:
        raise HTTPException(status_code=400, detail="Group does not belong to this project")


# Explicit nulls only clear optional columns
_NULLABLE = {"group_id", "description", "supplier_options", "type", "mitigation_plan"}


def _apply(item, update_data: dict):
    for field, value in update_data.items():
        if value is None and field not in _NULLABLE:
            continue
        setattr(item, field, value)


def _save(db: Session, item):
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def _delete(db: Session, item) -> dict:
    item_id = item.id
    db.delete(item)
    db.commit()
    return {"deleted": True, "id": item_id}


# --- Derived columns ---

def _recalculate_labor(item: models.LaborItem):
    item.total_cost = as_float(labor_cost(item.number_of_workers, item.daily_rate, item.total_days))


def _recalculate_equipment(item: models.EquipmentItem):
    cost = equipment_cost(
        item.quantity, item.cost_per_period, item.usage_duration,
        item.maintenance_cost, item.fuel_cost,
    )
    item.total_cost = as_float(cost.total_cost)


def _recalculate_risk(item: models.Risk):
    item.contingency_amount = as_float(calculate_risk_contingency(item.impact_amount, item.probability))


# --- Groups ---

@router.get("/groups", response_model=List[schemas.Group])
def list_groups(project_id: int, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    project, _ = load_project(project_id, current_user, db)
    return project.groups


@router.post("/groups", response_model=schemas.Group)
def create_group(
    project_id: int,
    group: schemas.GroupCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, _ = load_project(project_id, current_user, db, require_edit=True)
    sort_order = group.sort_order
    if sort_order is None:
        sort_order = len(project.groups)
    db_group = models.ProjectGroup(
        project_id=project_id, user_id=current_user.id, name=group.name, sort_order=sort_order,
    )
    return _save(db, db_group)


@router.put("/groups/reorder", response_model=List[schemas.Group])
def reorder_groups(
    project_id: int,
    reorder: schemas.GroupReorder,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set sort_order from the position of each id in group_ids."""
    project, _ = load_project(project_id, current_user, db, require_edit=True)
    by_id = {g.id: g for g in project.groups}
    unknown = [gid for gid in reorder.group_ids if gid not in by_id]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown group ids: {unknown}")
    for position, gid in enumerate(reorder.group_ids):
        by_id[gid].sort_order = position
    db.commit()
    return db.query(models.ProjectGroup).filter(
        models.ProjectGroup.project_id == project_id
    ).order_by(models.ProjectGroup.sort_order).all()


@router.patch("/groups/{group_id}", response_model=schemas.Group)
def update_group(
    project_id: int,
    group_id: int,
    update: schemas.GroupUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    group = _get_item(db, models.ProjectGroup, project_id, group_id)
    _apply(group, update.model_dump(exclude_unset=True, exclude_none=True))
    return _save(db, group)


@router.delete("/groups/{group_id}")
def delete_group(
    project_id: int,
    group_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Items filed under the group are kept and become ungrouped."""
    load_project(project_id, current_user, db, require_edit=True)
    group = _get_item(db, models.ProjectGroup, project_id, group_id)
    for model in (models.MaterialItem, models.LaborItem, models.EquipmentItem, models.AdditionalCost):
        db.query(model).filter(model.group_id == group_id).update(
            {model.group_id: None}, synchronize_session=False,
        )
    return _delete(db, group)


# --- Materials ---

@router.get("/materials", response_model=List[schemas.Material])
def list_materials(project_id: int, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    project, _ = load_project(project_id, current_user, db)
    return project.materials


@router.post("/materials", response_model=schemas.Material)
def create_material(
    project_id: int,
    item: schemas.MaterialCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    _check_group(db, project_id, item.group_id)
    db_item = models.MaterialItem(project_id=project_id, user_id=current_user.id, **item.model_dump())
    return _save(db, db_item)


@router.patch("/materials/{item_id}", response_model=schemas.Material)
def update_material(
    project_id: int,
    item_id: int,
    update: schemas.MaterialUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    item = _get_item(db, models.MaterialItem, project_id, item_id)
    update_data = update.model_dump(exclude_unset=True)
    _check_group(db, project_id, update_data.get("group_id"))
    _apply(item, update_data)
    return _save(db, item)


@router.delete("/materials/{item_id}")
def delete_material(
    project_id: int,
    item_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    return _delete(db, _get_item(db, models.MaterialItem, project_id, item_id))


# --- Labor ---

@router.get("/labor", response_model=List[schemas.Labor])
def list_labor(project_id: int, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    project, _ = load_project(project_id, current_user, db)
    return project.labor_items


@router.post("/labor", response_model=schemas.Labor)
def create_labor(
    project_id: int,
    item: schemas.LaborCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    _check_group(db, project_id, item.group_id)
    db_item = models.LaborItem(project_id=project_id, user_id=current_user.id, **item.model_dump())
    _recalculate_labor(db_item)
    return _save(db, db_item)


@router.patch("/labor/{item_id}", response_model=schemas.Labor)
def update_labor(
    project_id: int,
    item_id: int,
    update: schemas.LaborUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    item = _get_item(db, models.LaborItem, project_id, item_id)
    update_data = update.model_dump(exclude_unset=True)
    _check_group(db, project_id, update_data.get("group_id"))
    _apply(item, update_data)
    _recalculate_labor(item)
    return _save(db, item)


@router.delete("/labor/{item_id}")
def delete_labor(
    project_id: int,
    item_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    return _delete(db, _get_item(db, models.LaborItem, project_id, item_id))


# --- Equipment ---

@router.get("/equipment", response_model=List[schemas.Equipment])
def list_equipment(project_id: int, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    project, _ = load_project(project_id, current_user, db)
    return project.equipment_items


@router.post("/equipment", response_model=schemas.Equipment)
def create_equipment(
    project_id: int,
    item: schemas.EquipmentCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    _check_group(db, project_id, item.group_id)
    data = item.model_dump()
    data["rental_or_purchase"] = item.rental_or_purchase.value
    db_item = models.EquipmentItem(project_id=project_id, user_id=current_user.id, **data)
    _recalculate_equipment(db_item)
    return _save(db, db_item)


@router.patch("/equipment/{item_id}", response_model=schemas.Equipment)
def update_equipment(
    project_id: int,
    item_id: int,
    update: schemas.EquipmentUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    item = _get_item(db, models.EquipmentItem, project_id, item_id)
    update_data = update.model_dump(exclude_unset=True)
    _check_group(db, project_id, update_data.get("group_id"))
    if update_data.get("rental_or_purchase") is not None:
        update_data["rental_or_purchase"] = update_data["rental_or_purchase"].value
    _apply(item, update_data)
    _recalculate_equipment(item)
    return _save(db, item)


@router.delete("/equipment/{item_id}")
def delete_equipment(
    project_id: int,
    item_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    return _delete(db, _get_item(db, models.EquipmentItem, project_id, item_id))


# --- Additional costs ---

@router.get("/additional-costs", response_model=List[schemas.AdditionalCost])
def list_additional_costs(project_id: int, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    project, _ = load_project(project_id, current_user, db)
    return project.additional_costs


@router.post("/additional-costs", response_model=schemas.AdditionalCost)
def create_additional_cost(
    project_id: int,
    item: schemas.AdditionalCostCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    _check_group(db, project_id, item.group_id)
    db_item = models.AdditionalCost(project_id=project_id, user_id=current_user.id, **item.model_dump())
    return _save(db, db_item)


@router.patch("/additional-costs/{item_id}", response_model=schemas.AdditionalCost)
def update_additional_cost(
    project_id: int,
    item_id: int,
    update: schemas.AdditionalCostUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    item = _get_item(db, models.AdditionalCost, project_id, item_id)
    update_data = update.model_dump(exclude_unset=True)
    _check_group(db, project_id, update_data.get("group_id"))
    _apply(item, update_data)
    return _save(db, item)


@router.delete("/additional-costs/{item_id}")
def delete_additional_cost(
    project_id: int,
    item_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    return _delete(db, _get_item(db, models.AdditionalCost, project_id, item_id))


# --- Risks ---

@router.get("/risks", response_model=List[schemas.Risk])
def list_risks(project_id: int, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    project, _ = load_project(project_id, current_user, db)
    return project.risks


@router.post("/risks", response_model=schemas.Risk)
def create_risk(
    project_id: int,
    item: schemas.RiskCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    db_item = models.Risk(project_id=project_id, user_id=current_user.id, **item.model_dump())
    _recalculate_risk(db_item)
    return _save(db, db_item)


@router.patch("/risks/{item_id}", response_model=schemas.Risk)
def update_risk(
    project_id: int,
    item_id: int,
    update: schemas.RiskUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    item = _get_item(db, models.Risk, project_id, item_id)
    _apply(item, update.model_dump(exclude_unset=True))
    _recalculate_risk(item)
    return _save(db, item)


@router.delete("/risks/{item_id}")
def delete_risk(
    project_id: int,
    item_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_project(project_id, current_user, db, require_edit=True)
    return _delete(db, _get_item(db, models.Risk, project_id, item_id))
