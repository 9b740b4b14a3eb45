from dataclasses import fields
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models
from ..analytics import compare_projects, prepare_cost_distribution
from ..auth import get_current_user, load_project
from ..cost_calculator import risks_total
from ..currency import CurrencyConverter, normalize_code
from ..database import get_db
from ..financials import FinancialSummary
from ..money import as_float
from ..rollup import category_totals, financial_summary

router = APIRouter(tags=["analytics"])


@router.get("/projects/{project_id}/analytics")
def project_analytics(
    project_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, _ = load_project(project_id, current_user, db)
    distribution = prepare_cost_distribution(category_totals(project))
    return {
        "project_id": project.id,
        "currency": project.currency,
        **distribution,
        "risks_total": as_float(risks_total(project.risks)),
        "financials": financial_summary(project).as_dict(),
    }


def _converted(summary: FinancialSummary, converter: CurrencyConverter, source: str, target: str) -> FinancialSummary:
    values = {
        f.name: converter.convert(getattr(summary, f.name), source, target)
        for f in fields(FinancialSummary)
    }
    return FinancialSummary(**values)


@router.get("/analytics/comparison")
def project_comparison(
    currency: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Grand totals of all the caller's live projects, highest first.

    With ?currency= every project is converted so the totals are comparable;
    projects whose rate is missing keep their own currency.
    """
    projects = db.query(models.Project).filter(
        models.Project.user_id == current_user.id,
        models.Project.deleted_at.is_(None),
    ).all()

    target = normalize_code(currency)
    converter = CurrencyConverter.from_db(db) if target else None

    rows = []
    for project in projects:
        summary = financial_summary(project)
        row_currency = project.currency
        if converter and not converter.get_missing_rates(normalize_code(project.currency), target):
            summary = _converted(summary, converter, project.currency, target)
            row_currency = target
        rows.append({"project_id": project.id, "name": project.name, "currency": row_currency, "summary": summary})

    return compare_projects(rows)
