"""
Glue between the ORM rows of a project and the pure calculators.

project_summary() is what /summary, /analytics, the shared-link view and the
comparison endpoint all return, so every surface shows the same numbers.
"""

from typing import Optional

from sqlalchemy.orm import Session

from . import cost_calculator, models
from .currency import CurrencyConverter, normalize_code
from .financials import CostCategoryTotals, FinancialSettings, FinancialSummary, calculate_project_financials
from .money import as_float


def category_totals(project: models.Project) -> CostCategoryTotals:
    return CostCategoryTotals(
        materials_total=cost_calculator.materials_total(project.materials),
        labor_total=cost_calculator.labor_total(project.labor_items),
        equipment_total=cost_calculator.equipment_total(project.equipment_items),
        additional_total=cost_calculator.additional_total(project.additional_costs),
    )


def financial_summary(project: models.Project) -> FinancialSummary:
    return calculate_project_financials(category_totals(project), FinancialSettings.from_project(project))


def project_summary(
    project: models.Project,
    db: Optional[Session] = None,
    currency: Optional[str] = None,
) -> dict:
    """
    Category totals, risks total and the full financial rollup.

    With a target currency (and a session to read rates from) every amount is
    converted from the project currency; missing rates are reported, not fatal.
    """
    summary = financial_summary(project).as_dict()
    summary["risks_total"] = as_float(cost_calculator.risks_total(project.risks))

    result = {
        "project_id": project.id,
        "currency": project.currency,
        "financial_settings": FinancialSettings.from_project(project).as_dict(),
        "summary": summary,
        "missing_rates": [],
    }

    target = normalize_code(currency)
    if not target or db is None or target == normalize_code(project.currency):
        return result

    converter = CurrencyConverter.from_db(db)
    missing = converter.get_missing_rates(normalize_code(project.currency), target)
    if not missing:
        result["summary"] = {
            key: as_float(converter.convert(value, project.currency, target))
            for key, value in summary.items()
        }
        result["currency"] = target
    result["missing_rates"] = missing
    return result


def _row(item, fields) -> dict:
    return {name: getattr(item, name) for name in fields}


def project_snapshot(project: models.Project) -> dict:
    """Plain-dict copy of the project's cost inputs for the scenario simulator."""
    return {
        "currency": project.currency,
        "materials": [
            _row(m, ("id", "name", "quantity", "unit", "unit_price")) for m in project.materials
        ],
        "labor": [
            _row(w, ("id", "worker_type", "number_of_workers", "daily_rate", "total_days"))
            for w in project.labor_items
        ],
        "equipment": [
            _row(e, ("id", "name", "quantity", "cost_per_period", "usage_duration",
                     "maintenance_cost", "fuel_cost"))
            for e in project.equipment_items
        ],
        "additional": [
            _row(a, ("id", "category", "description", "amount")) for a in project.additional_costs
        ],
        "risks": [
            _row(r, ("id", "description", "probability", "impact_amount", "contingency_amount"))
            for r in project.risks
        ],
        "financial_settings": FinancialSettings.from_project(project).as_dict(),
    }
