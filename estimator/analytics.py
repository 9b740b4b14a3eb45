"""
Analytics data for the charts: cost distribution within a project and a
grand-total comparison across projects. Returns plain dicts, ready for JSON.
"""

from typing import Iterable, List

from .financials import CostCategoryTotals, FinancialSummary
from .money import as_float, safe_add, safe_div, safe_mult

CATEGORY_LABELS = [
    ("materials", "Materials"),
    ("labor", "Labor"),
    ("equipment", "Equipment"),
    ("additional", "Additional Costs"),
]


def prepare_cost_distribution(totals: CostCategoryTotals) -> dict:
    values = {
        "materials": totals.materials_total,
        "labor": totals.labor_total,
        "equipment": totals.equipment_total,
        "additional": totals.additional_total,
    }
    total_cost = safe_add(*values.values())

    chart_data = []
    for key, label in CATEGORY_LABELS:
        share = safe_div(values[key], total_cost, decimals=6)
        chart_data.append({
            "key": key,
            "name": label,
            "value": as_float(safe_add(values[key])),
            "percent": as_float(safe_mult(share, 100)),
        })

    return {"chart_data": chart_data, "total_cost": as_float(total_cost)}


def compare_projects(rows: Iterable[dict]) -> List[dict]:
    """
    rows: [{"project_id", "name", "currency", "summary": FinancialSummary}, ...]
    Returns one entry per project, highest grand total first.
    """
    comparison = []
    for row in rows:
        summary: FinancialSummary = row["summary"]
        comparison.append({
            "project_id": row["project_id"],
            "name": row["name"],
            "currency": row.get("currency"),
            "direct_costs": as_float(summary.direct_costs),
            "grand_total": as_float(summary.grand_total),
        })
    comparison.sort(key=lambda r: r["grand_total"], reverse=True)
    return comparison
