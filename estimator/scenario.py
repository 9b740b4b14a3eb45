"""
What-if scenario simulation.

A scenario is a list of impact rules applied, in order, to a deep copy of a
project snapshot (line items + financial settings). The result pairs the
original financials with the simulated ones so the caller can show the delta.

Unsupported item_type/field/adjustment combinations are ignored, the same way
an unknown probability label weighs 0: a scenario never fails halfway.
"""

import copy
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from . import cost_calculator
from .financials import CostCategoryTotals, FinancialSettings, calculate_project_financials
from .money import Number, as_float, safe_sub, to_decimal

logger = logging.getLogger(__name__)

# item_type → {field: adjustment types it accepts}
ADJUSTABLE_FIELDS = {
    "materials": {"unit_price": ("percentage_increase", "fixed_increase")},
    "labor": {
        "daily_rate": ("percentage_increase", "fixed_increase"),
        "total_days": ("fixed_increase",),
    },
    "equipment": {
        "cost_per_period": ("percentage_increase", "fixed_increase"),
        "maintenance_cost": ("percentage_increase", "fixed_increase"),
        "fuel_cost": ("percentage_increase", "fixed_increase"),
        "usage_duration": ("fixed_increase",),
    },
    "additional": {"amount": ("percentage_increase", "fixed_increase")},
    "risks": {"realize_risk_impact": ("by_id",)},
    "financial_settings": {
        "overhead_percent": ("fixed_increase",),
        "contingency_percent": ("fixed_increase",),
        "markup_percent": ("fixed_increase",),
        "tax_percent": ("fixed_increase",),
    },
}

SIMULATED_RISK_CATEGORY = "Simulated Risk Impact"


@dataclass(frozen=True)
class ImpactRule:
    item_type: str
    field: str
    adjustment_type: str
    value: Any = 0
    filter_name_contains: Optional[str] = None
    filter_category_is: Optional[str] = None
    filter_worker_type_contains: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ImpactRule":
        # Legacy rules nest the filters: {"filter": {"name_contains": ...}}
        nested = data.get("filter") or {}
        return cls(
            item_type=data.get("item_type", ""),
            field=data.get("field", ""),
            adjustment_type=data.get("adjustment_type", ""),
            value=data.get("value", 0),
            filter_name_contains=data.get("filter_name_contains") or nested.get("name_contains"),
            filter_category_is=data.get("filter_category_is") or nested.get("category_is"),
            filter_worker_type_contains=(
                data.get("filter_worker_type_contains") or nested.get("worker_type_contains")
            ),
        )

    def is_supported(self) -> bool:
        allowed = ADJUSTABLE_FIELDS.get(self.item_type, {}).get(self.field, ())
        return self.adjustment_type in allowed

    def has_numeric_value(self) -> bool:
        if self.adjustment_type == "by_id":
            return True
        try:
            return to_decimal(self.value).is_finite()
        except (InvalidOperation, TypeError, ValueError):
            return False


def _adjust(current: Number, rule: ImpactRule) -> float:
    """Apply a percentage or fixed increase; unrounded, like a form edit would be."""
    base = to_decimal(current)
    amount = to_decimal(rule.value) if rule.adjustment_type != "by_id" else Decimal("0")
    if rule.adjustment_type == "percentage_increase":
        base = base * (1 + amount / 100)
    elif rule.adjustment_type == "fixed_increase":
        base = base + amount
    return float(base)


def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    if not needle:
        return True
    return needle.lower() in (haystack or "").lower()


def _matches(item: dict, rule: ImpactRule) -> bool:
    if rule.item_type in ("materials", "equipment"):
        return _contains(item.get("name"), rule.filter_name_contains)
    if rule.item_type == "labor":
        return _contains(item.get("worker_type"), rule.filter_worker_type_contains)
    if rule.item_type == "additional":
        return not rule.filter_category_is or item.get("category") == rule.filter_category_is
    return True


def _realize_risk(state: dict, rule: ImpactRule) -> None:
    risk = next((r for r in state["risks"] if str(r.get("id")) == str(rule.value)), None)
    if risk is None:
        logger.info("Scenario references unknown risk %s, skipped", rule.value)
        return
    state["additional"].append({
        "id": str(uuid.uuid4()),
        "category": SIMULATED_RISK_CATEGORY,
        "description": f"Impact of risk: {risk.get('description', '')}",
        "amount": risk.get("impact_amount", 0),
    })


def apply_rule(state: dict, rule: ImpactRule) -> None:
    """Apply one rule to a (copied) snapshot in place."""
    if not rule.is_supported():
        logger.debug("Ignoring unsupported scenario rule %s.%s (%s)", rule.item_type, rule.field, rule.adjustment_type)
        return
    if not rule.has_numeric_value():
        logger.warning("Ignoring scenario rule %s.%s with non-numeric value %r", rule.item_type, rule.field, rule.value)
        return

    if rule.item_type == "financial_settings":
        settings = state["financial_settings"]
        settings[rule.field] = _adjust(settings.get(rule.field), rule)
        return

    if rule.item_type == "risks":
        _realize_risk(state, rule)
        return

    for item in state[rule.item_type]:
        if _matches(item, rule):
            item[rule.field] = _adjust(item.get(rule.field), rule)


def summarize_snapshot(snapshot: dict):
    totals = CostCategoryTotals(
        materials_total=cost_calculator.materials_total(snapshot.get("materials", [])),
        labor_total=cost_calculator.labor_total(snapshot.get("labor", [])),
        equipment_total=cost_calculator.equipment_total(snapshot.get("equipment", [])),
        additional_total=cost_calculator.additional_total(snapshot.get("additional", [])),
    )
    settings = FinancialSettings.from_mapping(snapshot.get("financial_settings"))
    return calculate_project_financials(totals, settings)


def _normalized(snapshot: dict) -> dict:
    state = copy.deepcopy(snapshot)
    for key in ("materials", "labor", "equipment", "additional", "risks"):
        state[key] = list(state.get(key) or [])
    state["financial_settings"] = dict(state.get("financial_settings") or {})
    return state


def _side(state: dict, currency: Optional[str]) -> dict:
    return {
        "currency": currency,
        "financials": summarize_snapshot(state).as_dict(),
        "materials": state["materials"],
        "labor": state["labor"],
        "equipment": state["equipment"],
        "additional": state["additional"],
        "risks": state["risks"],
        "financial_settings": state["financial_settings"],
    }


def simulate_scenario(snapshot: Dict[str, Any], rules: Iterable[Any]) -> dict:
    """
    snapshot: {"currency", "materials", "labor", "equipment", "additional",
               "risks", "financial_settings"} with plain-dict items.
    rules: ImpactRule instances or dicts.

    Returns {"original": {...}, "simulated": {...}, "delta": {...}}.
    """
    original = _normalized(snapshot)
    simulated = _normalized(snapshot)

    parsed: List[ImpactRule] = [r if isinstance(r, ImpactRule) else ImpactRule.from_dict(r) for r in rules]
    for rule in parsed:
        apply_rule(simulated, rule)

    currency = snapshot.get("currency")
    original_side = _side(original, currency)
    simulated_side = _side(simulated, currency)

    delta = {
        key: as_float(safe_sub(simulated_side["financials"][key], original_side["financials"][key]))
        for key in original_side["financials"]
    }
    return {"original": original_side, "simulated": simulated_side, "delta": delta}
