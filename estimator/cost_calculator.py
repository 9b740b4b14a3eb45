"""
Per-item cost calculators and category aggregators.

Pure math. One calculator per cost category maps raw quantities/rates to a
money amount; the aggregators reduce a list of line items with safe_add,
rounding after every accumulation so that the running total is always a
whole number of cents.

Line items may be plain dicts (request payloads, scenario snapshots) or ORM
rows — anything exposing the column names used below.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from .money import Number, round_money, safe_add, safe_mult


@dataclass(frozen=True)
class EquipmentCost:
    base_cost: Decimal
    total_cost: Decimal


def _field(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


# --- Per-item calculators ---

def material_cost(quantity: Number, unit_price: Number) -> Decimal:
    return safe_mult(quantity, unit_price)


def labor_cost(number_of_workers: Number, daily_rate: Number, total_days: Number) -> Decimal:
    return safe_mult(number_of_workers, daily_rate, total_days)


def equipment_cost(
    quantity: Number,
    cost_per_period: Number,
    usage_duration: Number,
    maintenance_cost: Number = None,
    fuel_cost: Number = None,
) -> EquipmentCost:
    """base = quantity × cost_per_period × usage_duration; total adds maintenance and fuel."""
    base_cost = safe_mult(quantity, cost_per_period, usage_duration)
    total_cost = safe_add(base_cost, maintenance_cost or 0, fuel_cost or 0)
    return EquipmentCost(base_cost=base_cost, total_cost=total_cost)


def additional_cost(amount: Number) -> Decimal:
    return round_money(amount)


def risk_cost(impact: Number, probability_weight: Number) -> Decimal:
    return safe_mult(impact, probability_weight)


# --- Category aggregators ---

def materials_total(items: Iterable[Any]) -> Decimal:
    total = Decimal("0")
    for item in items:
        total = safe_add(total, material_cost(_field(item, "quantity"), _field(item, "unit_price")))
    return total


def labor_total(items: Iterable[Any]) -> Decimal:
    total = Decimal("0")
    for item in items:
        cost = labor_cost(
            _field(item, "number_of_workers"),
            _field(item, "daily_rate"),
            _field(item, "total_days"),
        )
        total = safe_add(total, cost)
    return total


def equipment_total(items: Iterable[Any]) -> Decimal:
    total = Decimal("0")
    for item in items:
        cost = equipment_cost(
            _field(item, "quantity"),
            _field(item, "cost_per_period"),
            _field(item, "usage_duration"),
            _field(item, "maintenance_cost"),
            _field(item, "fuel_cost"),
        )
        total = safe_add(total, cost.total_cost)
    return total


def additional_total(items: Iterable[Any]) -> Decimal:
    total = Decimal("0")
    for item in items:
        total = safe_add(total, additional_cost(_field(item, "amount")))
    return total


def risks_total(items: Iterable[Any]) -> Decimal:
    """Sum of the stored contingency amounts (already impact × weight)."""
    total = Decimal("0")
    for item in items:
        total = safe_add(total, _field(item, "contingency_amount"))
    return total
