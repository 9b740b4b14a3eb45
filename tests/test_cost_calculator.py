"""
Per-item calculators and category aggregators.

Tests:
1. test_material_cost — quantity × unit price
2. test_labor_cost — workers × daily rate × days
3. test_equipment_cost_adds_maintenance_and_fuel — base plus extras
4. test_category_totals — reference item lists sum to known totals
5. test_empty_lists_total_zero — every aggregator returns 0 for []
6. test_orm_like_objects — aggregators read attributes as well as dict keys
"""

from decimal import Decimal
from types import SimpleNamespace

from estimator import cost_calculator as cc


def _sample_materials():
    return [
        {"name": "Cement", "quantity": 10, "unit_price": 5.5},
        {"name": "Sand", "quantity": 3, "unit_price": 5},
    ]


def _sample_labor():
    return [
        {"worker_type": "Mason", "number_of_workers": 2, "daily_rate": 150, "total_days": 5},
        {"worker_type": "Helper", "number_of_workers": 3, "daily_rate": 100, "total_days": 5},
    ]


def _sample_equipment():
    return [
        {"name": "Mixer", "quantity": 1, "cost_per_period": 100, "usage_duration": 5,
         "maintenance_cost": 50, "fuel_cost": 50},
        {"name": "Scaffold", "quantity": 2, "cost_per_period": 50, "usage_duration": 5},
    ]


def test_material_cost():
    assert cc.material_cost(10, 5.5) == Decimal("55.00")
    assert cc.material_cost(0.1, 0.2) == Decimal("0.02")


def test_labor_cost():
    assert cc.labor_cost(5, 100, 10) == Decimal("5000.00")


def test_equipment_cost_adds_maintenance_and_fuel():
    cost = cc.equipment_cost(2, 100, 5, 50, 100)
    assert cost.base_cost == Decimal("1000.00")
    assert cost.total_cost == Decimal("1150.00")


def test_equipment_cost_without_extras():
    cost = cc.equipment_cost(1, 99.99, 3)
    assert cost.base_cost == cost.total_cost == Decimal("299.97")


def test_category_totals():
    assert cc.materials_total(_sample_materials()) == Decimal("70.00")
    assert cc.labor_total(_sample_labor()) == Decimal("3000.00")
    assert cc.equipment_total(_sample_equipment()) == Decimal("1100.00")
    assert cc.additional_total([{"amount": 200}, {"amount": 150.5}]) == Decimal("350.50")
    assert cc.risks_total([{"contingency_amount": 300}, {"contingency_amount": 50}]) == Decimal("350.00")


def test_empty_lists_total_zero():
    for aggregate in (cc.materials_total, cc.labor_total, cc.equipment_total,
                      cc.additional_total, cc.risks_total):
        assert aggregate([]) == 0


def test_orm_like_objects():
    rows = [SimpleNamespace(quantity=4, unit_price=2.25), SimpleNamespace(quantity=1, unit_price=0.01)]
    assert cc.materials_total(rows) == Decimal("9.01")


def test_missing_fields_count_as_zero():
    assert cc.materials_total([{"name": "Unpriced"}]) == 0
    assert cc.equipment_total([{"quantity": 1, "cost_per_period": 10, "usage_duration": 2,
                                "maintenance_cost": None}]) == Decimal("20.00")
