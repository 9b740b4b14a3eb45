"""
What-if scenario simulation.

Tests:
1. test_percentage_increase_on_filtered_materials — only matching names change
2. test_labor_and_equipment_adjustments — daily rate and usage duration
3. test_realize_risk — risk impact becomes an additional cost
4. test_financial_settings_adjustment — markup bumped by a fixed amount
5. test_unsupported_rules_ignored — no-op, no exception
6. test_non_numeric_value_skipped — a stored "ten" leaves the other rules working
7. test_snapshot_not_mutated — input stays untouched
"""

import copy

from estimator.scenario import SIMULATED_RISK_CATEGORY, ImpactRule, simulate_scenario


def _sample_snapshot():
    return {
        "currency": "USD",
        "materials": [
            {"id": 1, "name": "Steel beam", "quantity": 10, "unit_price": 100},
            {"id": 2, "name": "Timber", "quantity": 10, "unit_price": 50},
        ],
        "labor": [
            {"id": 1, "worker_type": "Welder", "number_of_workers": 1, "daily_rate": 200, "total_days": 5},
        ],
        "equipment": [
            {"id": 1, "name": "Crane", "quantity": 1, "cost_per_period": 500, "usage_duration": 2,
             "maintenance_cost": 0, "fuel_cost": 0},
        ],
        "additional": [
            {"id": 1, "category": "Permits", "amount": 300},
            {"id": 2, "category": "Insurance", "amount": 200},
        ],
        "risks": [
            {"id": 7, "description": "Late delivery", "probability": "medium",
             "impact_amount": 1000, "contingency_amount": 300},
        ],
        "financial_settings": {"overhead_percent": 0, "contingency_percent": 0,
                               "markup_percent": 0, "tax_percent": 0},
    }


def _rule(**kwargs):
    return kwargs


def test_original_financials():
    result = simulate_scenario(_sample_snapshot(), [])
    # 1500 materials + 1000 labor + 1000 equipment + 500 additional
    assert result["original"]["financials"]["direct_costs"] == 4000.0
    assert result["simulated"]["financials"] == result["original"]["financials"]
    assert all(v == 0.0 for v in result["delta"].values())


def test_percentage_increase_on_filtered_materials():
    result = simulate_scenario(_sample_snapshot(), [_rule(
        item_type="materials", field="unit_price", adjustment_type="percentage_increase",
        value=10, filter_name_contains="STEEL",
    )])
    prices = [m["unit_price"] for m in result["simulated"]["materials"]]
    assert prices == [110.0, 50]
    assert result["delta"]["materials_total"] == 100.0
    assert result["delta"]["grand_total"] == 100.0


def test_labor_and_equipment_adjustments():
    result = simulate_scenario(_sample_snapshot(), [
        _rule(item_type="labor", field="daily_rate", adjustment_type="fixed_increase", value=50,
              filter_worker_type_contains="weld"),
        _rule(item_type="equipment", field="usage_duration", adjustment_type="fixed_increase", value=1),
    ])
    assert result["delta"]["labor_total"] == 250.0
    assert result["delta"]["equipment_total"] == 500.0


def test_additional_filtered_by_exact_category():
    result = simulate_scenario(_sample_snapshot(), [_rule(
        item_type="additional", field="amount", adjustment_type="percentage_increase",
        value=50, filter_category_is="Permits",
    )])
    assert result["delta"]["additional_total"] == 150.0


def test_realize_risk():
    result = simulate_scenario(_sample_snapshot(), [
        _rule(item_type="risks", field="realize_risk_impact", adjustment_type="by_id", value="7"),
    ])
    added = result["simulated"]["additional"][-1]
    assert added["category"] == SIMULATED_RISK_CATEGORY
    assert added["amount"] == 1000
    assert result["delta"]["additional_total"] == 1000.0


def test_realize_unknown_risk_is_noop():
    result = simulate_scenario(_sample_snapshot(), [
        _rule(item_type="risks", field="realize_risk_impact", adjustment_type="by_id", value=99),
    ])
    assert result["delta"]["grand_total"] == 0.0


def test_financial_settings_adjustment():
    result = simulate_scenario(_sample_snapshot(), [
        _rule(item_type="financial_settings", field="markup_percent", adjustment_type="fixed_increase", value=5),
    ])
    assert result["simulated"]["financial_settings"]["markup_percent"] == 5.0
    assert result["delta"]["markup_amount"] == 200.0


def test_unsupported_rules_ignored():
    result = simulate_scenario(_sample_snapshot(), [
        _rule(item_type="materials", field="quantity", adjustment_type="percentage_increase", value=10),
        _rule(item_type="labor", field="total_days", adjustment_type="percentage_increase", value=10),
        _rule(item_type="unknown", field="x", adjustment_type="fixed_increase", value=1),
    ])
    assert result["delta"]["grand_total"] == 0.0


def test_non_numeric_value_skipped():
    result = simulate_scenario(_sample_snapshot(), [
        _rule(item_type="materials", field="unit_price", adjustment_type="percentage_increase", value="ten"),
        _rule(item_type="additional", field="amount", adjustment_type="fixed_increase", value="50",
              filter_category_is="Permits"),
    ])
    assert result["delta"]["materials_total"] == 0.0
    assert result["delta"]["additional_total"] == 50.0


def test_legacy_nested_filter():
    rule = ImpactRule.from_dict({
        "item_type": "materials", "field": "unit_price", "adjustment_type": "fixed_increase",
        "value": 1, "filter": {"name_contains": "timber"},
    })
    assert rule.filter_name_contains == "timber"
    result = simulate_scenario(_sample_snapshot(), [rule])
    assert result["delta"]["materials_total"] == 10.0


def test_snapshot_not_mutated():
    snapshot = _sample_snapshot()
    before = copy.deepcopy(snapshot)
    simulate_scenario(snapshot, [
        _rule(item_type="materials", field="unit_price", adjustment_type="percentage_increase", value=25),
        _rule(item_type="risks", field="realize_risk_impact", adjustment_type="by_id", value=7),
    ])
    assert snapshot == before
