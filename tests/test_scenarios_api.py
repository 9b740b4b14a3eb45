"""
Scenario, analytics and currency endpoints.

Tests:
1. test_save_and_run_scenario — saved rules applied to a project
2. test_inline_simulation_writes_nothing — stored items unchanged
3. test_simulate_requires_rules — 400
4. test_scenario_visibility — private scenarios hidden from other users
5. test_project_analytics — distribution + financials
6. test_comparison — highest grand total first, optional conversion
7. test_currency_endpoints — list, admin upsert, convert
8. test_rate_upsert_needs_admin — plain users get 403, the rate is unchanged
9. test_rule_value_must_be_numeric — "ten" as a percentage is a 422, not a 500
"""

from estimator.currency import seed_default_rates


def _add_materials(client, headers, project_id, unit_price=100):
    resp = client.post(f"/api/projects/{project_id}/materials", headers=headers, json={
        "name": "Steel column", "quantity": 10, "unit": "ea", "unit_price": unit_price,
    })
    assert resp.status_code == 200


def _steel_rule():
    return {
        "item_type": "materials", "field": "unit_price",
        "adjustment_type": "percentage_increase", "value": 20,
        "filter_name_contains": "steel",
    }


def test_save_and_run_scenario(client, auth_headers, project):
    _add_materials(client, auth_headers, project["id"])
    saved = client.post("/api/scenarios", headers=auth_headers, json={
        "name": "Steel +20%", "impact_rules": [_steel_rule()],
    })
    assert saved.status_code == 200
    assert saved.json()["impact_rules"][0]["field"] == "unit_price"

    result = client.post(f"/api/projects/{project['id']}/simulate", headers=auth_headers, json={
        "scenario_id": saved.json()["id"],
    })
    assert result.status_code == 200
    data = result.json()
    assert data["original"]["financials"]["materials_total"] == 1000.0
    assert data["simulated"]["financials"]["materials_total"] == 1200.0
    assert data["delta"]["direct_costs"] == 200.0


def test_inline_simulation_writes_nothing(client, auth_headers, project):
    _add_materials(client, auth_headers, project["id"])
    client.post(f"/api/projects/{project['id']}/simulate", headers=auth_headers, json={
        "impact_rules": [_steel_rule()],
    })
    items = client.get(f"/api/projects/{project['id']}/materials", headers=auth_headers).json()
    assert items[0]["unit_price"] == 100.0


def test_simulate_requires_rules(client, auth_headers, project):
    resp = client.post(f"/api/projects/{project['id']}/simulate", headers=auth_headers, json={})
    assert resp.status_code == 400
    resp = client.post(f"/api/projects/{project['id']}/simulate", headers=auth_headers, json={"scenario_id": 999})
    assert resp.status_code == 404


def test_scenario_needs_a_rule(client, auth_headers):
    resp = client.post("/api/scenarios", headers=auth_headers, json={"name": "Empty", "impact_rules": []})
    assert resp.status_code == 422


def test_scenario_visibility(client, auth_headers, other_headers):
    client.post("/api/scenarios", headers=auth_headers, json={
        "name": "Private", "impact_rules": [_steel_rule()],
    })
    public = client.post("/api/scenarios", headers=auth_headers, json={
        "name": "Public", "is_public": True, "impact_rules": [_steel_rule()],
    }).json()

    visible = [s["name"] for s in client.get("/api/scenarios", headers=other_headers).json()]
    assert visible == ["Public"]
    assert client.delete(f"/api/scenarios/{public['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/scenarios/{public['id']}", headers=auth_headers).status_code == 200


def test_project_analytics(client, auth_headers, project):
    pid = project["id"]
    _add_materials(client, auth_headers, pid)
    client.post(f"/api/projects/{pid}/additional-costs", headers=auth_headers, json={
        "category": "Insurance", "amount": 1000,
    })
    data = client.get(f"/api/projects/{pid}/analytics", headers=auth_headers).json()
    assert data["total_cost"] == 2000.0
    percents = {row["key"]: row["percent"] for row in data["chart_data"]}
    assert percents == {"materials": 50.0, "labor": 0.0, "equipment": 0.0, "additional": 50.0}
    assert data["financials"]["direct_costs"] == 2000.0


def test_comparison(client, auth_headers, project, db):
    _add_materials(client, auth_headers, project["id"])
    bigger = client.post("/api/projects/", headers=auth_headers, json={
        "name": "Tower", "financial_settings": {"overhead_percent": 0},
    }).json()
    _add_materials(client, auth_headers, bigger["id"], unit_price=1000)

    rows = client.get("/api/analytics/comparison", headers=auth_headers).json()
    assert [r["name"] for r in rows] == ["Tower", "Warehouse extension"]
    assert rows[0]["grand_total"] == 10000.0

    seed_default_rates(db)
    rows = client.get("/api/analytics/comparison?currency=EUR", headers=auth_headers).json()
    assert rows[0]["currency"] == "EUR"
    assert rows[0]["grand_total"] == 9200.0


def test_currency_endpoints(client, admin_headers, db):
    seed_default_rates(db)
    rates = client.get("/api/currency/rates").json()
    assert "USD" in [r["currency_code"] for r in rates]

    upserted = client.put("/api/currency/rates", headers=admin_headers, json={
        "currency_code": "chf", "rate_to_usd": 0.9,
    })
    assert upserted.status_code == 200
    assert upserted.json()["currency_code"] == "CHF"

    converted = client.post("/api/currency/convert", json={
        "amount": 100, "from_currency": "USD", "to_currency": "CHF",
    }).json()
    assert converted["converted_amount"] == 90.0
    assert converted["missing_rates"] == []

    missing = client.post("/api/currency/convert", json={
        "amount": 100, "from_currency": "USD", "to_currency": "ZZZ",
    }).json()
    assert missing["converted_amount"] == 100.0
    assert missing["missing_rates"] == ["ZZZ"]


def test_rate_upsert_needs_admin(client, auth_headers, db):
    seed_default_rates(db)
    resp = client.put("/api/currency/rates", headers=auth_headers, json={
        "currency_code": "EUR", "rate_to_usd": 0.01,
    })
    assert resp.status_code == 403
    assert client.put("/api/currency/rates", json={"currency_code": "EUR", "rate_to_usd": 0.01}).status_code == 401

    rates = {r["currency_code"]: r["rate_to_usd"] for r in client.get("/api/currency/rates").json()}
    assert rates["EUR"] == 0.92


def test_rule_value_must_be_numeric(client, auth_headers, project):
    _add_materials(client, auth_headers, project["id"])
    rule = {**_steel_rule(), "value": "ten"}

    resp = client.post(f"/api/projects/{project['id']}/simulate", headers=auth_headers, json={
        "impact_rules": [rule],
    })
    assert resp.status_code == 422
    resp = client.post("/api/scenarios", headers=auth_headers, json={"name": "Typo", "impact_rules": [rule]})
    assert resp.status_code == 422

    numeric_text = client.post(f"/api/projects/{project['id']}/simulate", headers=auth_headers, json={
        "impact_rules": [{**_steel_rule(), "value": "20"}],
    })
    assert numeric_text.status_code == 200
    assert numeric_text.json()["simulated"]["financials"]["materials_total"] == 1200.0
