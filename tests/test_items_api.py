"""
Line item and group endpoints.

Tests:
1. test_labor_total_cost_recomputed — stored on create and on update
2. test_equipment_total_cost — base plus maintenance and fuel
3. test_risk_contingency_recomputed — probability change updates contingency
4. test_validation — zero, negative and absurdly large inputs rejected
5. test_groups_crud_and_reorder — create, rename, reorder
6. test_group_delete_ungroups_items — items survive with group_id None
7. test_item_in_foreign_group_rejected — 400
"""

from estimator import models


def test_material_crud(client, auth_headers, project):
    base = f"/api/projects/{project['id']}/materials"
    created = client.post(base, headers=auth_headers, json={
        "name": "Rebar", "quantity": 12.5, "unit": "kg", "unit_price": 1.2,
    })
    assert created.status_code == 200
    item_id = created.json()["id"]

    updated = client.patch(f"{base}/{item_id}", headers=auth_headers, json={"unit_price": 1.5, "name": None})
    assert updated.status_code == 200
    assert updated.json()["unit_price"] == 1.5
    assert updated.json()["name"] == "Rebar"

    assert len(client.get(base, headers=auth_headers).json()) == 1
    assert client.delete(f"{base}/{item_id}", headers=auth_headers).status_code == 200
    assert client.get(base, headers=auth_headers).json() == []
    assert client.delete(f"{base}/{item_id}", headers=auth_headers).status_code == 404


def test_labor_total_cost_recomputed(client, auth_headers, project):
    base = f"/api/projects/{project['id']}/labor"
    created = client.post(base, headers=auth_headers, json={
        "worker_type": "Electrician", "number_of_workers": 5, "daily_rate": 100, "total_days": 10,
    }).json()
    assert created["total_cost"] == 5000.0

    updated = client.patch(f"{base}/{created['id']}", headers=auth_headers, json={"total_days": 2}).json()
    assert updated["total_cost"] == 1000.0


def test_equipment_total_cost(client, auth_headers, project):
    created = client.post(f"/api/projects/{project['id']}/equipment", headers=auth_headers, json={
        "name": "Generator", "rental_or_purchase": "purchase", "quantity": 2,
        "cost_per_period": 100, "usage_duration": 5, "maintenance_cost": 50, "fuel_cost": 100,
    })
    assert created.status_code == 200
    assert created.json()["total_cost"] == 1150.0
    assert created.json()["rental_or_purchase"] == "purchase"


def test_risk_contingency_recomputed(client, auth_headers, project):
    base = f"/api/projects/{project['id']}/risks"
    risk = client.post(base, headers=auth_headers, json={
        "description": "Steel price spike", "probability": "high", "impact_amount": 1000,
    }).json()
    assert risk["contingency_amount"] == 500.0

    risk = client.patch(f"{base}/{risk['id']}", headers=auth_headers, json={"probability": "low"}).json()
    assert risk["contingency_amount"] == 100.0

    risk = client.patch(f"{base}/{risk['id']}", headers=auth_headers, json={"probability": "unclear"}).json()
    assert risk["contingency_amount"] == 0.0


def test_validation(client, auth_headers, project):
    base = f"/api/projects/{project['id']}"
    assert client.post(f"{base}/materials", headers=auth_headers, json={
        "name": "Bricks", "quantity": 0, "unit": "ea", "unit_price": 1,
    }).status_code == 422
    assert client.post(f"{base}/labor", headers=auth_headers, json={
        "worker_type": "Roofer", "number_of_workers": 0, "daily_rate": 100, "total_days": 1,
    }).status_code == 422
    assert client.post(f"{base}/additional-costs", headers=auth_headers, json={
        "category": "Fees", "amount": -5,
    }).status_code == 422
    assert client.post(f"{base}/materials", headers=auth_headers, json={
        "name": "Gravel", "quantity": 1e30, "unit": "t", "unit_price": 1,
    }).status_code == 422


def test_groups_crud_and_reorder(client, auth_headers, project):
    base = f"/api/projects/{project['id']}/groups"
    first = client.post(base, headers=auth_headers, json={"name": "Foundation"}).json()
    second = client.post(base, headers=auth_headers, json={"name": "Roofing"}).json()
    assert (first["sort_order"], second["sort_order"]) == (0, 1)

    renamed = client.patch(f"{base}/{first['id']}", headers=auth_headers, json={"name": "Footings"})
    assert renamed.json()["name"] == "Footings"

    reordered = client.put(f"{base}/reorder", headers=auth_headers, json={
        "group_ids": [second["id"], first["id"]],
    })
    assert reordered.status_code == 200
    assert [g["id"] for g in reordered.json()] == [second["id"], first["id"]]

    bad = client.put(f"{base}/reorder", headers=auth_headers, json={"group_ids": [9999]})
    assert bad.status_code == 400


def test_group_delete_ungroups_items(client, auth_headers, project, db):
    pid = project["id"]
    group = client.post(f"/api/projects/{pid}/groups", headers=auth_headers, json={"name": "Walls"}).json()
    item = client.post(f"/api/projects/{pid}/materials", headers=auth_headers, json={
        "name": "Blocks", "quantity": 100, "unit": "ea", "unit_price": 2, "group_id": group["id"],
    }).json()
    assert item["group_id"] == group["id"]

    assert client.delete(f"/api/projects/{pid}/groups/{group['id']}", headers=auth_headers).status_code == 200
    row = db.query(models.MaterialItem).filter(models.MaterialItem.id == item["id"]).first()
    assert row is not None
    assert row.group_id is None


def test_item_in_foreign_group_rejected(client, auth_headers, project):
    other = client.post("/api/projects/", headers=auth_headers, json={"name": "Other"}).json()
    group = client.post(f"/api/projects/{other['id']}/groups", headers=auth_headers, json={"name": "X"}).json()
    resp = client.post(f"/api/projects/{project['id']}/materials", headers=auth_headers, json={
        "name": "Glass", "quantity": 1, "unit": "m2", "unit_price": 80, "group_id": group["id"],
    })
    assert resp.status_code == 400
