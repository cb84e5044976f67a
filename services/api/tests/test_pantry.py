from app.models import PantryItem


def test_pantry_crud(client, auth_headers):
    # Create
    resp = client.post(
        "/api/pantry/",
        json={"name": "Chicken thighs", "category": "meat", "quantity": 4, "unit": "pcs", "expirationDate": "2026-03-05"},
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.text
    item = resp.json()
    assert item["category"] == "proteins"
    assert item["syncVersion"] == 1
    item_id = item["id"]

    # List
    resp = client.get("/api/pantry/", headers=auth_headers)
    assert [i["id"] for i in resp.json()] == [item_id]

    # Update bumps the version
    resp = client.patch(f"/api/pantry/{item_id}", json={"quantity": 2}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["quantity"] == 2
    assert resp.json()["syncVersion"] == 2

    # Delete is a soft delete
    resp = client.delete(f"/api/pantry/{item_id}", headers=auth_headers)
    assert resp.status_code == 204
    assert client.get("/api/pantry/", headers=auth_headers).json() == []
    assert client.patch(f"/api/pantry/{item_id}", json={"quantity": 1}, headers=auth_headers).status_code == 404

    # Deleting again is a no-op
    assert client.delete(f"/api/pantry/{item_id}", headers=auth_headers).status_code == 204


def test_deleted_item_reaches_devices_as_tombstone(client, auth_headers, db_session):
    item_id = client.post("/api/pantry/", json={"name": "Basil"}, headers=auth_headers).json()["id"]
    client.delete(f"/api/pantry/{item_id}", headers=auth_headers)

    row = db_session.get(PantryItem, {"id": item_id, "owner_id": auth_headers["X-User-Id"]})
    assert row is not None
    assert row.deleted_at is not None
    assert row.sync_version == 2

    [synced] = client.post("/api/sync", json={}, headers=auth_headers).json()["pantryItems"]
    assert synced["id"] == item_id
    assert synced["deletedAt"] is not None


def test_create_with_existing_id_conflicts(client, auth_headers):
    body = {"id": "fixed-id", "name": "Rice"}
    assert client.post("/api/pantry/", json=body, headers=auth_headers).status_code == 201
    assert client.post("/api/pantry/", json=body, headers=auth_headers).status_code == 409


def test_pantry_is_owner_scoped(client, user, other_user):
    item_id = client.post("/api/pantry/", json={"name": "Salt"}, headers={"X-User-Id": user.id}).json()["id"]

    other = {"X-User-Id": other_user.id}
    assert client.get("/api/pantry/", headers=other).json() == []
    assert client.patch(f"/api/pantry/{item_id}", json={"name": "Sugar"}, headers=other).status_code == 404
    assert client.delete(f"/api/pantry/{item_id}", headers=other).status_code == 404


def test_pantry_requires_user(client):
    assert client.get("/api/pantry/").status_code == 401
