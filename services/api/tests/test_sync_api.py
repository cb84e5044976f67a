import uuid

from app.settings import settings
from app.sync.coordinator import SyncCoordinator
from app.sync.errors import StorageFailure


def test_sync_requires_user_header(client):
    resp = client.post("/api/sync", json={})
    assert resp.status_code == 401


def test_sync_rejects_unknown_user(client, user):
    resp = client.post("/api/sync", json={}, headers={"X-User-Id": "nobody"})
    assert resp.status_code == 401


def test_empty_full_sync(client, auth_headers):
    resp = client.post("/api/sync", json={"lastSyncTimestamp": None}, headers=auth_headers)

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["conflicts"] == []
    assert data["rejected"] == []
    assert data["recipes"] == []
    assert data["pantryItems"] == []
    assert data["shoppingLists"] == []
    assert data["shoppingItems"] == []
    assert "serverTimestamp" in data


def test_sync_speaks_camel_case_and_ignores_owner_id(client, user, auth_headers):
    body = {
        "pantryItems": [
            {
                "id": "p1",
                "ownerId": "someone-else",
                "syncVersion": 1,
                "name": "Greek yogurt",
                "category": "Dairy",
                "quantity": 2,
                "unit": "cups",
                "expirationDate": "2026-04-01",
            }
        ],
        "recipes": [
            {
                "id": "r1",
                "syncVersion": 1,
                "title": "Overnight oats",
                "prepTime": 5,
                "ingredients": [{"name": "Oats", "quantity": 0.5, "unit": "cup", "isOptional": False}],
                "steps": [{"stepNumber": 1, "instruction": "Mix and chill", "durationSeconds": 60}],
            }
        ],
    }

    resp = client.post("/api/sync", json=body, headers=auth_headers)

    assert resp.status_code == 200, resp.text
    data = resp.json()
    [item] = data["pantryItems"]
    assert item["ownerId"] == user.id
    assert item["category"] == "dairy"
    assert item["expirationDate"] == "2026-04-01"
    assert item["syncVersion"] == 1
    assert item["deletedAt"] is None

    [recipe] = data["recipes"]
    assert recipe["prepTime"] == 5
    assert recipe["ingredients"][0]["name"] == "Oats"
    assert recipe["steps"][0]["durationSeconds"] == 60


def test_conflicts_are_returned_as_data(client, auth_headers):
    client.post("/api/sync", json={"shoppingLists": [{"id": "l1", "syncVersion": 3, "name": "Groceries"}]}, headers=auth_headers)

    resp = client.post(
        "/api/sync",
        json={"shoppingLists": [{"id": "l1", "syncVersion": 3, "name": "BBQ"}]},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    [conflict] = resp.json()["conflicts"]
    assert conflict["entityType"] == "shopping_list"
    assert conflict["resolution"] == "server"
    assert conflict["serverVersion"] == 3
    assert conflict["clientVersion"] == 3
    assert conflict["resolvedVersion"] == 4
    assert conflict["reason"]


def test_item_without_list_is_listed_as_rejected(client, auth_headers):
    resp = client.post(
        "/api/sync",
        json={"shoppingItems": [{"id": "i1", "listId": "nope", "syncVersion": 2, "name": "Apples"}]},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["conflicts"] == []
    assert data["rejected"] == [
        {"entityType": "shopping_item", "id": "i1", "clientVersion": 2, "reason": "Parent shopping list not found"}
    ]
    assert data["shoppingItems"] == []


def test_delta_respects_cursor(client, auth_headers):
    first = client.post("/api/sync", json={"pantryItems": [{"id": "p1", "name": "Milk"}]}, headers=auth_headers).json()
    client.post("/api/sync", json={"pantryItems": [{"id": "p2", "name": "Bread"}]}, headers=auth_headers)

    resp = client.post("/api/sync", json={"lastSyncTimestamp": first["serverTimestamp"]}, headers=auth_headers)

    ids = {p["id"] for p in resp.json()["pantryItems"]}
    assert "p2" in ids


def test_owners_do_not_see_each_other(client, user, other_user):
    client.post("/api/sync", json={"pantryItems": [{"id": "p1", "name": "Mine"}]}, headers={"X-User-Id": user.id})

    resp = client.post("/api/sync", json={}, headers={"X-User-Id": other_user.id})
    assert resp.json()["pantryItems"] == []


def test_malformed_body_is_422(client, auth_headers):
    resp = client.post("/api/sync", json={"pantryItems": [{"id": "p1", "syncVersion": 0, "name": "Milk"}]}, headers=auth_headers)
    assert resp.status_code == 422

    resp = client.post("/api/sync", json={"recipes": [{"id": "r1"}]}, headers=auth_headers)
    assert resp.status_code == 422


def test_batch_too_large_is_413(client, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "sync_max_entities_per_request", 1)

    resp = client.post(
        "/api/sync",
        json={"pantryItems": [{"id": "p1", "name": "Milk"}, {"id": "p2", "name": "Bread"}]},
        headers=auth_headers,
    )

    assert resp.status_code == 413
    assert resp.json()["limit"] == 1
    assert resp.json()["received"] == 2


def test_storage_failure_is_503(client, auth_headers, monkeypatch):
    def boom(self, owner_id, request):
        raise StorageFailure("upsert failed for pantry_item", entity_type="pantry_item")

    monkeypatch.setattr(SyncCoordinator, "sync", boom)

    resp = client.post("/api/sync", json={}, headers=auth_headers)
    assert resp.status_code == 503
    assert resp.json() == {"detail": "Storage unavailable"}


# --- Idempotency-Key replay ---

def test_idempotency_key_replays_response(client, auth_headers):
    headers = {**auth_headers, "Idempotency-Key": str(uuid.uuid4())}
    body = {"pantryItems": [{"id": "p1", "name": "Milk"}]}

    first = client.post("/api/sync", json=body, headers=headers)
    second = client.post("/api/sync", json=body, headers=headers)

    assert first.status_code == second.status_code == 200
    assert second.json() == first.json()
    assert second.json()["serverTimestamp"] == first.json()["serverTimestamp"]


def test_idempotency_key_reused_with_other_body_is_409(client, auth_headers):
    headers = {**auth_headers, "Idempotency-Key": str(uuid.uuid4())}

    client.post("/api/sync", json={"pantryItems": [{"id": "p1", "name": "Milk"}]}, headers=headers)
    resp = client.post("/api/sync", json={"pantryItems": [{"id": "p1", "name": "Cream"}]}, headers=headers)

    assert resp.status_code == 409


def test_failed_request_releases_idempotency_key(client, auth_headers, monkeypatch):
    headers = {**auth_headers, "Idempotency-Key": str(uuid.uuid4())}
    original = SyncCoordinator.sync

    def boom(self, owner_id, request):
        raise StorageFailure("get failed for recipe", entity_type="recipe")

    monkeypatch.setattr(SyncCoordinator, "sync", boom)
    assert client.post("/api/sync", json={}, headers=headers).status_code == 503

    monkeypatch.setattr(SyncCoordinator, "sync", original)
    assert client.post("/api/sync", json={}, headers=headers).status_code == 200
