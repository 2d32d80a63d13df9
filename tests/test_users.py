"""User resource: create, update by id and created-at bounds."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def test_create_user(client, alice):
    response = client.post(
        "/api/users",
        json={"username": "noor", "email": "Noor@Example.com", "password": "secret123"},
        headers=alice.headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "noor"
    assert body["email"] == "noor@example.com"
    assert "token" not in body

    login = client.post("/api/auth/login", json={"email": "noor@example.com", "password": "secret123"})
    assert login.status_code == 200


def test_create_user_conflicts_and_validation(client, alice):
    duplicate_email = client.post(
        "/api/users",
        json={"username": "someone", "email": "alice@example.com", "password": "secret123"},
        headers=alice.headers,
    )
    assert duplicate_email.status_code == 409

    duplicate_name = client.post(
        "/api/users",
        json={"username": "Alice", "email": "fresh@example.com", "password": "secret123"},
        headers=alice.headers,
    )
    assert duplicate_name.status_code == 409

    bad_email = client.post(
        "/api/users", json={"username": "x", "email": "nope", "password": "secret123"}, headers=alice.headers
    )
    assert bad_email.status_code == 400

    assert client.post("/api/users", json={"username": "y", "email": "y@example.com", "password": "secret123"}).status_code == 401


def test_update_user_by_id(client, alice):
    response = client.put(
        f"/api/users/{alice.id}",
        json={"bio": "hi", "skillsWanted": ["Yoga ", "yoga", "Cooking"]},
        headers=alice.headers,
    )
    assert response.status_code == 200
    assert response.json()["bio"] == "hi"
    assert response.json()["skillsWanted"] == ["Yoga", "Cooking"]

    assert client.get(f"/api/users/{alice.id}", headers=alice.headers).json()["bio"] == "hi"

    logs = client.get(
        "/api/audit-logs", params={"action": "profile_updated", "target": alice.id}, headers=alice.headers
    ).json()["logs"]
    assert logs[0]["details"] == {"fields": ["bio", "skills_wanted"]}


def test_update_user_rules(client, alice, bob):
    assert client.put(f"/api/users/{bob.id}", json={"bio": "mine now"}, headers=alice.headers).status_code == 403
    assert client.put("/api/users/ghost", json={"bio": "hi"}, headers=alice.headers).status_code == 404
    assert client.put(f"/api/users/{alice.id}", json={"username": "Bob"}, headers=alice.headers).status_code == 409


def test_created_bounds_with_offsets(client, register_user):
    maya = register_user("maya")
    plus_five = timezone(timedelta(hours=5))
    minus_three = timezone(timedelta(hours=-3))
    hour_ago = (datetime.now(timezone.utc) - timedelta(hours=1)).astimezone(plus_five).isoformat()
    hour_ahead = (datetime.now(timezone.utc) + timedelta(hours=1)).astimezone(minus_three).isoformat()

    inside = client.get(
        "/api/users", params={"name": "maya", "createdAfter": hour_ago, "createdBefore": hour_ahead}, headers=maya.headers
    ).json()
    assert inside["total"] == 1

    later = client.get("/api/users", params={"name": "maya", "createdAfter": hour_ahead}, headers=maya.headers).json()
    assert later["total"] == 0

    earlier = client.get("/api/users", params={"name": "maya", "createdBefore": hour_ago}, headers=maya.headers).json()
    assert earlier["total"] == 0


def test_created_bounds_are_exclusive(client, register_user):
    maya = register_user("maya")
    created_at = maya.user["createdAt"]

    after = client.get("/api/users", params={"name": "maya", "createdAfter": created_at}, headers=maya.headers).json()
    before = client.get("/api/users", params={"name": "maya", "createdBefore": created_at}, headers=maya.headers).json()
    assert (after["total"], before["total"]) == (0, 0)


def test_audit_window_is_inclusive(client, register_user):
    maya = register_user("maya")
    client.put("/api/profile", json={"bio": "Potter"}, headers=maya.headers)
    log = client.get("/api/audit-logs", params={"user": maya.id}, headers=maya.headers).json()["logs"][0]

    window = client.get(
        "/api/audit-logs",
        params={"user": maya.id, "from": log["createdAt"], "to": log["createdAt"]},
        headers=maya.headers,
    ).json()
    assert window["total"] == 1
