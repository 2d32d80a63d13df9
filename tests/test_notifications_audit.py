"""Notifications, audit trail and profile updates."""

from __future__ import annotations


def nudge(client, sender, receiver, skill="Yoga"):
    response = client.post("/api/barter-requests", json={"receiverId": receiver.id, "skill": skill}, headers=sender.headers)
    assert response.status_code == 201


def test_notifications_listing_and_read(client, alice, bob):
    nudge(client, alice, bob)
    nudge(client, alice, bob, skill="Digital Art")

    body = client.get("/api/notifications", headers=bob.headers).json()
    assert body["unreadCount"] == 2
    first_id = body["notifications"][0]["notificationId"]

    marked = client.put(f"/api/notifications/{first_id}/read", headers=bob.headers)
    assert marked.status_code == 200
    assert marked.json()["read"] is True

    unread = client.get("/api/notifications", params={"unreadOnly": "true"}, headers=bob.headers).json()
    assert unread["unreadCount"] == 1
    assert len(unread["notifications"]) == 1

    everything = client.put("/api/notifications/read-all", headers=bob.headers)
    assert everything.json()["markedCount"] == 1
    assert client.get("/api/notifications", headers=bob.headers).json()["unreadCount"] == 0


def test_cannot_touch_others_notifications(client, alice, bob):
    nudge(client, alice, bob)
    notification_id = client.get("/api/notifications", headers=bob.headers).json()["notifications"][0]["notificationId"]

    assert client.put(f"/api/notifications/{notification_id}/read", headers=alice.headers).status_code == 404
    assert client.get("/api/notifications", headers=bob.headers).json()["unreadCount"] == 1


def test_profile_update_cleans_skills_and_audits(client, register_user):
    maya = register_user("maya")

    response = client.put(
        "/api/profile",
        json={
            "bio": "Potter",
            "skillsOffered": [" Pottery", "pottery", "Glazing "],
            "socialLinks": [{"type": "instagram", "url": "https://instagram.com/maya"}],
        },
        headers=maya.headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["skillsOffered"] == ["Pottery", "Glazing"]
    assert body["skillsWanted"] == []
    assert body["socialLinks"][0]["type"] == "instagram"

    profile = client.get("/api/profile", headers=maya.headers).json()
    assert profile["bio"] == "Potter"

    logs = client.get("/api/audit-logs", params={"action": "profile_updated"}, headers=maya.headers).json()["logs"]
    assert len(logs) == 1
    assert logs[0]["target"] == maya.id
    assert logs[0]["details"] == {"fields": ["bio", "skills_offered", "social_links"]}


def test_profile_username_conflict(client, register_user):
    register_user("maya")
    noor = register_user("noor")

    assert client.put("/api/profile", json={"username": "maya"}, headers=noor.headers).status_code == 409


def test_audit_log_filters(client, alice, bob):
    nudge(client, alice, bob)
    nudge(client, bob, alice)

    by_alice = client.get("/api/audit-logs", params={"user": alice.id, "action": "barter_created"}, headers=alice.headers)
    assert by_alice.json()["total"] == 1

    both = client.get(
        "/api/audit-logs", params={"action": "barter_created,barter_deleted"}, headers=alice.headers
    ).json()
    assert both["total"] == 2

    none_yet = client.get("/api/audit-logs", params={"to": "2000-01-01T00:00:00"}, headers=alice.headers).json()
    assert none_yet["logs"] == []


def test_users_directory_filters(client, seeded_users, demo_headers):
    offering = client.get(
        "/api/users", params={"skill": "web development", "type": "offered"}, headers=demo_headers
    ).json()
    assert [u["username"] for u in offering["users"]] == ["Bob"]

    wanting = client.get("/api/users", params={"skill": "Web Development", "type": "wanted"}, headers=demo_headers).json()
    assert sorted(u["username"] for u in wanting["users"]) == ["Alice", "Diana", "Evan"]

    by_name = client.get("/api/users", params={"name": "li"}, headers=demo_headers).json()
    assert sorted(u["username"] for u in by_name["users"]) == ["Alice", "Charlie"]

    by_email = client.get("/api/users", params={"email": "bob@example.com"}, headers=demo_headers).json()
    assert [u["username"] for u in by_email["users"]] == ["Bob"]

    bob_id = seeded_users["bob"].id
    assert client.get(f"/api/users/{bob_id}", headers=demo_headers).json()["username"] == "Bob"
    assert client.get("/api/users/ghost", headers=demo_headers).status_code == 404
