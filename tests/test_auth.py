"""Registration, login and bearer token tests."""

from __future__ import annotations

from datetime import timedelta

from tradetide.core.config import settings
from tradetide.core.security import create_jwt_token, decode_jwt_token


def test_register_returns_token_for_new_user(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "maya", "email": "maya@example.com", "password": "secret1"},
    )
    assert response.status_code == 201

    body = response.json()
    assert body["user"]["email"] == "maya@example.com"
    assert body["user"]["skillsOffered"] == []
    assert "passwordHash" not in body["user"]
    assert decode_jwt_token(body["token"])["sub"] == body["user"]["userId"]


def test_duplicate_email_is_rejected(client, register_user):
    register_user("maya", "maya@example.com")

    response = client.post(
        "/api/auth/register",
        json={"username": "maya2", "email": "MAYA@example.com", "password": "secret1"},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Email already in use"


def test_duplicate_username_is_rejected(client, register_user):
    register_user("maya", "maya@example.com")

    response = client.post(
        "/api/auth/register",
        json={"username": "maya", "email": "other@example.com", "password": "secret1"},
    )
    assert response.status_code == 409


def test_register_validates_fields(client):
    short = client.post(
        "/api/auth/register",
        json={"username": "maya", "email": "maya@example.com", "password": "123"},
    )
    assert short.status_code == 400

    missing = client.post("/api/auth/register", json={"email": "maya@example.com"})
    assert missing.status_code == 400


def test_login_returns_token_for_same_user(client, register_user):
    maya = register_user("maya", "maya@example.com", password="secret1")

    response = client.post("/api/auth/login", json={"email": "maya@example.com", "password": "secret1"})
    assert response.status_code == 200
    assert decode_jwt_token(response.json()["token"])["sub"] == maya.id


def test_login_rejects_bad_credentials(client, register_user):
    register_user("maya", "maya@example.com", password="secret1")

    wrong_password = client.post("/api/auth/login", json={"email": "maya@example.com", "password": "nope123"})
    assert wrong_password.status_code == 401
    assert wrong_password.json()["detail"] == "Invalid credentials"

    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret1"})
    assert unknown.status_code == 401


def test_me_requires_valid_bearer_token(client, register_user):
    maya = register_user("maya")

    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": maya.token}).status_code == 401

    response = client.get("/api/auth/me", headers=maya.headers)
    assert response.status_code == 200
    assert response.json()["userId"] == maya.id


def test_expired_token_is_rejected(client, register_user):
    maya = register_user("maya")
    expired = create_jwt_token({"sub": maya.id}, expires_delta=timedelta(seconds=-5))

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_token_for_unknown_user_is_rejected(client):
    token = create_jwt_token({"sub": "no-such-user"})
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "User not found"


def test_demo_token_resolves_to_demo_user(client, demo_headers):
    response = client.get("/api/auth/me", headers=demo_headers)
    assert response.status_code == 200
    assert response.json()["userId"] == settings.DEMO_USER_ID


def test_demo_token_is_disabled_in_production(client, demo_headers, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    assert client.get("/api/auth/me", headers=demo_headers).status_code == 401


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
