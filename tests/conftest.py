"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
import sys
from types import SimpleNamespace
from typing import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from scripts.seed import SEED_PASSWORD, SEED_USERS
from tradetide.core.config import settings
from tradetide.core.ratelimit import limiter
from tradetide.main import app as tradetide_app


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture()
def app(database_url: str, monkeypatch) -> Generator[FastAPI, None, None]:
    """The application bound to a fresh SQLite file, rate limiting off."""

    monkeypatch.setattr(settings, "DATABASE_URL", database_url)
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "DEMO_TOKEN_ENABLED", True)
    monkeypatch.setattr(limiter, "enabled", False)
    yield tradetide_app


@pytest.fixture()
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the lifespan running (database, demo user, relay)."""

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def register_user(client: TestClient) -> Callable[..., SimpleNamespace]:
    """Register through the API, optionally filling in the profile."""

    def _register(username: str, email: str | None = None, password: str = SEED_PASSWORD, **profile):
        response = client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username.lower()}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        headers = {"Authorization": f"Bearer {body['token']}"}

        user = body["user"]
        if profile:
            updated = client.put("/api/profile", json=profile, headers=headers)
            assert updated.status_code == 200, updated.text
            user = updated.json()

        return SimpleNamespace(id=user["userId"], token=body["token"], headers=headers, user=user)

    return _register


@pytest.fixture()
def seeded_users(register_user) -> dict:
    """The five demo users from scripts/seed.py, keyed by lower-case name."""

    users = {}
    for data in SEED_USERS:
        profile = {k: v for k, v in data.items() if k not in ("username", "email")}
        users[data["username"].lower()] = register_user(data["username"], data["email"], **profile)
    return users


@pytest.fixture()
def alice(seeded_users) -> SimpleNamespace:
    return seeded_users["alice"]


@pytest.fixture()
def bob(seeded_users) -> SimpleNamespace:
    return seeded_users["bob"]


@pytest.fixture()
def charlie(seeded_users) -> SimpleNamespace:
    return seeded_users["charlie"]


@pytest.fixture()
def demo_headers() -> dict:
    return {"Authorization": f"Bearer {settings.DEMO_TOKEN}"}
