# backend/tests/conftest.py
"""
Every test gets its own app built from explicit Settings against a private
in-memory SQLite database, plus a notifier that records instead of emailing.
"""

from __future__ import annotations

from typing import List

import pytest
from fastapi.testclient import TestClient

from rsvp_api.core.config import Settings
from rsvp_api.core.email import RsvpNotice
from rsvp_api.core.errors import NotificationError
from rsvp_api.core.security import hash_admin_password
from rsvp_api.main import create_app

ADMIN_PASSWORD = "open-sesame"
ADMIN_SALT = "b7f0c1d2e3"
SITE_ORIGIN = "https://wedding.example.com"


class RecordingNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[RsvpNotice] = []

    async def send(self, notice: RsvpNotice) -> None:
        self.sent.append(notice)
        if self.fail:
            raise NotificationError("Email failed: 500 provider down")


def make_settings(**overrides) -> Settings:
    values = dict(
        environment="test",
        database_url="sqlite+pysqlite://",
        site_origin=SITE_ORIGIN,
        admin_password_salt=ADMIN_SALT,
        admin_password_hash=hash_admin_password(ADMIN_SALT, ADMIN_PASSWORD),
        jwt_secret="test-signing-secret",
        email_provider="log",
        rsvp_to_email="hosts@example.com",
        rsvp_from_email="rsvp@example.com",
        login_rate_limit=100,
        background_drain_timeout_seconds=5,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def app(settings, notifier):
    return create_app(settings, notifier=notifier)


@pytest.fixture()
def client(app):
    # Context manager runs the lifespan: tables created, task registry started
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_headers(client) -> dict:
    resp = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def create_invite(client: TestClient, headers: dict, **payload) -> dict:
    body = {"displayName": "John Smith", "allowedGuests": 2}
    body.update(payload)
    resp = client.post("/admin/invites", json=body, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["invite"]
