"""Shared fixtures: an isolated app per test on in-memory SQLite."""
import os

os.environ.setdefault("JWT_SECRET", "test-secret")

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from tasktracker.core.config import Settings
from tasktracker.core.security import get_password_hash
from tasktracker.main import create_app
from tasktracker.models.user import UserRole
from tasktracker.services.notifications import NotificationSink
from tasktracker.stores.credentials import CredentialStore

DEFAULT_PASSWORD = "Passw0rd!"
PASSWORD_HASH = get_password_hash(DEFAULT_PASSWORD)


class RecordingSink(NotificationSink):
    def __init__(self):
        self.sent: List[tuple] = []

    def notify(self, kind, payload):
        self.sent.append((kind, payload))


@dataclass
class Principal:
    id: int
    username: str
    email: str
    role: UserRole
    token: str
    headers: Dict[str, str] = field(default_factory=dict)


class ApiHelper:
    """Creates principals straight in the store and drives the HTTP API."""

    def __init__(self, app, client: TestClient, prefix: str = "/api"):
        self.app = app
        self.client = client
        self.prefix = prefix

    def url(self, path: str) -> str:
        return f"{self.prefix}{path}"

    def create_user(
        self,
        username: str,
        role: UserRole = UserRole.USER,
        manager: Optional[Principal] = None,
    ) -> Principal:
        with self.app.state.session_factory() as db:
            store = CredentialStore(db)
            user = store.create(
                username=username,
                email=f"{username}@example.com",
                password_hash=PASSWORD_HASH,
                role=role,
                email_confirmed=True,
            )
            if manager is not None:
                user.manager_id = manager.id
                store.save(user)
            token = self.app.state.token_vault.issue(user.id, user.role)
            return Principal(
                id=user.id,
                username=user.username,
                email=user.email,
                role=user.role,
                token=token,
                headers={"Authorization": f"Bearer {token}"},
            )

    def create_task(self, owner: Principal, **fields: Any) -> Dict[str, Any]:
        body = {"title": "Task"}
        body.update(fields)
        response = self.client.post(self.url("/tasks"), json=body, headers=owner.headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]["task"]

    def assign(self, actor: Principal, task_id: int, user_id: int):
        return self.client.post(
            self.url(f"/tasks/{task_id}/assign"), json={"userId": user_id}, headers=actor.headers
        )


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        JWT_SECRET="test-secret",
        DB_URI="sqlite://",
        JWT_EXPIRE="1h",
        RATE_LIMIT_ENABLED=False,
        APP_ENV="test",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def sink(app):
    recording = RecordingSink()
    app.state.notification_sink = recording
    return recording


@pytest.fixture
def client(app, sink):
    return TestClient(app)


@pytest.fixture
def api(app, client):
    return ApiHelper(app, client)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin(api):
    return api.create_user("root_admin", UserRole.ADMIN)


@pytest.fixture
def manager(api):
    return api.create_user("manager_one", UserRole.MANAGER)


@pytest.fixture
def member(api, manager):
    return api.create_user("member_one", UserRole.USER, manager=manager)


@pytest.fixture
def outsider(api):
    return api.create_user("outsider")
