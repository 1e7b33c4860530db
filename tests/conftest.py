"""Shared fixtures: a throwaway SQLite database per test and an API client bound to it."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_momentum.db")
os.environ.setdefault("SECRET_KEY", "test-secret")

import itertools
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from momentum.database.base import Base
from momentum.database.session import build_engine, get_db
from momentum.main import app
from momentum.utils.webhook_service import WebhookDispatcher, get_webhook_dispatcher

PASSWORD = "password123"
_emails = itertools.count(1)


@pytest.fixture
def engine(tmp_path):
    """Create a fresh SQLite database file with every table."""
    engine = build_engine(f"sqlite:///{tmp_path / 'momentum.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def webhook_requests() -> List[httpx.Request]:
    """Every request the webhook dispatcher sent during the test."""
    return []


@pytest.fixture
def webhook_status() -> dict:
    """Status code the fake webhook receiver answers with."""
    return {"code": 200}


@pytest.fixture
def dispatcher(webhook_requests, webhook_status):
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(request)
        return httpx.Response(webhook_status["code"])

    dispatcher = WebhookDispatcher(client=httpx.Client(transport=httpx.MockTransport(handler)), max_workers=2)
    yield dispatcher
    dispatcher.shutdown(wait=True)


@pytest.fixture
def client(session_factory, dispatcher):
    """Create a FastAPI test client using the test database and dispatcher."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_webhook_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


class Account:
    """A signed-up user with their bearer headers and default workspace."""

    def __init__(self, data: dict):
        self.token = data["access_token"]
        self.user = data["user"]
        self.workspace = data["workspace"]
        self.headers = {"Authorization": f"Bearer {self.token}"}

    @property
    def id(self) -> int:
        return self.user["id"]

    @property
    def workspace_id(self) -> int:
        return self.workspace["id"]


@pytest.fixture
def signup(client) -> Callable[..., Account]:
    """Factory signing up a new user through the API."""
    def _signup(name: str = "Test User", email: str = None) -> Account:
        email = email or f"user{next(_emails)}@example.com"
        response = client.post("/auth/signup", json={"name": name, "email": email, "password": PASSWORD})
        assert response.status_code == 201, response.text
        return Account(response.json())
    return _signup


@pytest.fixture
def alice(signup) -> Account:
    return signup("Alice Anders")


@pytest.fixture
def bob(signup) -> Account:
    return signup("Bob Brown")


@pytest.fixture
def project(client, alice) -> dict:
    """The default project of Alice's workspace."""
    response = client.get(f"/workspaces/{alice.workspace_id}/projects", headers=alice.headers)
    assert response.status_code == 200
    return response.json()[0]


@pytest.fixture
def labels(client, alice) -> dict:
    """Alice's default labels by name."""
    response = client.get(f"/workspaces/{alice.workspace_id}/labels", headers=alice.headers)
    return {label["name"]: label for label in response.json()}


@pytest.fixture
def create_issue(client, alice, project) -> Callable[..., dict]:
    def _create(title: str = "An issue", account: Account = None, project_id: int = None, **fields) -> dict:
        account = account or alice
        response = client.post(
            f"/projects/{project_id or project['id']}/issues",
            json={"title": title, **fields},
            headers=account.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def add_member(client) -> Callable[..., dict]:
    """Factory adding `member` to `owner`'s default workspace."""
    def _add(owner: Account, member: Account, role: str = "member") -> dict:
        response = client.post(
            f"/workspaces/{owner.workspace_id}/members",
            json={"email": member.user["email"], "role": role},
            headers=owner.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _add
