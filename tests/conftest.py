"""
tests/conftest.py -- Shared test fixtures for WorkMate tests.

This module provides:
  - test_settings: frozen Settings pointing at a per-module SQLite file
  - api_client: TestClient around create_app(test_settings), lifespan included
  - make_user: registers + logs in a fresh user through the real HTTP routes
  - engine / user_store / task_store: direct store access for unit tests

Design: a real SQLite file under pytest's tmp dir rather than ':memory:'.
TestClient runs sync route handlers in a thread pool and every thread gets
its own pooled connection; a plain in-memory DB would give each of them a
blank schema.

Settings are built explicitly with _env_file=None so a developer's .env
never leaks into the suite. bcrypt_rounds=4 is the lowest cost bcrypt
accepts and keeps registration/login tests fast.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import Settings
from core.database import apply_schema, create_db_engine
from tasks.store import TaskStore

TEST_SECRET = "test-secret-for-workmate-suite-0123456789"


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}@workmate.io"


# ---------------------------------------------------------------------------
# App fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def test_settings(tmp_path_factory) -> Settings:
    db_path = tmp_path_factory.mktemp("db") / "workmate_test.db"
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{db_path}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture(scope="module")
def api_client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """Yield a TestClient for the real app; the lifespan builds schema and stores."""
    app = create_app(test_settings)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def make_user(api_client: TestClient) -> Callable[..., dict]:
    """Return a factory that registers and logs in a brand-new user.

    The returned dict has id, email, password, token and ready-made
    Authorization headers.
    """

    def _make(name: str = "Ann", password: str = "secret1", department: str | None = None) -> dict:
        email = unique_email(name.lower())
        resp = api_client.post(
            "/api/register",
            json={"name": name, "email": email, "password": password, "department": department},
        )
        assert resp.status_code == 201, resp.text
        login = api_client.post("/api/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        token = login.json()["token"]
        return {
            "id": resp.json()["id"],
            "email": email,
            "password": password,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


# ---------------------------------------------------------------------------
# Store fixtures -- fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine(tmp_path):
    eng = create_db_engine(f"sqlite:///{tmp_path / 'store_test.db'}")
    apply_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def task_store(engine) -> TaskStore:
    return TaskStore(engine)


@pytest.fixture
def two_users(user_store: UserStore) -> tuple[User, User]:
    """Two persisted users (owner A and owner B) for ownership tests."""
    a = user_store.create_user(User(name="Ann", email=unique_email("ann"), password_hash=hash_password("secret1", 4)))
    b = user_store.create_user(User(name="Bob", email=unique_email("bob"), password_hash=hash_password("secret2", 4)))
    return a, b
