"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of agora.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import UTC, date, datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from agora.config import AgoraConfig  # noqa: E402
from agora.database.engine import enable_sqlite_foreign_keys, init_db  # noqa: E402
from agora.database.models import ContentKind, User  # noqa: E402
from agora.services import content_service, user_service  # noqa: E402

# Cheapest cost bcrypt accepts; hashing speed is irrelevant to the tests.
TEST_ROUNDS = 4


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Agora tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` in the auth gate and rate limiter).
    Foreign keys are enforced so RESTRICT/CASCADE match PostgreSQL.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def app_config() -> AgoraConfig:
    """Config used by the API under test: fast hashing, no throttle."""
    return AgoraConfig(bcrypt_rounds=TEST_ROUNDS)


# ---------------------------------------------------------------------------
# Factories: usable as plain functions from any test
# ---------------------------------------------------------------------------
def make_user(
    engine: Engine,
    email: str = "ada@example.com",
    password: str = "correct horse",
    first_name: str = "Ada",
    last_name: str = "Lovelace",
) -> User:
    return user_service.signup(
        engine,
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        rounds=TEST_ROUNDS,
    )


def make_token(user: User, cfg: AgoraConfig | None = None) -> str:
    from agora.api.deps import issue_token

    return issue_token(user, cfg or AgoraConfig())


def make_topic(engine: Engine, creator: User, title: str = "First topic", **overrides):
    fields = {
        "title": title,
        "content": "Body text",
        "created_at": datetime(2023, 11, 7, 12, 0, tzinfo=UTC),
        "creator_id": creator.id,
    }
    fields.update(overrides)
    return content_service.create(engine, ContentKind.TOPIC, **fields)


def make_question(engine: Engine, creator: User, title: str = "How do I?", **overrides):
    fields = {
        "title": title,
        "content": "Question body",
        "created_at": datetime(2023, 11, 7, 12, 0, tzinfo=UTC),
        "creator_id": creator.id,
    }
    fields.update(overrides)
    return content_service.create(engine, ContentKind.QUESTION, **fields)


def make_event(engine: Engine, creator: User, title: str = "Meetup", **overrides):
    fields = {
        "title": title,
        "description": "Monthly meetup",
        "event_date": date(2024, 1, 15),
        "location": "Library",
        "creator_id": creator.id,
    }
    fields.update(overrides)
    return content_service.create(engine, ContentKind.EVENT, **fields)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fixtures built on the factories
# ---------------------------------------------------------------------------
@pytest.fixture
def member(db_engine: Engine) -> User:
    return make_user(db_engine)


@pytest.fixture
def headers(member: User) -> dict:
    """Authorization header for :func:`member`."""
    return auth_header(make_token(member))


@pytest.fixture
def client(db_engine: Engine, app_config: AgoraConfig):
    """FastAPI TestClient bound to the in-memory database."""
    from fastapi.testclient import TestClient

    from agora.api.deps import get_config, get_engine
    from agora.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: app_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
