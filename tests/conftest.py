"""Test fixtures: an in-memory database per test and HTTP clients bound to it.

Every test gets a fresh SQLite database living in a single shared
connection (StaticPool), so the sessions handed to the app and the session
used by the test see the same data. get_db is swapped out through
app.dependency_overrides.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import bloghub.models  # noqa: F401  registers the tables
from bloghub.auth import create_session
from bloghub.config import get_settings
from bloghub.database import Base, get_db
from bloghub.main import app
from bloghub.models import Gender
from bloghub.users import create_user

PASSWORD = "correct-horse-battery"
COOKIE = get_settings().cookie_name


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture()
def db(session_factory):
    """Session for arranging and inspecting data from the test itself."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    """Anonymous HTTP client. Cookies set by responses stick to it."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """Factory creating users straight in the store. Phone numbers are unique per call."""
    counter = {"n": 0}

    def _make_user(username="alice", is_admin=False, password=PASSWORD, email=None):
        counter["n"] += 1
        return create_user(
            db,
            username=username,
            email=email or f"{username.lower()}@example.com",
            phone_number=f"55500000{counter['n']:02d}",
            gender=Gender.female,
            password=password,
            is_admin=is_admin,
        )

    return _make_user


@pytest.fixture()
def login_as(db, client):
    """Return an HTTP client carrying a fresh session cookie for the given user."""

    def _login_as(user):
        session = create_session(db, user.id)
        return TestClient(app, cookies={COOKIE: session.token})

    return _login_as
