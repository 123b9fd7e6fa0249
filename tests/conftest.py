"""Shared fixtures: an in-memory database per test, the service, a test client."""

import os
import itertools

# Must be set before app modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.models.group import GroupType
from app.models.user import User
from app.services.group_service import GroupMembershipService
from app.services.sql_stores import SqlUnitOfWork

_emails = itertools.count(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db):
    return GroupMembershipService(SqlUnitOfWork(db))


@pytest.fixture
def make_user(db):
    def _make(email: str | None = None) -> User:
        user = User(
            email=email or f"user{next(_emails)}@example.com",
            hashed_password="not-a-real-hash",
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def public_group(service, make_user):
    owner = make_user()
    return service.create_group(owner.id, "Runners", "Morning runs", GroupType.PUBLIC)


@pytest.fixture
def private_group(service, make_user):
    owner = make_user()
    return service.create_group(owner.id, "Core team", None, GroupType.PRIVATE)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user through the API; returns (user_id, auth headers)."""
    def _register(email: str | None = None, password: str = "secret123"):
        email = email or f"api{next(_emails)}@example.com"
        res = client.post("/auth/register", json={"email": email, "password": password})
        assert res.status_code == 201, res.text
        headers = {"Authorization": f"Bearer {res.json()['access_token']}"}
        me = client.get("/auth/me", headers=headers)
        return me.json()["id"], headers
    return _register
