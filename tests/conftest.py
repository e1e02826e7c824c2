"""Shared test fixtures for the profiles backend tests."""

import os

# Settings are read at import time; point them at an in-memory database
# before anything from `app` is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["APPLY_SQL_MIGRATIONS"] = "false"
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import func, select
from sqlmodel import SQLModel, Session

from app.core.policies import bind_caller
from app.database import build_engine, get_session
from app.main import app
from app.models.identity import Identity
from app.repositories.identity_repo import IdentityRepository
from app.services.identity_service import IdentityService

JWT_SECRET = "test-jwt-secret"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_as(engine):
    """Factory: session_as(identity_id_or_None) -> Session bound to that caller."""
    sessions = []

    def _make(caller_id):
        session = Session(engine)
        bind_caller(session, caller_id)
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        session.close()


@pytest.fixture
def identity_factory(engine):
    """Factory: create a local identity (its profile is provisioned with it)."""
    service = IdentityService(IdentityRepository())

    def _create(email, full_name=None):
        with Session(engine) as session:
            return service.create_identity(session, email, full_name)

    return _create


@pytest.fixture
def ann(identity_factory):
    return identity_factory("a@x.com", full_name="Ann")


@pytest.fixture
def bob(identity_factory):
    return identity_factory("b@x.com", full_name="Bob")


@pytest.fixture
def count_rows(engine):
    """Row count read with a plain connection, outside any caller's policies."""

    def _count(model):
        with engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(model.__table__)).scalar_one()

    return _count


def _encode_token(sub, email=None, expires_in=3600, secret=JWT_SECRET):
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(sub),
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def make_token():
    """Factory: make_token(sub, email=None, expires_in=3600, secret=...) -> JWT."""
    return _encode_token


@pytest.fixture
def auth_headers():
    """Factory: auth_headers(identity) -> Authorization header for that identity."""

    def _headers(identity: Identity) -> dict[str, str]:
        return {"Authorization": f"Bearer {_encode_token(identity.id, identity.email)}"}

    return _headers


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()

