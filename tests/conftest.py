# tests/conftest.py

import os

os.environ.setdefault("BARBERSHOP_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from barbershop.auth import create_access_token, hash_password
from barbershop.db import get_session, init_db
from barbershop.main import app
from barbershop.models import User
from barbershop.repository import SqlRepository

PASSWORD = "correct-horse"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session):
    return SqlRepository(session)


@pytest.fixture
def make_user(session):
    def _make_user(name: str, role: str = "customer") -> User:
        user = User(
            name=name,
            email=f"{name.lower()}@example.com",
            password_hash=_PASSWORD_HASH,
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def barber(make_user):
    return make_user("Tommy", role="barber")


@pytest.fixture
def customer(make_user):
    return make_user("Arthur")


@pytest.fixture
def admin(make_user):
    return make_user("Polly", role="admin")


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    return auth_headers
