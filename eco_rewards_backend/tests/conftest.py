from __future__ import annotations

from collections.abc import Iterator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from eco_rewards.api.main import app
from eco_rewards.db import models
from eco_rewards.db.session import Base, get_db
from eco_rewards.journeys.reward_policy import RewardPolicy
from eco_rewards.repositories.admin_users import AdminUserRepository

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct horse battery staple"


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory: sessionmaker[Session]) -> Iterator[TestClient]:
    def _override_get_db() -> Iterator[Session]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db_session: Session) -> models.AdminUser:
    return AdminUserRepository(db_session).create(ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def auth_headers(client: TestClient, admin_user: models.AdminUser) -> dict[str, str]:
    response = client.post("/api/login", json={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def group(db_session: Session) -> models.MemberGroup:
    scheme = models.Scheme(name="Solent", vac_client_id=155)
    organisation = models.Organisation(name="Portsmouth City Council", scheme=scheme)
    group = models.MemberGroup(name="Staff", organisation=organisation)
    db_session.add_all([scheme, organisation, group])
    db_session.commit()
    db_session.refresh(group)
    return group


@pytest.fixture
def policy() -> RewardPolicy:
    return RewardPolicy(points_per_journey=1, bonus_every=2, bonus_points=10, carbon_factors={"bus": 0.1, "cycle": 0.2})


def member_stub(member_id, smartcard=None, mode="bus", distance=4.2) -> SimpleNamespace:
    """A stand-in for a Member row with just the fields an import reads."""
    return SimpleNamespace(id=member_id, smartcard=smartcard, default_transport_mode=mode, default_distance=distance)


@pytest.fixture
def make_member():
    return member_stub
