import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_JWT_SECRET", "solardesk-test-secret-0123456789abcdef")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import solardesk.models  # noqa: F401
from solardesk.core.auth import SessionContext, get_current_session
from solardesk.core.database import Base, get_db
from solardesk.main import app
from solardesk.models.project import Project
from solardesk.services.payment_form_service import clear_payment_form_defaults

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN = SessionContext(user_id="admin-1", email="admin@example.com", roles=["admin"], is_admin=True)
FINANCE = SessionContext(user_id="finance-1", email="accounts@example.com", roles=["finance"], is_finance=True)
STAFF = SessionContext(user_id="staff-1", email="field@example.com")
RESTRICTED = SessionContext(user_id="viewer-1", email="viewer@example.com", is_restricted=True)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def current_session():
    # Mutable holder so a test can switch users mid-way
    return {"session": ADMIN}


@pytest.fixture
def act_as(current_session):
    def _act_as(session: SessionContext):
        current_session["session"] = session
    return _act_as


@pytest.fixture
def client(db, current_session):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_session] = lambda: current_session["session"]
    clear_payment_form_defaults()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_payment_form_defaults()


@pytest.fixture
def anonymous_client(db):
    """Client that authenticates through real bearer tokens"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_project(db):
    """Insert a project row directly, bypassing the service (no advance row)"""
    def _make_project(**overrides):
        values = {
            "name": "Rooftop 5kW",
            "customer_name": "Ravi Kumar",
            "address": "12 MG Road, Vijayawada",
            "state": "AP",
            "proposal_amount": Decimal("500000"),
            "advance_payment": Decimal("100000"),
            "paid_amount": Decimal("0"),
            "balance_amount": Decimal("400000"),
            "loan_amount": Decimal("0"),
            "status": "active",
            "current_stage": "Site Visit",
            "start_date": date(2024, 1, 10),
            "kwh": Decimal("5"),
        }
        values.update(overrides)
        project = Project(**values)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project
    return _make_project
