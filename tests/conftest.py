"""
Pytest configuration and fixtures for Signoff API tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from signoff.database import Base, get_db
from signoff.limiter import limiter
from signoff.main import app
from signoff.models import ApprovalStep, ApprovalWorkflow, Organization, User
from signoff.auth import get_password_hash, create_access_token

# Disable rate limiting for tests
limiter.enabled = False

# Use in-memory SQLite for tests with shared connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Global session for sharing across requests
_test_session = None

PASSWORD_HASH = get_password_hash("testpassword123")


def get_test_db():
    """Get the shared test database session."""
    yield _test_session


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    global _test_session

    Base.metadata.create_all(bind=engine)
    _test_session = TestingSessionLocal()
    app.dependency_overrides[get_db] = get_test_db

    yield _test_session

    app.dependency_overrides.clear()
    _test_session.close()
    _test_session = None
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


def make_user(db, email, organization=None, role="member", locale="fr", full_name=None):
    user = User(
        email=email,
        hashed_password=PASSWORD_HASH,
        full_name=full_name or email.split("@")[0],
        organization=organization,
        role=role,
        locale=locale,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user):
    """Bearer auth headers for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def organization(db):
    org = Organization(name="Construction Tremblay", slug="construction-tremblay")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


@pytest.fixture(scope="function")
def owner(db, organization):
    return make_user(db, "owner@example.com", organization, role="owner", full_name="Marie Tremblay")


@pytest.fixture(scope="function")
def approver(db, organization):
    return make_user(db, "approver@example.com", organization)


@pytest.fixture(scope="function")
def other_user(db, organization):
    return make_user(db, "other@example.com", organization)


@pytest.fixture(scope="function")
def make_workflow(db, organization, owner):
    """Factory creating a workflow with one step per approver."""

    def _make(approvers, status="pending", name="Facture 2024-001", resource_type="invoice", resource_id="inv-001"):
        workflow = ApprovalWorkflow(
            organization_id=organization.id,
            resource_type=resource_type,
            resource_id=resource_id,
            name=name,
            created_by=owner.id,
            steps=[
                ApprovalStep(approver_id=user.id, step_order=position, status=status)
                for position, user in enumerate(approvers, start=1)
            ],
        )
        db.add(workflow)
        db.commit()
        db.refresh(workflow)
        return workflow

    return _make


@pytest.fixture(scope="function")
def pending_step(make_workflow, approver):
    return make_workflow([approver]).steps[0]
