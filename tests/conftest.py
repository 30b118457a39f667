"""
Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database; the FastAPI app is
driven through ``TestClient`` with ``get_db`` pointed at the same session
the test uses for its factories.
"""

import itertools
import os
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from issuetracker.database import Base, get_db
from issuetracker.models import Project, User, UserRole
from issuetracker.utils.security import hash_password, token_for_user
from main import app

TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "api: test drives the HTTP surface through TestClient"
    )


# ═══════════════════════════════════════════════════════════════════════════
# Database and app
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ═══════════════════════════════════════════════════════════════════════════
# Factories
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def make_user(db):
    counter = itertools.count(1)

    def _make_user(role=UserRole.DEVELOPER, name=None, company_code="ACME", email=None, is_active=True):
        n = next(counter)
        role = getattr(role, "value", role)
        user = User(
            name=name or f"{role} {n}",
            email=email or f"{role.lower()}{n}@{company_code.lower()}.com",
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            company_code=company_code,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_project(db):
    def _make_project(manager, members=(), name="Payments Revamp", key="PRJ", members_limit=10):
        project = Project(
            name=name,
            key=key,
            company_code=manager.company_code,
            manager_id=manager.id,
            members_limit=members_limit,
            last_task_number=0,
        )
        project.members = list(members)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make_project


@pytest.fixture()
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {token_for_user(user)}"}

    return _auth_headers


@pytest.fixture()
def team(make_user, make_project):
    """A project PRJ managed by ``pm`` with one developer and one QA tester."""
    pm = make_user(UserRole.PROJECT_MANAGER, name="Priya Shah")
    dev = make_user(UserRole.DEVELOPER, name="Sam Carter")
    qa = make_user(UserRole.QA_TESTER, name="Riya Menon")
    admin = make_user(UserRole.ADMIN, name="Ada Admin")
    project = make_project(pm, members=[dev, qa])
    return SimpleNamespace(pm=pm, dev=dev, qa=qa, admin=admin, project=project)


@pytest.fixture()
def password():
    """Plain-text password of every user built by ``make_user``."""
    return TEST_PASSWORD
