"""Pytest fixtures and configuration for usergate tests."""

import os

# Cheap bcrypt cost for tests; must be set before usergate.auth.passwords is imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
import uuid
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import patch

from usergate.auth.jwt import build_claims, create_access_token
from usergate.auth.passwords import hash_password
from usergate.database.database import Base, get_db
from usergate.database.user_repository import UserRepository
from usergate.database import models  # noqa: F401
from usergate.models.user import User, UserRole
from usergate.services.identity_service import IdentityService
from usergate.services.auth_service import AuthService
from usergate.services.external_identity import ExternalIdentityStrategy


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

ADMIN_PASSWORD = "admin123"
USER_PASSWORD = "secret1"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def identity_service(user_repository):
    return IdentityService(user_repository)


@pytest.fixture
def auth_service(identity_service):
    return AuthService(identity_service)


@pytest.fixture
def external_identity_strategy(identity_service):
    return ExternalIdentityStrategy(identity_service)


@pytest.fixture
def make_user(user_repository):
    """Factory that inserts a user directly through the repository."""

    def _make_user(
        email: str = None,
        name: str = "Test User",
        role: UserRole = UserRole.USER,
        password: str = USER_PASSWORD,
        external_id: str = None,
        last_login_at: datetime = None,
    ) -> User:
        now = datetime.utcnow()
        user = User(
            id=str(uuid.uuid4()),
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            password=hash_password(password) if password else None,
            name=name,
            role=role,
            external_id=external_id,
            last_login_at=last_login_at,
            created_at=now,
            updated_at=now,
        )
        return user_repository.create(user)

    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user(email="admin@example.com", name="Admin", role=UserRole.ADMIN, password=ADMIN_PASSWORD)


@pytest.fixture
def regular_user(make_user):
    return make_user(email="test@example.com", name="Test User")


@pytest.fixture
def auth_headers():
    """Build a bearer Authorization header for a user."""

    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(build_claims(user))}"}

    return _auth_headers


@pytest.fixture
def test_client(db_session: Session):
    """Create a FastAPI test client with the database dependency bound to the test session."""
    from usergate.api.app import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with patch("usergate.api.app.init_db"):
        with TestClient(app) as client:
            yield client

    app.dependency_overrides.clear()
