"""Pytest fixtures and configuration for learnplan tests."""

import os

# Keep the app's module-level engine off the developer database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from learnplan.database.database import Base


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_USER_CREDITS = 50


def _add_user(session: Session, user_id: str, email: str, credits: int) -> None:
    from learnplan.database.models import UserDB, UserStatsDB

    now = datetime.utcnow()
    session.add(UserDB(
        id=user_id,
        email=email,
        name="Test User",
        credits=credits,
        created_at=now,
        updated_at=now,
    ))
    session.add(UserStatsDB(
        id=f"stats-{user_id}",
        user_id=user_id,
        current_streak=0,
        longest_streak=0,
        last_active_date=None,
        total_learning_time_ms=0,
        weekly_learning_time_ms=0,
        monthly_learning_time_ms=0,
        updated_at=now,
    ))


@pytest.fixture(scope="function")
def db_session(test_user_id, other_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test,
    seeded with two users (each with credits and an empty stats row).
    """
    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Register every table, then create them
    from learnplan.database import models  # noqa: F401
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    _add_user(session, test_user_id, "test@example.com", TEST_USER_CREDITS)
    _add_user(session, other_user_id, "other@example.com", TEST_USER_CREDITS)
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def other_user_id():
    """A second user, for ownership checks."""
    return "other-user-456"


@pytest.fixture
def test_user(test_user_id):
    """Create a test user object."""
    from learnplan.models.user import User
    now = datetime.utcnow()
    return User(
        id=test_user_id,
        email="test@example.com",
        name="Test User",
        credits=TEST_USER_CREDITS,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def test_client(db_session: Session, test_user):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from learnplan.api.app import app
    from learnplan.database.database import get_db
    from learnplan.auth.dependencies import get_current_user

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def set_credits(db_session: Session):
    """Set a user's balance directly (bypassing the ledger)."""
    from learnplan.database.models import UserDB

    def _set(user_id: str, credits: int) -> None:
        db_session.query(UserDB).filter(UserDB.id == user_id).update({UserDB.credits: credits})
        db_session.commit()

    return _set
