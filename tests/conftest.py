"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all PillTrack tests.
Fixtures include database sessions, test clients with a pinned clock,
and sample users, catalog entries and tracked medications.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Generator, Dict, Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep the app off the real database and scheduler during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCANNER_ENABLED", "false")

from database import Base, get_db
from models import User, CatalogMedicine, Medication, DismissedReminder, Frequency
from tools.medication_record import MedicationRecord
from api.deps import get_now
from app import app


# Monday morning, ten minutes before the first dose
TODAY = date(2025, 3, 10)
FIXED_NOW = datetime(2025, 3, 10, 7, 50)


class FrozenClock:
    """Mutable reference instant served to the API through get_now"""

    def __init__(self, now: datetime):
        self.now = now

    def set(self, hour: int, minute: int = 0, day: date = TODAY) -> datetime:
        self.now = datetime(day.year, day.month, day.day, hour, minute)
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock() -> FrozenClock:
    """Reference instant for API calls, starting at FIXED_NOW"""
    return FrozenClock(FIXED_NOW)


@pytest.fixture(scope="function")
def client(db_session: Session, clock: FrozenClock) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database and clock overrides"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock.now

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def sample_user_data() -> Dict[str, Any]:
    """Sample user data for creating test users"""
    return {
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "notify_push": True,
        "notify_email": True,
        "notify_calendar": False,
    }


@pytest.fixture
def test_user(db_session: Session, sample_user_data: Dict) -> User:
    """Create and return a test user"""
    user = User(**sample_user_data)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_catalog_medicine(db_session: Session) -> CatalogMedicine:
    """Create and return a catalog entry"""
    medicine = CatalogMedicine(
        name="Metformin",
        description="Blood sugar control",
        price=4.5,
        symptoms=["high blood sugar"]
    )
    db_session.add(medicine)
    db_session.commit()
    db_session.refresh(medicine)
    return medicine


@pytest.fixture
def test_medication(
    db_session: Session,
    test_user: User,
    test_catalog_medicine: CatalogMedicine
) -> Medication:
    """Twice-daily medication starting today, never taken"""
    medication = Medication(
        user_id=test_user.id,
        medicine_id=test_catalog_medicine.id,
        fallback_name=test_catalog_medicine.name,
        dosage="500mg",
        frequency=Frequency.TWICE_DAILY,
        times=["08:00", "20:00"],
        start_date=TODAY,
        is_active=True,
        notes="Take with meals"
    )
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def dismissed_evening(db_session: Session, test_medication: Medication) -> DismissedReminder:
    """Today's 20:00 occurrence of test_medication skipped"""
    dismissal = DismissedReminder(
        medication_id=test_medication.id,
        date=TODAY,
        time="20:00",
        dismissed_at=FIXED_NOW
    )
    db_session.add(dismissal)
    db_session.commit()
    db_session.refresh(test_medication)
    return dismissal


# ==================== RECORD FACTORIES ====================

@pytest.fixture
def make_record():
    """Factory for engine snapshots with test-friendly defaults"""

    def _make(**overrides) -> MedicationRecord:
        fields = {
            "id": 1,
            "times": ("08:00", "20:00"),
            "start_date": TODAY,
            "end_date": None,
            "is_active": True,
            "last_taken": None,
            "medicine_id": 1,
            "medicine_name": "Metformin",
            "dosage": "500mg",
            "frequency": "twice-daily",
        }
        fields.update(overrides)
        return MedicationRecord(**fields)

    return _make


def at(hour: int, minute: int = 0, day: date = TODAY) -> datetime:
    """Instant on the given day (today by default)"""
    return datetime(day.year, day.month, day.day, hour, minute)


# ==================== MARKERS ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")
