"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import datetime
from typing import Generator
from zoneinfo import ZoneInfo
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from tracksmart.api.dependencies import get_now
from tracksmart.api.main import create_app
from tracksmart.infrastructure.database.models import Base
from tracksmart.infrastructure.database.session import get_db
from tracksmart.domain.models import MealPlan, Transaction, UserProfile, VendorCategory


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Mid-month, late evening on campus
FIXED_NOW = datetime(2026, 10, 15, 23, 30, tzinfo=ZoneInfo("Africa/Lagos"))


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def client(db: Session, now: datetime) -> TestClient:
    """Create FastAPI test client with test database and a pinned clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: now
    return TestClient(app)


@pytest.fixture
def profile() -> UserProfile:
    """Two-meal student on a 30,000 naira allowance (1,000 a day)"""
    return UserProfile(
        user_id="student_1",
        monthly_allowance=30000,
        meal_plan=MealPlan.TWO_MEAL,
        financial_goal="Save for a laptop",
        financial_goal_amount=150000,
    )


@pytest.fixture
def make_transaction():
    """Factory for purchases with sensible defaults"""

    def _make(
        amount: int,
        timestamp: datetime,
        category: VendorCategory = VendorCategory.SCHOOL_CAFETERIA,
        vendor: str = "Main Cafeteria",
        coupon_amount: int = 0,
    ) -> Transaction:
        return Transaction(
            amount=amount,
            vendor=vendor,
            vendor_category=category,
            timestamp=timestamp,
            coupon_used=coupon_amount > 0,
            coupon_amount=coupon_amount,
        )

    return _make
