# ================================
# TEST FIXTURES (tests/conftest.py)
# ================================

import os
from datetime import datetime, timedelta, timezone

import pytest
from dotenv import load_dotenv

# Load environment variables, then pin the app to an in-process database
load_dotenv()
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_CLAIMS_EXPIRY_SWEEP"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from fastapi.testclient import TestClient

from groupstays.core.database import engine, SessionLocal
from groupstays.core.security import create_access_token
from groupstays.dependencies import get_db
from groupstays.main import app
from groupstays.models import Base, User, Property, GroupBooking
from groupstays.models.enums import UserRole, PropertyStatus, GroupBookingStatus
from groupstays.schemas.group_stay import ClaimsWindowOpen, ClaimCreate
from groupstays.services.admin_claims_service import AdminClaimsService
from groupstays.services.claim_submission_service import ClaimSubmissionService
from groupstays.utils import utc_now

CHECK_IN = datetime(2026, 12, 1, 14, 0, tzinfo=timezone.utc)
CHECK_OUT = datetime(2026, 12, 4, 10, 0, tzinfo=timezone.utc)  # 3 nights (rounded up)


@pytest.fixture
def db_session():
    """Fresh schema per test; services commit, so there is no outer transaction to roll back."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role=UserRole.OWNER, name=None, is_active=True):
        counter["n"] += 1
        user = User(
            email=f"{role.value.lower()}{counter['n']}@example.com",
            name=name or f"{role.value.title()} {counter['n']}",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, name="Admin")


@pytest.fixture
def owner(make_user):
    return make_user(UserRole.OWNER, name="Owner One")


@pytest.fixture
def make_property(db_session):
    def _make_property(owner, **overrides):
        values = {
            "owner_id": owner.id,
            "title": "Safari Lodge",
            "type": "Hotel",
            "status": PropertyStatus.APPROVED,
            "region_name": "Arusha",
            "district": None,
            "hotel_star": "high",
            "services": ["Group Stay", "Parking"],
            "currency": "TZS",
        }
        values.update(overrides)
        prop = Property(**values)
        db_session.add(prop)
        db_session.commit()
        return prop

    return _make_property


@pytest.fixture
def make_booking(db_session):
    def _make_booking(**overrides):
        values = {
            "status": GroupBookingStatus.PENDING,
            "group_type": "School trip",
            "accommodation_type": "hotel",
            "headcount": 10,
            "rooms_needed": 5,
            "to_region": "Arusha",
            "check_in": CHECK_IN,
            "check_out": CHECK_OUT,
            "currency": "TZS",
            "recommended_property_ids": [],
        }
        values.update(overrides)
        booking = GroupBooking(**values)
        db_session.add(booking)
        db_session.commit()
        return booking

    return _make_booking


@pytest.fixture
def open_window(db_session, admin):
    """Opens a claims window through the admin service (deadline three days out by default)."""

    def _open_window(booking, **fields):
        fields.setdefault("deadline", utc_now() + timedelta(days=3))
        return AdminClaimsService.open_for_claims(db_session, booking.id, ClaimsWindowOpen(**fields), admin.id)

    return _open_window


@pytest.fixture
def submit(db_session):
    """Submits a claim through the coordinator."""

    def _submit(owner, booking, prop, price="100000", discount=None, **extra):
        data = ClaimCreate(
            group_booking_id=booking.id,
            property_id=prop.id,
            offered_price_per_night=price,
            discount_percent=discount,
            **extra,
        )
        return ClaimSubmissionService.submit_claim(db_session, owner.id, data)

    return _submit


@pytest.fixture
def expire_window(db_session):
    """Marks a window open since `days_ago` days with no explicit deadline (default window: 7 days)."""

    def _expire_window(booking, days_ago=8):
        booking.is_open_for_claims = True
        booking.opened_for_claims_at = utc_now() - timedelta(days=days_ago)
        booking.claims_config = None
        db_session.commit()
        return booking

    return _expire_window


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def client(db_session):
    """TestClient bound to the test session (lifespan, and with it the scheduler, is not started)."""
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
