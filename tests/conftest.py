import os
import tempfile
from datetime import datetime, timezone
from types import SimpleNamespace

# Must be set before the app modules read their configuration
_TEST_DB_DIR = tempfile.mkdtemp(prefix="carwash-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["STRICT_STATUS_TRANSITIONS"] = "false"
os.environ["BUSINESS_TIMEZONE"] = "UTC"

import pytest  # noqa: E402
from fastapi import Depends  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.domain.scheduling.availability_service import AvailabilityService  # noqa: E402
from app.domain.scheduling.booking_service import BookingService  # noqa: E402
from app.domain.scheduling.router import (  # noqa: E402
    get_availability_service,
    get_booking_service,
)
from app.domain.scheduling.time_calculator import SchedulingPolicy  # noqa: E402
from app.models import Location, Service, User, Vehicle  # noqa: E402
from app.security_utils import create_jwt_token  # noqa: E402

# Request time used by every test: the day before SLOT
FIXED_NOW = datetime(2025, 11, 28, 10, 0)
SLOT = datetime(2025, 11, 29, 8, 0, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def policy():
    return SchedulingPolicy(opening_hour=8, closing_hour=18, slot_minutes=30, capacity=3)


@pytest.fixture
def seed(db):
    """Two locations, one service, customers with vehicles, and staff"""
    main = Location(name="Car Wash Sudirman", address="Jl. Sudirman 1", phone="0215550101")
    branch = Location(name="Car Wash Kemang", address="Jl. Kemang 9", phone="0215550202")
    db.add_all([main, branch])
    db.flush()

    service = Service(name="Quick Wash", description="Exterior wash and drying.", price=50000)
    db.add(service)

    customer = User(username="budi", email="budi@example.com", name="Budi Santoso", phone="081112223333")
    other = User(username="sari", email="sari@example.com", name="Sari Dewi", phone="081144445555")
    admin = User(username="admin_main", email="admin@example.com", role="ADMIN", location_id=main.id)
    branch_admin = User(
        username="admin_branch", email="branch@example.com", role="ADMIN", location_id=branch.id
    )
    superadmin = User(username="superadmin", email="super@example.com", role="SUPERADMIN")
    db.add_all([customer, other, admin, branch_admin, superadmin])
    db.flush()

    car = Vehicle(plate="B 1234 ABC", type="MOBIL", model="Toyota Avanza", owner_id=customer.id)
    bike = Vehicle(plate="B 5678 XYZ", type="MOTOR", model="Honda Beat", owner_id=other.id)
    db.add_all([car, bike])
    db.commit()

    return SimpleNamespace(
        location_id=main.id,
        branch_id=branch.id,
        service_id=service.id,
        customer_id=customer.id,
        other_id=other.id,
        admin_id=admin.id,
        branch_admin_id=branch_admin.id,
        superadmin_id=superadmin.id,
        vehicle_id=car.id,
        other_vehicle_id=bike.id,
    )


@pytest.fixture
def make_service(db, policy):
    """Factory for a BookingService bound to the test session and fixed clock"""

    def factory(session=None, **overrides):
        options = {
            "policy": policy,
            "clock": fixed_clock,
            "strict_transitions": False,
        }
        options.update(overrides)
        return BookingService(session or db, **options)

    return factory


@pytest.fixture
def booking_service(make_service):
    return make_service()


def token_for(db, user_id: int) -> str:
    user = db.query(User).filter(User.id == user_id).first()
    return create_jwt_token({"userId": user.id, "username": user.username, "role": user.role})


@pytest.fixture
def auth_headers(db, seed):
    def headers(user_id: int) -> dict:
        return {"Authorization": f"Bearer {token_for(db, user_id)}"}

    return headers


@pytest.fixture
def client(policy):
    from app.main import app

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    def override_booking_service(session=Depends(get_db)):
        return BookingService(session, policy=policy, clock=fixed_clock, strict_transitions=False)

    def override_availability_service(session=Depends(get_db)):
        return AvailabilityService(session, policy=policy)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_service] = override_booking_service
    app.dependency_overrides[get_availability_service] = override_availability_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
