"""
Pytest configuration and fixtures
"""
import math
import os

# Settings are read at import time; configure them before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-attendance-tests")
os.environ["ATTENDANCE_TZ"] = "Asia/Kolkata"
os.environ["APP_ENV"] = "local"

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine

from app.main import app
from app.db.base import Base
from app.core.deps import get_db
from app.core.security import create_access_token
from app.models import Employee, Role  # noqa: F401  (registers every model on Base.metadata)
from app.services.geo_validator import EARTH_RADIUS_METERS
from app.services.shift_service import assign_shift, create_shift
from app.services.work_site_service import assign_site, create_site
from app.tests.constants import COMPANY_ID, SITE_LAT, SITE_LNG, WORK_DAY
from app.utils.datetime_utils import combine_local


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(db):
    """Factory: create an active employee of COMPANY_ID"""
    def _make(emp_code: str, role: Role = Role.EMPLOYEE, company_id: int = COMPANY_ID, name: str = None) -> Employee:
        employee = Employee(
            emp_code=emp_code,
            name=name or f"Employee {emp_code}",
            company_id=company_id,
            role=role.value,
            active=True,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee
    return _make


@pytest.fixture
def employee(make_employee):
    return make_employee("EMP001")


@pytest.fixture
def hr_user(make_employee):
    return make_employee("HR001", role=Role.HR)


@pytest.fixture
def admin_user(make_employee):
    return make_employee("ADM001", role=Role.ADMIN)


@pytest.fixture
def site(db, employee):
    """100 m geofence assigned to the default employee as primary site"""
    work_site = create_site(db, COMPANY_ID, "Head Office", SITE_LAT, SITE_LNG, 100)
    assign_site(db, employee.id, work_site.id, is_primary=True)
    return work_site


@pytest.fixture
def general_shift(db, employee):
    """09:00-18:00, 10 minute grace, Monday-Friday, assigned to the default employee"""
    shift = create_shift(db, COMPANY_ID, "General", time(9, 0), time(18, 0), 10)
    assign_shift(db, employee.id, shift.id, ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"], date(2026, 1, 1))
    return shift


@pytest.fixture
def at():
    """at(9, 5) -> aware UTC instant for 09:05 ATTENDANCE_TZ on WORK_DAY"""
    def _at(hour: int, minute: int = 0, second: int = 0, day: date = WORK_DAY):
        return combine_local(day, time(hour, minute, second))
    return _at


@pytest.fixture
def north_of_site():
    """(lat, lng) that many meters due north of the site centre"""
    def _north(meters: float):
        return SITE_LAT + math.degrees(meters / EARTH_RADIUS_METERS), SITE_LNG
    return _north


def auth_headers(employee: Employee) -> dict:
    token = create_access_token({"sub": str(employee.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
