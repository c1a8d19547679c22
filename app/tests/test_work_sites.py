"""
Tests for work site geofences and shift assignments
"""
from datetime import date, time, timedelta

import pytest

from app.core.errors import NotFound, ValidationFailed
from app.models.work_site import EmployeeSite
from app.services.shift_service import (
    assign_shift,
    create_shift,
    current_assignments_for_day,
    is_work_day,
    normalize_work_days,
    resolve_current_shift,
)
from app.services.work_site_service import (
    assign_site,
    create_site,
    deactivate_site,
    list_employee_sites,
    unassign_site,
    update_site,
)
from app.tests.constants import COMPANY_ID, SITE_LAT, SITE_LNG, WORK_DAY


@pytest.mark.parametrize("radius", [49, 501, 0])
def test_radius_outside_bounds_rejected(db, radius):
    with pytest.raises(ValidationFailed):
        create_site(db, COMPANY_ID, "Depot", SITE_LAT, SITE_LNG, radius)


@pytest.mark.parametrize("radius", [50, 500])
def test_radius_bounds_inclusive(db, radius):
    site = create_site(db, COMPANY_ID, "Depot", SITE_LAT, SITE_LNG, radius)
    assert site.radius_meters == radius
    assert site.is_active is True


def test_invalid_coordinates_rejected(db):
    with pytest.raises(ValidationFailed):
        create_site(db, COMPANY_ID, "Nowhere", 91, SITE_LNG, 100)
    with pytest.raises(ValidationFailed):
        create_site(db, COMPANY_ID, "Nowhere", SITE_LAT, -181, 100)


def test_update_site_validates_radius(db, site):
    with pytest.raises(ValidationFailed):
        update_site(db, site.id, COMPANY_ID, {"radius_meters": 600})

    updated = update_site(db, site.id, COMPANY_ID, {"radius_meters": 250, "name": "HQ"})
    assert updated.radius_meters == 250
    assert updated.name == "HQ"


def test_site_of_other_company_not_found(db, site):
    with pytest.raises(NotFound):
        update_site(db, site.id, 2, {"name": "Stolen"})


def test_deactivated_site_no_longer_listed_for_employee(db, employee, site):
    assert [s.id for s in list_employee_sites(db, employee.id)] == [site.id]
    deactivate_site(db, site.id, COMPANY_ID)
    assert list_employee_sites(db, employee.id) == []


def test_primary_site_listed_first_and_unique(db, employee, site):
    annex = create_site(db, COMPANY_ID, "Annex", SITE_LAT + 0.01, SITE_LNG, 100)
    assign_site(db, employee.id, annex.id, is_primary=True)

    assert [s.id for s in list_employee_sites(db, employee.id)] == [annex.id, site.id]
    primaries = db.query(EmployeeSite).filter(
        EmployeeSite.employee_id == employee.id, EmployeeSite.is_primary.is_(True)
    ).all()
    assert [p.site_id for p in primaries] == [annex.id]

    unassign_site(db, employee.id, annex.id)
    assert [s.id for s in list_employee_sites(db, employee.id)] == [site.id]


def test_normalize_work_days():
    assert normalize_work_days(["friday", "Monday", "MONDAY"]) == ["Friday", "Monday"]
    with pytest.raises(ValidationFailed):
        normalize_work_days(["Funday"])


def test_latest_shift_assignment_wins(db, employee, general_shift):
    late_shift = create_shift(db, COMPANY_ID, "Late", time(12, 0), time(21, 0), 5)
    assign_shift(db, employee.id, late_shift.id, ["Monday"], WORK_DAY)

    assert resolve_current_shift(db, employee.id, WORK_DAY - timedelta(days=7)).id == general_shift.id
    assert resolve_current_shift(db, employee.id, WORK_DAY).id == late_shift.id

    [assignment] = current_assignments_for_day(db, WORK_DAY)
    assert assignment.shift_id == late_shift.id
    assert is_work_day(assignment, WORK_DAY) is True
    assert is_work_day(assignment, WORK_DAY + timedelta(days=1)) is False


def test_expired_assignment_ignored(db, employee):
    shift = create_shift(db, COMPANY_ID, "Project", time(8, 0), time(17, 0))
    assign_shift(db, employee.id, shift.id, ["Monday"], date(2026, 1, 1), effective_until=date(2026, 2, 28))
    assert resolve_current_shift(db, employee.id, WORK_DAY) is None

    with pytest.raises(ValidationFailed):
        assign_shift(db, employee.id, shift.id, ["Monday"], WORK_DAY, effective_until=WORK_DAY - timedelta(days=1))
