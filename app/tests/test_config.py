"""
Tests for settings validation and per-company attendance configuration
"""
from datetime import time

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.models.audit_log import AuditLog
from app.schemas.config import AttendanceConfigSnapshot, AttendanceConfigUpdate
from app.services.attendance_config_service import load_config_snapshot, upsert_attendance_config
from app.tests.constants import COMPANY_ID


def _settings(**overrides):
    values = {"DATABASE_URL": "postgresql://test", "JWT_SECRET_KEY": "test-key"}
    values.update(overrides)
    return Settings(**values)


def test_prod_settings_rejects_wildcard_origins():
    settings = _settings(JWT_SECRET_KEY="a" * 32, APP_ENV="prod", ALLOWED_ORIGINS="*")
    with pytest.raises(ValueError, match="ALLOWED_ORIGINS"):
        settings.validate_production()


def test_prod_settings_rejects_short_jwt_secret():
    settings = _settings(JWT_SECRET_KEY="short", APP_ENV="prod", ALLOWED_ORIGINS="https://example.com")
    with pytest.raises(ValueError, match="JWT_SECRET_KEY"):
        settings.validate_production()


def test_local_settings_allows_wildcard_origins():
    settings = _settings(APP_ENV="local", ALLOWED_ORIGINS="*")
    settings.validate_production()
    assert settings.get_allowed_origins_list() == ["*"]


def test_get_allowed_origins_list():
    settings = _settings(ALLOWED_ORIGINS="https://example.com, https://app.example.com,")
    assert settings.get_allowed_origins_list() == ["https://example.com", "https://app.example.com"]


def test_invalid_app_env_and_timezone_rejected():
    with pytest.raises(ValidationError):
        _settings(APP_ENV="production")
    with pytest.raises(ValidationError):
        _settings(ATTENDANCE_TZ="Mars/Olympus_Mons")


def test_job_settings_defaults():
    settings = _settings()
    assert settings.MAX_CLIENT_CLOCK_SKEW_SECONDS == 300
    assert settings.AUTO_CLOCKOUT_GRACE_MINUTES == 30
    assert settings.OT_AUTO_CLOSE_HOURS == 4.0


def test_missing_config_row_uses_defaults(db):
    snapshot = load_config_snapshot(db, COMPANY_ID)
    assert snapshot == AttendanceConfigSnapshot(company_id=COMPANY_ID)
    assert snapshot.default_clock_in_time == time(9, 0)
    assert snapshot.grace_period_minutes == 10
    assert snapshot.minimum_working_hours == 8.0
    assert snapshot.half_day_threshold_hours == 4.0
    assert snapshot.correction_window_hours == 24
    assert snapshot.auto_clockout_enabled is True
    assert snapshot.notification_enabled("late_arrival") is True


def test_upsert_keeps_omitted_fields(db, admin_user):
    upsert_attendance_config(db, COMPANY_ID, AttendanceConfigUpdate(grace_period_minutes=15), actor_id=admin_user.id)
    snapshot = upsert_attendance_config(
        db, COMPANY_ID,
        AttendanceConfigUpdate(minimum_working_hours=7.5, notification_settings={"late_arrival": False}),
        actor_id=admin_user.id,
    )

    assert snapshot.grace_period_minutes == 15
    assert snapshot.minimum_working_hours == 7.5
    assert snapshot.half_day_threshold_hours == 4.0
    assert snapshot.notification_enabled("late_arrival") is False
    assert snapshot.notification_enabled("missed_clockout") is True
    assert load_config_snapshot(db, COMPANY_ID) == snapshot
    assert db.query(AuditLog).filter(AuditLog.action == "ATTENDANCE_CONFIG_UPDATED").count() == 2


def test_snapshot_is_immutable():
    snapshot = AttendanceConfigSnapshot(company_id=COMPANY_ID)
    with pytest.raises(ValidationError):
        snapshot.grace_period_minutes = 30


def test_config_update_bounds():
    with pytest.raises(ValidationError):
        AttendanceConfigUpdate(geofence_radius_meters=20)
    with pytest.raises(ValidationError):
        AttendanceConfigUpdate(grace_period_minutes=-1)
