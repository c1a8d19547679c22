"""Geofenced attendance schema: sites, shifts, config, records, overtime, corrections, notifications

Revision ID: 001_geofenced_attendance
Revises:
Create Date: 2026-03-02

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001_geofenced_attendance"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == "sqlite"
    ts_default = sa.text("CURRENT_TIMESTAMP") if is_sqlite else sa.text("now()")
    false_default = sa.text("0") if is_sqlite else sa.text("false")
    true_default = sa.text("1") if is_sqlite else sa.text("true")

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("emp_code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="EMPLOYEE"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=true_default),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_employees_id"), "employees", ["id"], unique=False)
    op.create_index(op.f("ix_employees_emp_code"), "employees", ["emp_code"], unique=True)
    op.create_index(op.f("ix_employees_company_id"), "employees", ["company_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("meta_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_id"), "audit_logs", ["id"], unique=False)

    op.create_table(
        "holidays",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=true_default),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "date", name="uq_holiday_company_date"),
    )
    op.create_index(op.f("ix_holidays_id"), "holidays", ["id"], unique=False)
    op.create_index(op.f("ix_holidays_company_id"), "holidays", ["company_id"], unique=False)
    op.create_index(op.f("ix_holidays_date"), "holidays", ["date"], unique=False)

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("from_date", sa.Date(), nullable=False),
        sa.Column("to_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_leave_requests_id"), "leave_requests", ["id"], unique=False)
    op.create_index(op.f("ix_leave_requests_employee_id"), "leave_requests", ["employee_id"], unique=False)

    op.create_table(
        "work_sites",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=False),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=False),
        sa.Column("radius_meters", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=true_default),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["created_by"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("radius_meters BETWEEN 50 AND 500", name="ck_work_sites_radius"),
    )
    op.create_index(op.f("ix_work_sites_id"), "work_sites", ["id"], unique=False)
    op.create_index(op.f("ix_work_sites_company_id"), "work_sites", ["company_id"], unique=False)

    op.create_table(
        "employee_sites",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("site_id", sa.Integer(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=false_default),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["site_id"], ["work_sites.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "site_id", name="uq_employee_site"),
    )
    op.create_index(op.f("ix_employee_sites_id"), "employee_sites", ["id"], unique=False)
    op.create_index(op.f("ix_employee_sites_employee_id"), "employee_sites", ["employee_id"], unique=False)
    op.create_index(op.f("ix_employee_sites_site_id"), "employee_sites", ["site_id"], unique=False)

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("grace_period_minutes", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=true_default),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shifts_id"), "shifts", ["id"], unique=False)
    op.create_index(op.f("ix_shifts_company_id"), "shifts", ["company_id"], unique=False)

    op.create_table(
        "employee_shifts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("shift_id", sa.Integer(), nullable=False),
        sa.Column("work_days", sa.JSON(), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_until", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_employee_shifts_id"), "employee_shifts", ["id"], unique=False)
    op.create_index(op.f("ix_employee_shifts_employee_id"), "employee_shifts", ["employee_id"], unique=False)
    op.create_index(op.f("ix_employee_shifts_shift_id"), "employee_shifts", ["shift_id"], unique=False)

    op.create_table(
        "attendance_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("default_clock_in_time", sa.Time(), nullable=True),
        sa.Column("default_clock_out_time", sa.Time(), nullable=True),
        sa.Column("grace_period_minutes", sa.Integer(), nullable=True),
        sa.Column("minimum_working_hours", sa.Numeric(4, 2), nullable=True),
        sa.Column("half_day_threshold_hours", sa.Numeric(4, 2), nullable=True),
        sa.Column("geofence_radius_meters", sa.Integer(), nullable=True),
        sa.Column("correction_window_hours", sa.Integer(), nullable=True),
        sa.Column("auto_clockout_enabled", sa.Boolean(), nullable=True),
        sa.Column("notification_settings", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_attendance_config_id"), "attendance_config", ["id"], unique=False)
    op.create_index(op.f("ix_attendance_config_company_id"), "attendance_config", ["company_id"], unique=True)

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("attendance_date", sa.Date(), nullable=False),
        sa.Column("clock_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("clock_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("clock_in_latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("clock_in_longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("clock_out_latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("clock_out_longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("site_id", sa.Integer(), nullable=True),
        sa.Column("shift_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="absent"),
        sa.Column("hours_worked", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("overtime_hours", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("is_provisional", sa.Boolean(), nullable=False, server_default=false_default),
        sa.Column("locked_for_payroll", sa.Boolean(), nullable=False, server_default=false_default),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("correction_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["site_id"], ["work_sites.id"]),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_employee_date"),
    )
    op.create_index(op.f("ix_attendance_records_id"), "attendance_records", ["id"], unique=False)
    op.create_index(op.f("ix_attendance_records_employee_id"), "attendance_records", ["employee_id"], unique=False)
    op.create_index(op.f("ix_attendance_records_attendance_date"), "attendance_records", ["attendance_date"], unique=False)
    op.create_index(op.f("ix_attendance_records_site_id"), "attendance_records", ["site_id"], unique=False)

    op.create_table(
        "overtime_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("attendance_record_id", sa.Integer(), nullable=False),
        sa.Column("site_id", sa.Integer(), nullable=False),
        sa.Column("ot_in_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ot_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ot_in_latitude", sa.Numeric(10, 8), nullable=False),
        sa.Column("ot_in_longitude", sa.Numeric(11, 8), nullable=False),
        sa.Column("ot_out_latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("ot_out_longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("total_ot_hours", sa.Numeric(5, 2), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("auto_closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=false_default),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["attendance_record_id"], ["attendance_records.id"]),
        sa.ForeignKeyConstraint(["site_id"], ["work_sites.id"]),
        sa.ForeignKeyConstraint(["approved_by"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_overtime_sessions_id"), "overtime_sessions", ["id"], unique=False)
    op.create_index(op.f("ix_overtime_sessions_employee_id"), "overtime_sessions", ["employee_id"], unique=False)
    op.create_index(
        op.f("ix_overtime_sessions_attendance_record_id"), "overtime_sessions", ["attendance_record_id"], unique=False
    )
    op.create_index(
        "uq_overtime_one_active_per_employee",
        "overtime_sessions",
        ["employee_id"],
        unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "attendance_corrections",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("attendance_record_id", sa.Integer(), nullable=False),
        sa.Column("correction_type", sa.String(), nullable=False),
        sa.Column("requested_clock_in", sa.DateTime(timezone=True), nullable=True),
        sa.Column("requested_clock_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("attachment_url", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("submission_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_within_deadline", sa.Boolean(), nullable=False, server_default=true_default),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("reviewer_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["attendance_record_id"], ["attendance_records.id"]),
        sa.ForeignKeyConstraint(["reviewed_by"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_attendance_corrections_id"), "attendance_corrections", ["id"], unique=False)
    op.create_index(
        op.f("ix_attendance_corrections_employee_id"), "attendance_corrections", ["employee_id"], unique=False
    )
    op.create_index(
        op.f("ix_attendance_corrections_attendance_record_id"),
        "attendance_corrections",
        ["attendance_record_id"],
        unique=False,
    )
    op.create_index(op.f("ix_attendance_corrections_status"), "attendance_corrections", ["status"], unique=False)
    op.create_index(
        "uq_correction_one_pending_per_record",
        "attendance_corrections",
        ["attendance_record_id"],
        unique=True,
        sqlite_where=sa.text("status = 'pending'"),
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "notification_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("notification_type", sa.String(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_notification_log_id"), "notification_log", ["id"], unique=False)
    op.create_index(op.f("ix_notification_log_employee_id"), "notification_log", ["employee_id"], unique=False)
    op.create_index(
        "ix_notification_employee_type_sent",
        "notification_log",
        ["employee_id", "notification_type", "sent_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("notification_log")
    op.drop_index("uq_correction_one_pending_per_record", table_name="attendance_corrections")
    op.drop_table("attendance_corrections")
    op.drop_index("uq_overtime_one_active_per_employee", table_name="overtime_sessions")
    op.drop_table("overtime_sessions")
    op.drop_table("attendance_records")
    op.drop_table("attendance_config")
    op.drop_table("employee_shifts")
    op.drop_table("shifts")
    op.drop_table("employee_sites")
    op.drop_table("work_sites")
    op.drop_table("leave_requests")
    op.drop_table("holidays")
    op.drop_table("audit_logs")
    op.drop_table("employees")
