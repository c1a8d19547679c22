"""Add dedupe_key to notification_log

Revision ID: 002_notification_dedupe_key
Revises: 001_geofenced_attendance
Create Date: 2026-10-19

Unique key for notifications that must be sent at most once (late-arrival alerts
are keyed per employee per day). NULL for everything else.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_notification_dedupe_key"
down_revision: Union[str, None] = "001_geofenced_attendance"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()

    inspector = sa.inspect(conn)
    existing_cols = {col["name"] for col in inspector.get_columns("notification_log")}

    if "dedupe_key" not in existing_cols:
        with op.batch_alter_table("notification_log") as batch_op:
            batch_op.add_column(sa.Column("dedupe_key", sa.String(length=100), nullable=True))
            batch_op.create_unique_constraint("uq_notification_log_dedupe_key", ["dedupe_key"])


def downgrade() -> None:
    with op.batch_alter_table("notification_log") as batch_op:
        batch_op.drop_constraint("uq_notification_log_dedupe_key", type_="unique")
        batch_op.drop_column("dedupe_key")
