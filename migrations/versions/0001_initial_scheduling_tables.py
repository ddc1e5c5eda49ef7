"""initial scheduling tables

Revision ID: 0001
Revises:
Create Date: 2025-01-06 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("ADMIN", "STAFF", "TECHNICIAN", "CUSTOMER", name="userrole")
center_status = sa.Enum("OPEN", "CLOSED", name="centerstatus")
shift_status = sa.Enum("ACTIVE", "INACTIVE", name="shiftstatus")


def _timestamps():
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=100), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "employees",
        sa.Column(
            "account_id", sa.Uuid(),
            sa.ForeignKey("accounts.id", onupdate="CASCADE", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "service_centers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("status", center_status, nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "work_centers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "employee_id", sa.Uuid(),
            sa.ForeignKey("employees.account_id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "center_id", sa.Uuid(),
            sa.ForeignKey("service_centers.id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("start_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_date", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_work_centers_employee_center", "work_centers", ["employee_id", "center_id"])

    op.create_table(
        "shifts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("repeat_days", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True),
        sa.Column("maximum_slot", sa.Integer(), nullable=False),
        sa.Column("status", shift_status, nullable=False),
        sa.Column(
            "center_id", sa.Uuid(),
            sa.ForeignKey("service_centers.id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_shifts_center_id", "shifts", ["center_id"])

    op.create_table(
        "work_schedules",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "employee_id", sa.Uuid(),
            sa.ForeignKey("employees.account_id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "shift_id", sa.Uuid(),
            sa.ForeignKey("shifts.id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("employee_id", "shift_id", "date", name="uq_work_schedules_employee_shift_date"),
    )
    op.create_index("ix_work_schedules_shift_date", "work_schedules", ["shift_id", "date"])


def downgrade() -> None:
    op.drop_index("ix_work_schedules_shift_date", table_name="work_schedules")
    op.drop_table("work_schedules")
    op.drop_index("ix_shifts_center_id", table_name="shifts")
    op.drop_table("shifts")
    op.drop_index("ix_work_centers_employee_center", table_name="work_centers")
    op.drop_table("work_centers")
    op.drop_table("service_centers")
    op.drop_table("employees")
    op.drop_table("accounts")
    shift_status.drop(op.get_bind(), checkfirst=True)
    center_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
