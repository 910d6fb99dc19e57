"""Report source tables

Revision ID: 0001_report_sources
Revises:
Create Date: 2026-10-16 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_report_sources"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

leave_request_status = postgresql.ENUM(
    "scheduled",
    "approved",
    "rejected",
    "cancelled",
    name="leave_request_status",
    create_type=False,
)


def upgrade() -> None:
    bind = op.get_bind()
    leave_request_status.create(bind, checkfirst=True)

    op.create_table(
        "stores",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("province", sa.String(length=255), nullable=True),
        sa.Column("region", sa.String(length=255), nullable=True),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("province", sa.String(length=255), nullable=True),
        sa.Column("region", sa.String(length=255), nullable=True),
        sa.Column("default_store_id", sa.String(length=64), nullable=True),
        sa.Column("regular_day_off", sa.String(length=32), nullable=True),
    )

    op.create_table(
        "attendance_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("recorded_date", sa.Date(), nullable=False),
        sa.Column("recorded_time", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("employee_name", sa.String(length=255), nullable=False),
        sa.Column("store_name", sa.String(length=255), nullable=True),
        sa.Column("note", sa.String(length=1000), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index(
        "ix_attendance_logs_employee_date",
        "attendance_logs",
        ["employee_name", "recorded_date"],
        unique=False,
    )

    op.create_table(
        "sales_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("recorded_date", sa.Date(), nullable=False),
        sa.Column("recorded_time", sa.String(length=16), nullable=True),
        sa.Column("employee_name", sa.String(length=255), nullable=False),
        sa.Column("store_name", sa.String(length=255), nullable=True),
        sa.Column("product_code", sa.String(length=64), nullable=True),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("unit_name", sa.String(length=64), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("unit_price", sa.Float(), nullable=True),
        sa.Column("total", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index(
        "ix_sales_records_employee_date",
        "sales_records",
        ["employee_name", "recorded_date"],
        unique=False,
    )

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("employee_name", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", leave_request_status, nullable=False, server_default=sa.text("'scheduled'")),
        sa.Column("reason", sa.String(length=1000), nullable=True),
    )
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"], unique=False)

    op.create_table(
        "employee_expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("effective_month", sa.String(length=7), nullable=False),
        sa.Column("baseline", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("items", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.UniqueConstraint("employee_id", "effective_month", name="uq_employee_expenses_employee_month"),
    )

    op.create_table(
        "monthly_targets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("target_revenue_pc", sa.Float(), nullable=True),
        sa.UniqueConstraint("employee_id", "month", name="uq_monthly_targets_employee_month"),
    )


def downgrade() -> None:
    op.drop_table("monthly_targets")
    op.drop_table("employee_expenses")
    op.drop_index("ix_leave_requests_employee_id", table_name="leave_requests")
    op.drop_table("leave_requests")
    op.drop_index("ix_sales_records_employee_date", table_name="sales_records")
    op.drop_table("sales_records")
    op.drop_index("ix_attendance_logs_employee_date", table_name="attendance_logs")
    op.drop_table("attendance_logs")
    op.drop_table("employees")
    op.drop_table("stores")

    bind = op.get_bind()
    leave_request_status.drop(bind, checkfirst=True)
