from __future__ import annotations

import enum
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class AttendanceStatus(str, enum.Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class LeaveStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


COUNTED_LEAVE_STATUSES = frozenset({LeaveStatus.SCHEDULED.value, LeaveStatus.APPROVED.value})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    province: Mapped[str | None] = mapped_column(String(255), nullable=True)
    region: Mapped[str | None] = mapped_column(String(255), nullable=True)
    default_store_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    regular_day_off: Mapped[str | None] = mapped_column(String(32), nullable=True)


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    province: Mapped[str | None] = mapped_column(String(255), nullable=True)
    region: Mapped[str | None] = mapped_column(String(255), nullable=True)


class AttendanceLog(Base):
    __tablename__ = "attendance_logs"
    __table_args__ = (
        Index("ix_attendance_logs_employee_date", "employee_name", "recorded_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recorded_date: Mapped[date] = mapped_column(Date, nullable=False)
    recorded_time: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    store_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class SalesRecord(Base):
    __tablename__ = "sales_records"
    __table_args__ = (
        Index("ix_sales_records_employee_date", "employee_name", "recorded_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recorded_date: Mapped[date] = mapped_column(Date, nullable=False)
    recorded_time: Mapped[str | None] = mapped_column(String(16), nullable=True)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    store_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    product_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    unit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    total: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    employee_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        Enum(LeaveStatus, name="leave_request_status", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
        default=LeaveStatus.SCHEDULED,
    )
    reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)


class EmployeeExpense(Base):
    __tablename__ = "employee_expenses"
    __table_args__ = (
        UniqueConstraint("employee_id", "effective_month", name="uq_employee_expenses_employee_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    effective_month: Mapped[str] = mapped_column(String(7), nullable=False)
    baseline: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    items: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)


class MonthlyTarget(Base):
    __tablename__ = "monthly_targets"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="uq_monthly_targets_employee_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    target_revenue_pc: Mapped[float | None] = mapped_column(Float, nullable=True)
