from __future__ import annotations

from collections.abc import Collection
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import (
    AttendanceLog,
    Employee,
    EmployeeExpense,
    LeaveRequest,
    MonthlyTarget,
    SalesRecord,
    Store,
)
from app.services.ingestion import EmployeeProfile, StoreProfile, parse_employee, parse_store


def get_employee(db: Session, employee_id: str) -> EmployeeProfile | None:
    return parse_employee(db.get(Employee, employee_id))


def list_employees(db: Session) -> list[EmployeeProfile]:
    rows = db.scalars(select(Employee).order_by(Employee.name.asc(), Employee.id.asc())).all()
    return [profile for profile in (parse_employee(row) for row in rows) if profile is not None]


def list_stores(db: Session) -> list[StoreProfile]:
    rows = db.scalars(select(Store).order_by(Store.name.asc(), Store.id.asc())).all()
    return [profile for profile in (parse_store(row) for row in rows) if profile is not None]


def fetch_attendance_rows(
    db: Session,
    *,
    start_date: date,
    end_date: date,
    employee_name: str | None = None,
    store_name: str | None = None,
) -> list[tuple]:
    stmt = (
        select(
            AttendanceLog.recorded_date,
            AttendanceLog.recorded_time,
            AttendanceLog.status,
            AttendanceLog.employee_name,
            AttendanceLog.store_name,
        )
        .where(
            AttendanceLog.recorded_date >= start_date,
            AttendanceLog.recorded_date <= end_date,
        )
        .order_by(AttendanceLog.recorded_date.asc(), AttendanceLog.recorded_time.asc(), AttendanceLog.id.asc())
    )
    if employee_name:
        stmt = stmt.where(AttendanceLog.employee_name == employee_name)
    if store_name:
        stmt = stmt.where(AttendanceLog.store_name == store_name)
    return [tuple(row) for row in db.execute(stmt).all()]


def fetch_sales_rows(
    db: Session,
    *,
    start_date: date,
    end_date: date,
    employee_names: Collection[str] | None = None,
    store_names: Collection[str] | None = None,
) -> list[tuple]:
    stmt = (
        select(
            SalesRecord.recorded_date,
            SalesRecord.recorded_time,
            SalesRecord.employee_name,
            SalesRecord.store_name,
            SalesRecord.product_code,
            SalesRecord.product_name,
            SalesRecord.unit_name,
            SalesRecord.quantity,
            SalesRecord.unit_price,
            SalesRecord.total,
        )
        .where(
            SalesRecord.recorded_date >= start_date,
            SalesRecord.recorded_date <= end_date,
        )
        .order_by(SalesRecord.recorded_date.asc(), SalesRecord.id.asc())
    )
    if employee_names:
        stmt = stmt.where(SalesRecord.employee_name.in_(sorted(employee_names)))
    if store_names:
        stmt = stmt.where(SalesRecord.store_name.in_(sorted(store_names)))
    return [tuple(row) for row in db.execute(stmt).all()]


def fetch_leaves(
    db: Session,
    *,
    employee_id: str,
    start_date: date,
    end_date: date,
) -> list[LeaveRequest]:
    return list(
        db.scalars(
            select(LeaveRequest)
            .where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.start_date <= end_date,
                LeaveRequest.end_date >= start_date,
            )
            .order_by(LeaveRequest.start_date.asc(), LeaveRequest.id.asc())
        ).all()
    )


def fetch_expense_baseline(db: Session, *, employee_id: str, month: str) -> EmployeeExpense | None:
    return db.scalar(
        select(EmployeeExpense).where(
            EmployeeExpense.employee_id == employee_id,
            EmployeeExpense.effective_month == month,
        )
    )


def fetch_expenses_for_month(db: Session, *, month: str) -> list[EmployeeExpense]:
    return list(
        db.scalars(
            select(EmployeeExpense)
            .where(EmployeeExpense.effective_month == month)
            .order_by(EmployeeExpense.employee_id.asc())
        ).all()
    )


def fetch_monthly_targets(
    db: Session,
    *,
    month: str,
    employee_ids: Collection[str] | None = None,
) -> list[MonthlyTarget]:
    stmt = (
        select(MonthlyTarget)
        .where(MonthlyTarget.month == month)
        .order_by(MonthlyTarget.employee_id.asc())
    )
    if employee_ids:
        stmt = stmt.where(MonthlyTarget.employee_id.in_(sorted(employee_ids)))
    return list(db.scalars(stmt).all())
