from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from app.errors import EmployeeNotFoundError
from app.services.ingestion import EmployeeProfile
from app.services.report_assembly import (
    AttendanceReport,
    IndividualReport,
    ProductReport,
    RoiReport,
    build_attendance_report,
    build_individual_report,
    build_product_report,
    build_roi_report,
    resolve_store_filter,
)
from app.services.report_ranges import (
    build_selection,
    normalize_ranges,
    resolve_date_selection,
    today_in_timezone,
    trailing_days_range,
)
from app.services.report_sources import (
    fetch_attendance_rows,
    fetch_expense_baseline,
    fetch_expenses_for_month,
    fetch_leaves,
    fetch_monthly_targets,
    fetch_sales_rows,
    get_employee,
    list_employees,
    list_stores,
)
from app.settings import ReportConfig, get_report_config

logger = logging.getLogger("app.reports")

PRODUCT_REPORT_DEFAULT_DAYS = 30


def _require_employee(db: Session, employee_id: str) -> EmployeeProfile:
    employee = get_employee(db, employee_id)
    if employee is None:
        raise EmployeeNotFoundError(employee_id)
    return employee


def _log_report(kind: str, *, employee_id: str | None, dates: int, rows: int, discarded: int) -> None:
    logger.info(
        "report_built",
        extra={
            "report": kind,
            "employee_id": employee_id,
            "date_count": dates,
            "row_count": rows,
            "discarded_rows": discarded,
        },
    )


def generate_attendance_report(
    db: Session,
    *,
    employee_id: str,
    range_values: Sequence[str] = (),
    year: int | None = None,
    month: int | None = None,
    day: int | None = None,
    page: int = 1,
    store_id: str | None = None,
    export: bool = False,
    config: ReportConfig | None = None,
    now: datetime | None = None,
) -> AttendanceReport:
    config = config or get_report_config()
    selection = resolve_date_selection(
        range_values,
        tz=config.timezone,
        year=year,
        month=month,
        day=day,
        now=now,
    )
    employee = _require_employee(db, employee_id)
    stores = list_stores(db)
    store = resolve_store_filter(stores, employee, store_id)

    raw_rows = fetch_attendance_rows(
        db,
        start_date=selection.start,
        end_date=selection.end,
        employee_name=employee.name,
        store_name=store.name if store else None,
    )
    leaves = fetch_leaves(
        db,
        employee_id=employee.id,
        start_date=selection.start,
        end_date=selection.end,
    )
    report = build_attendance_report(
        selection,
        raw_rows,
        leaves,
        employee,
        config=config,
        stores=stores,
        store=store,
        page=page,
        export=export,
    )
    _log_report(
        "attendance",
        employee_id=employee.id,
        dates=len(selection.dates),
        rows=len(raw_rows),
        discarded=report.discarded_rows,
    )
    return report


def generate_roi_report(
    db: Session,
    *,
    employee_id: str,
    range_values: Sequence[str] = (),
    config: ReportConfig | None = None,
    now: datetime | None = None,
) -> RoiReport:
    config = config or get_report_config()
    selection = resolve_date_selection(range_values, tz=config.timezone, now=now)
    employee = _require_employee(db, employee_id)
    stores = list_stores(db)

    sales_rows = fetch_sales_rows(
        db,
        start_date=selection.start,
        end_date=selection.end,
        employee_names=[employee.name],
    )
    attendance_rows = fetch_attendance_rows(
        db,
        start_date=selection.start,
        end_date=selection.end,
        employee_name=employee.name,
    )
    baseline = fetch_expense_baseline(db, employee_id=employee.id, month=selection.effective_month)
    report = build_roi_report(
        selection,
        sales_rows,
        attendance_rows,
        baseline,
        employee,
        config=config,
        stores=stores,
    )
    _log_report(
        "roi",
        employee_id=employee.id,
        dates=len(selection.dates),
        rows=len(sales_rows) + len(attendance_rows),
        discarded=report.discarded_rows,
    )
    return report


def generate_individual_report(
    db: Session,
    *,
    range_values: Sequence[str] = (),
    search: str | None = None,
    config: ReportConfig | None = None,
    now: datetime | None = None,
) -> IndividualReport:
    config = config or get_report_config()
    selection = resolve_date_selection(range_values, tz=config.timezone, now=now)
    employees = list_employees(db)
    stores = list_stores(db)

    attendance_rows = fetch_attendance_rows(db, start_date=selection.start, end_date=selection.end)
    sales_rows = fetch_sales_rows(db, start_date=selection.start, end_date=selection.end)
    expenses = fetch_expenses_for_month(db, month=selection.effective_month)
    targets = fetch_monthly_targets(db, month=selection.effective_month)

    report = build_individual_report(
        selection,
        employees,
        attendance_rows,
        sales_rows,
        expenses,
        targets,
        config=config,
        stores=stores,
        search=search,
    )
    _log_report(
        "individual",
        employee_id=None,
        dates=len(selection.dates),
        rows=len(attendance_rows) + len(sales_rows),
        discarded=report.discarded_rows,
    )
    return report


def generate_product_report(
    db: Session,
    *,
    range_values: Sequence[str] = (),
    employee_ids: Sequence[str] = (),
    store_ids: Sequence[str] = (),
    config: ReportConfig | None = None,
    now: datetime | None = None,
) -> ProductReport:
    config = config or get_report_config()
    ranges = normalize_ranges(range_values)
    explicit_range = bool(ranges)
    if not explicit_range:
        ranges = [
            trailing_days_range(
                today=today_in_timezone(config.timezone, now),
                days=PRODUCT_REPORT_DEFAULT_DAYS,
            )
        ]
    selection = build_selection(ranges)

    employees = list_employees(db)
    stores = list_stores(db)
    employee_by_id = {employee.id: employee for employee in employees}
    store_by_id = {store.id: store for store in stores}
    selected_employees = [employee_by_id[item] for item in employee_ids if item in employee_by_id]
    selected_stores = [store_by_id[item] for item in store_ids if item in store_by_id]

    sales_rows = fetch_sales_rows(
        db,
        start_date=selection.start,
        end_date=selection.end,
        employee_names={employee.name for employee in selected_employees},
        store_names={store.name for store in selected_stores},
    )
    # Targets only apply to an explicitly requested period.
    targets = fetch_monthly_targets(db, month=selection.effective_month) if explicit_range else []

    report = build_product_report(
        selection,
        sales_rows,
        targets,
        employees=employees,
        stores=stores,
        selected_employees=selected_employees,
        selected_stores=selected_stores,
    )
    _log_report(
        "products",
        employee_id=None,
        dates=len(selection.dates),
        rows=len(sales_rows),
        discarded=report.discarded_rows,
    )
    return report
