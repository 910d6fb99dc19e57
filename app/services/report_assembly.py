"""Pure report builders.

Every builder takes already-fetched raw rows plus an explicit ``ReportConfig``
and returns immutable view-models; nothing here touches the database.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from app.services.day_status import DayReport, classify_days
from app.services.ingestion import (
    AttendanceRow,
    EmployeeProfile,
    ExpenseBaseline,
    LeaveRecord,
    SaleRow,
    StoreProfile,
    TargetRecord,
    parse_attendance_row,
    parse_expense_baseline,
    parse_leave_record,
    parse_rows,
    parse_sale_row,
    parse_target_record,
)
from app.services.product_sales import ProductSalesReport, build_product_sales_report
from app.services.report_metrics import (
    EmployeePerformance,
    RoiMetrics,
    StatusRollup,
    build_period_rollup,
    build_weekly_rollups,
    calculate_achievement,
    calculate_employee_performance,
    calculate_roi_metrics,
    filter_sales,
    rollup_days,
    round_tenths,
)
from app.services.report_ranges import DateSelection, format_month_label
from app.services.sessions import WorkSession, group_day_events, reconstruct_day_sessions
from app.settings import ReportConfig

MONTH_PAGE_SIZE = 1


@dataclass(frozen=True, slots=True)
class MonthGroup:
    month_key: str
    year: int
    month: int
    month_label: str
    rows: tuple[DayReport, ...]
    rollup: StatusRollup

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int
    page_size: int
    total_rows: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


@dataclass(frozen=True, slots=True)
class AttendanceReport:
    employee: EmployeeProfile
    store: StoreProfile | None
    selection: DateSelection
    rows: tuple[DayReport, ...]
    current_month: MonthGroup | None
    months: tuple[MonthGroup, ...]
    pagination: Pagination | None
    weekly: tuple[StatusRollup, ...]
    totals: StatusRollup | None
    discarded_rows: int
    export: bool


@dataclass(frozen=True, slots=True)
class RoiReport:
    employee: EmployeeProfile
    selection: DateSelection
    metrics: RoiMetrics
    discarded_rows: int


@dataclass(frozen=True, slots=True)
class IndividualRow:
    employee_id: str
    employee_name: str
    store_name: str | None
    performance: EmployeePerformance


@dataclass(frozen=True, slots=True)
class IndividualTotals:
    working_days: int
    working_hours: float
    total_sales: float
    monthly_expenses: float
    net_income: float


@dataclass(frozen=True, slots=True)
class IndividualReport:
    selection: DateSelection
    rows: tuple[IndividualRow, ...]
    totals: IndividualTotals
    discarded_rows: int


@dataclass(frozen=True, slots=True)
class ProductReport:
    selection: DateSelection
    employees: tuple[EmployeeProfile, ...]
    stores: tuple[StoreProfile, ...]
    report: ProductSalesReport
    aggregated_target: float | None
    achievement_percent: float | None
    discarded_rows: int


def resolve_store_filter(
    stores: Sequence[StoreProfile],
    employee: EmployeeProfile,
    store_id: str | None,
) -> StoreProfile | None:
    """``None`` means the parameter was absent and falls back to the default store.

    An empty value disables the filter; unknown ids also disable it.
    """
    if store_id is None:
        resolved = employee.default_store_id
    else:
        resolved = store_id.strip() or None
    if not resolved:
        return None
    return next((store for store in stores if store.id == resolved), None)


def group_days_by_month(days: Iterable[DayReport]) -> list[MonthGroup]:
    buckets: dict[str, list[DayReport]] = {}
    for day in days:
        buckets.setdefault(day.month_key, []).append(day)

    groups: list[MonthGroup] = []
    for key in sorted(buckets):
        rows = buckets[key]
        first = rows[0].date
        rollup = rollup_days(rows[0].date, rows[-1].date, rows)
        groups.append(
            MonthGroup(
                month_key=key,
                year=first.year,
                month=first.month,
                month_label=format_month_label(first.year, first.month),
                rows=tuple(rows),
                rollup=rollup,
            )
        )
    return groups


def paginate_months(months: Sequence[MonthGroup], page: int) -> tuple[MonthGroup | None, Pagination]:
    total_months = len(months)
    total_pages = total_months if total_months > 0 else 1
    index = page - 1
    current = months[index] if 0 <= index < total_months else None
    return current, Pagination(
        page=page,
        page_size=MONTH_PAGE_SIZE,
        total_rows=total_months,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def _store_provinces(stores: Iterable[StoreProfile]) -> dict[str, str | None]:
    return {store.name: store.province for store in stores}


def _sessions_for_employee(
    rows: Iterable[AttendanceRow],
    employee: EmployeeProfile,
    selection: DateSelection,
    *,
    config: ReportConfig,
    stores: Iterable[StoreProfile] = (),
    store_name: str | None = None,
) -> tuple[dict[date, list[WorkSession]], int]:
    grouped = group_day_events(
        rows,
        employee_name=employee.name,
        tz=config.timezone,
        store_name=store_name,
        dates=frozenset(selection.dates),
    )
    return reconstruct_day_sessions(grouped, _store_provinces(stores)), grouped.discarded


def _as_baseline(value: Any) -> ExpenseBaseline | None:
    if value is None or isinstance(value, ExpenseBaseline):
        return value
    return parse_expense_baseline(value)


def build_attendance_report(
    selection: DateSelection,
    raw_rows: Iterable[Any],
    leaves: Iterable[Any],
    employee: EmployeeProfile,
    *,
    config: ReportConfig,
    stores: Sequence[StoreProfile] = (),
    store: StoreProfile | None = None,
    page: int = 1,
    export: bool = False,
) -> AttendanceReport:
    attendance = parse_rows(raw_rows, parse_attendance_row)
    parsed_leaves = parse_rows(leaves, parse_leave_record)
    employee_leaves: list[LeaveRecord] = [
        leave
        for leave in parsed_leaves.rows
        if not leave.employee_id or leave.employee_id == employee.id
    ]

    sessions_by_day, discarded_events = _sessions_for_employee(
        attendance.rows,
        employee,
        selection,
        config=config,
        stores=stores,
        store_name=store.name if store else None,
    )
    days = classify_days(
        selection.dates,
        sessions_by_day,
        leaves=employee_leaves,
        regular_day_off=employee.regular_day_off,
    )
    months = tuple(group_days_by_month(days))

    if export:
        rows: tuple[DayReport, ...] = tuple(days)
        current_month = None
        pagination = None
    else:
        current_month, pagination = paginate_months(months, page)
        rows = current_month.rows if current_month else ()

    return AttendanceReport(
        employee=employee,
        store=store,
        selection=selection,
        rows=rows,
        current_month=current_month,
        months=months,
        pagination=pagination,
        weekly=tuple(build_weekly_rollups(rows)),
        totals=build_period_rollup(days),
        discarded_rows=attendance.discarded + parsed_leaves.discarded + discarded_events,
        export=export,
    )


def build_roi_report(
    selection: DateSelection,
    sales_rows: Iterable[Any],
    attendance_rows: Iterable[Any],
    expense_baseline: Any,
    employee: EmployeeProfile,
    *,
    config: ReportConfig,
    stores: Sequence[StoreProfile] = (),
) -> RoiReport:
    sales = parse_rows(sales_rows, parse_sale_row)
    attendance = parse_rows(attendance_rows, parse_attendance_row)

    sessions_by_day, discarded_events = _sessions_for_employee(
        attendance.rows,
        employee,
        selection,
        config=config,
        stores=stores,
    )
    employee_sales = filter_sales(
        sales.rows,
        employee_name=employee.name,
        dates=frozenset(selection.dates),
    )
    metrics = calculate_roi_metrics(
        sales=employee_sales,
        sessions_by_day=sessions_by_day,
        expense_baseline=_as_baseline(expense_baseline),
        config=config,
    )
    return RoiReport(
        employee=employee,
        selection=selection,
        metrics=metrics,
        discarded_rows=sales.discarded + attendance.discarded + discarded_events,
    )


def build_individual_report(
    selection: DateSelection,
    employees: Sequence[EmployeeProfile],
    attendance_rows: Iterable[Any],
    sales_rows: Iterable[Any],
    expenses: Iterable[Any],
    targets: Iterable[Any],
    *,
    config: ReportConfig,
    stores: Sequence[StoreProfile] = (),
    search: str | None = None,
) -> IndividualReport:
    attendance = parse_rows(attendance_rows, parse_attendance_row)
    sales = parse_rows(sales_rows, parse_sale_row)
    parsed_expenses = parse_rows(expenses, parse_expense_baseline)
    parsed_targets = parse_rows(targets, parse_target_record)

    effective_month = selection.effective_month
    expense_by_employee: dict[str, ExpenseBaseline] = {
        item.employee_id: item
        for item in parsed_expenses.rows
        if item.effective_month == effective_month
    }
    month_targets: list[TargetRecord] = [
        item for item in parsed_targets.rows if not item.month or item.month == effective_month
    ]
    store_names: Mapping[str, str] = {store.id: store.name for store in stores}
    dates = frozenset(selection.dates)

    query = (search or "").strip().lower()
    selected = [employee for employee in employees if not query or query in employee.name.lower()]

    rows: list[IndividualRow] = []
    discarded_events = 0
    for employee in selected:
        sessions_by_day, discarded = _sessions_for_employee(
            attendance.rows,
            employee,
            selection,
            config=config,
            stores=stores,
        )
        discarded_events += discarded
        performance = calculate_employee_performance(
            employee_id=employee.id,
            sales=filter_sales(sales.rows, employee_name=employee.name, dates=dates),
            sessions_by_day=sessions_by_day,
            expense_baseline=expense_by_employee.get(employee.id),
            targets=month_targets,
            config=config,
        )
        rows.append(
            IndividualRow(
                employee_id=employee.id,
                employee_name=employee.name,
                store_name=store_names.get(employee.default_store_id or ""),
                performance=performance,
            )
        )

    rows.sort(key=lambda item: item.employee_name)
    totals = IndividualTotals(
        working_days=sum(item.performance.working_days for item in rows),
        working_hours=round_tenths(sum(item.performance.working_hours for item in rows)),
        total_sales=sum(item.performance.total_sales for item in rows),
        monthly_expenses=sum(item.performance.expense_detail.total for item in rows),
        net_income=sum(item.performance.net_income for item in rows),
    )
    return IndividualReport(
        selection=selection,
        rows=tuple(rows),
        totals=totals,
        discarded_rows=(
            attendance.discarded
            + sales.discarded
            + parsed_expenses.discarded
            + parsed_targets.discarded
            + discarded_events
        ),
    )


def build_product_report(
    selection: DateSelection,
    sales_rows: Iterable[Any],
    targets: Iterable[Any],
    *,
    employees: Sequence[EmployeeProfile] = (),
    stores: Sequence[StoreProfile] = (),
    selected_employees: Sequence[EmployeeProfile] = (),
    selected_stores: Sequence[StoreProfile] = (),
) -> ProductReport:
    sales = parse_rows(sales_rows, parse_sale_row)
    parsed_targets = parse_rows(targets, parse_target_record)

    report = build_product_sales_report(
        sales.rows,
        dates=selection.dates,
        employee_names={employee.name for employee in selected_employees},
        store_names={store.name for store in selected_stores},
        employee_regions={employee.name: employee.region for employee in employees},
    )

    effective_month = selection.effective_month
    month_targets = [item for item in parsed_targets.rows if item.month == effective_month]
    employee_ids = {employee.id for employee in selected_employees} or None
    aggregated_target, achievement = calculate_achievement(
        report.summary.total_revenue,
        month_targets,
        employee_ids=employee_ids,
    )
    return ProductReport(
        selection=selection,
        employees=tuple(selected_employees),
        stores=tuple(selected_stores),
        report=report,
        aggregated_target=aggregated_target,
        achievement_percent=achievement,
        discarded_rows=sales.discarded + parsed_targets.discarded,
    )
