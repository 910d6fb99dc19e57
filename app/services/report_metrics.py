from __future__ import annotations

import math
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from app.services.day_status import (
    STATUS_ABSENT,
    STATUS_DAY_OFF,
    STATUS_LEAVE,
    STATUS_PRESENT,
    DayReport,
)
from app.services.ingestion import ExpenseBaseline, ExpenseItem, SaleRow, TargetRecord
from app.services.sessions import MAX_SESSION_MILLIS, WorkSession
from app.settings import ReportConfig

MILLIS_PER_HOUR = 60 * 60 * 1000


def round_tenths(value: float) -> float:
    """Round half up to one decimal; ties like 7.25 become 7.3."""
    return math.floor(value * 10 + 0.5) / 10


@dataclass(frozen=True, slots=True)
class AttendanceTotals:
    working_days: int
    days_with_full_attendance: int
    total_millis: int

    @property
    def total_hours(self) -> float:
        return self.total_millis / MILLIS_PER_HOUR

    @property
    def rounded_hours(self) -> float:
        return round_tenths(self.total_hours)


@dataclass(frozen=True, slots=True)
class ExpenseDetail:
    baseline_expenses: float
    daily_allowance: float
    days_with_full_attendance: int
    items: tuple[ExpenseItem, ...]
    total: float


@dataclass(frozen=True, slots=True)
class ExpenseLine:
    label: str
    amount: float
    percentage: float


@dataclass(frozen=True, slots=True)
class ProductSale:
    product_name: str
    quantity: float
    revenue: float
    estimated_profit: float


@dataclass(frozen=True, slots=True)
class DailySale:
    date: date
    sales: float
    profit: float
    expenses: float


@dataclass(frozen=True, slots=True)
class RoiMetrics:
    total_sales: float
    total_expenses: float
    net_profit: float
    roi: float
    roi_percentage: float
    expense_ratio: float
    revenue_per_expense: float
    total_hours: float
    working_days: int
    avg_revenue_per_day: float
    avg_revenue_per_hour: float
    expense_detail: ExpenseDetail
    expense_breakdown: tuple[ExpenseLine, ...]
    top_products: tuple[ProductSale, ...]
    daily_trend: tuple[DailySale, ...]


@dataclass(frozen=True, slots=True)
class EmployeePerformance:
    working_days: int
    working_hours: float
    total_sales: float
    target_revenue_pc: float | None
    achievement_percent: float | None
    expense_detail: ExpenseDetail
    net_income: float
    avg_income_per_day: float
    avg_income_per_hour: float


@dataclass(frozen=True, slots=True)
class StatusRollup:
    start: date
    end: date
    present_days: int
    leave_days: int
    day_off_days: int
    absent_days: int
    worked_minutes: int


def safe_ratio(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def summarize_attendance(sessions_by_day: Mapping[date, Sequence[WorkSession]]) -> AttendanceTotals:
    working_days = 0
    full_days = 0
    total_millis = 0
    for sessions in sessions_by_day.values():
        if not sessions:
            continue
        working_days += 1
        if any(item.is_closed for item in sessions):
            full_days += 1
        for item in sessions:
            duration = item.duration_millis
            # Corrupted pairs spanning a day or more are ignored.
            if 0 < duration < MAX_SESSION_MILLIS:
                total_millis += duration
    return AttendanceTotals(
        working_days=working_days,
        days_with_full_attendance=full_days,
        total_millis=total_millis,
    )


def filter_sales(
    sales: Iterable[SaleRow],
    *,
    employee_name: str | None = None,
    dates: Collection[date] | None = None,
) -> list[SaleRow]:
    target_name = employee_name.strip() if employee_name is not None else None
    return [
        sale
        for sale in sales
        if (target_name is None or sale.employee_name.strip() == target_name)
        and (dates is None or sale.date in dates)
    ]


def build_expense_detail(
    baseline: ExpenseBaseline | None,
    *,
    days_with_full_attendance: int,
    daily_allowance_rate: float,
) -> ExpenseDetail:
    baseline_expenses = baseline.baseline if baseline is not None else 0.0
    daily_allowance = daily_allowance_rate * days_with_full_attendance
    return ExpenseDetail(
        baseline_expenses=baseline_expenses,
        daily_allowance=daily_allowance,
        days_with_full_attendance=days_with_full_attendance,
        items=baseline.items if baseline is not None else (),
        total=baseline_expenses + daily_allowance,
    )


def build_expense_breakdown(detail: ExpenseDetail) -> list[ExpenseLine]:
    lines = [
        ExpenseLine(
            label=item.label,
            amount=item.amount,
            percentage=safe_ratio(item.amount, detail.total) * 100,
        )
        for item in detail.items
    ]
    if detail.daily_allowance > 0:
        lines.append(
            ExpenseLine(
                label=f"เบี้ยเลี้ยง ({detail.days_with_full_attendance} วัน)",
                amount=detail.daily_allowance,
                percentage=safe_ratio(detail.daily_allowance, detail.total) * 100,
            )
        )
    lines.sort(key=lambda line: line.amount, reverse=True)
    return lines


def aggregate_products(sales: Iterable[SaleRow], *, profit_margin: float) -> list[ProductSale]:
    buckets: dict[str, list[float]] = {}
    for sale in sales:
        bucket = buckets.setdefault(sale.product_name, [0.0, 0.0])
        bucket[0] += sale.quantity
        bucket[1] += sale.total

    products = [
        ProductSale(
            product_name=name,
            quantity=quantity,
            revenue=revenue,
            estimated_profit=revenue * profit_margin,
        )
        for name, (quantity, revenue) in buckets.items()
    ]
    products.sort(key=lambda item: item.revenue, reverse=True)
    return products


def build_daily_trend(
    sales: Iterable[SaleRow],
    *,
    profit_margin: float,
    total_expenses: float,
    working_days: int,
) -> list[DailySale]:
    sales_by_day: dict[date, float] = {}
    for sale in sales:
        sales_by_day[sale.date] = sales_by_day.get(sale.date, 0.0) + sale.total

    # Flat allocation across the trend, not per-date expense data.
    daily_expense = total_expenses / (working_days or 1)
    return [
        DailySale(
            date=day,
            sales=amount,
            profit=amount * profit_margin,
            expenses=daily_expense,
        )
        for day, amount in sorted(sales_by_day.items())
    ]


def calculate_achievement(
    actual_revenue: float,
    targets: Iterable[TargetRecord],
    *,
    employee_ids: Collection[str] | None = None,
) -> tuple[float | None, float | None]:
    relevant = [
        target
        for target in targets
        if employee_ids is None or target.employee_id in employee_ids
    ]
    if not relevant:
        return None, None

    aggregated = sum(target.target_revenue_pc or 0.0 for target in relevant)
    if aggregated <= 0:
        return aggregated, None
    return aggregated, round_tenths(actual_revenue / aggregated * 100)


def calculate_roi_metrics(
    *,
    sales: Sequence[SaleRow],
    sessions_by_day: Mapping[date, Sequence[WorkSession]],
    expense_baseline: ExpenseBaseline | None,
    config: ReportConfig,
) -> RoiMetrics:
    attendance = summarize_attendance(sessions_by_day)
    total_sales = sum(sale.total for sale in sales)

    expense_detail = build_expense_detail(
        expense_baseline,
        days_with_full_attendance=attendance.days_with_full_attendance,
        daily_allowance_rate=config.daily_allowance_rate,
    )
    total_expenses = expense_detail.total
    net_profit = total_sales - total_expenses
    roi = safe_ratio(net_profit, total_expenses)

    products = aggregate_products(sales, profit_margin=config.profit_margin)
    return RoiMetrics(
        total_sales=total_sales,
        total_expenses=total_expenses,
        net_profit=net_profit,
        roi=roi,
        roi_percentage=roi * 100,
        expense_ratio=safe_ratio(total_expenses, total_sales) * 100,
        revenue_per_expense=safe_ratio(total_sales, total_expenses),
        total_hours=attendance.rounded_hours,
        working_days=attendance.working_days,
        avg_revenue_per_day=safe_ratio(total_sales, attendance.working_days),
        avg_revenue_per_hour=safe_ratio(total_sales, attendance.total_hours),
        expense_detail=expense_detail,
        expense_breakdown=tuple(build_expense_breakdown(expense_detail)),
        top_products=tuple(products[: config.top_products_limit]),
        daily_trend=tuple(
            build_daily_trend(
                sales,
                profit_margin=config.profit_margin,
                total_expenses=total_expenses,
                working_days=attendance.working_days,
            )
        ),
    )


def calculate_employee_performance(
    *,
    employee_id: str,
    sales: Sequence[SaleRow],
    sessions_by_day: Mapping[date, Sequence[WorkSession]],
    expense_baseline: ExpenseBaseline | None,
    targets: Iterable[TargetRecord],
    config: ReportConfig,
) -> EmployeePerformance:
    attendance = summarize_attendance(sessions_by_day)
    total_sales = sum(sale.total for sale in sales)
    expense_detail = build_expense_detail(
        expense_baseline,
        days_with_full_attendance=attendance.days_with_full_attendance,
        daily_allowance_rate=config.daily_allowance_rate,
    )
    target_revenue, achievement = calculate_achievement(
        total_sales,
        targets,
        employee_ids={employee_id},
    )
    net_income = total_sales - expense_detail.total
    return EmployeePerformance(
        working_days=attendance.working_days,
        working_hours=attendance.rounded_hours,
        total_sales=total_sales,
        target_revenue_pc=target_revenue,
        achievement_percent=achievement,
        expense_detail=expense_detail,
        net_income=net_income,
        avg_income_per_day=safe_ratio(net_income, attendance.working_days),
        avg_income_per_hour=safe_ratio(net_income, attendance.total_hours),
    )


def rollup_days(start: date, end: date, days: Sequence[DayReport]) -> StatusRollup:
    return StatusRollup(
        start=start,
        end=end,
        present_days=sum(1 for day in days if day.status == STATUS_PRESENT),
        leave_days=sum(1 for day in days if day.status == STATUS_LEAVE),
        day_off_days=sum(1 for day in days if day.status == STATUS_DAY_OFF),
        absent_days=sum(1 for day in days if day.status == STATUS_ABSENT),
        worked_minutes=sum(day.total_working_minutes for day in days),
    )


def build_weekly_rollups(days: Iterable[DayReport]) -> list[StatusRollup]:
    week_buckets: dict[date, list[DayReport]] = {}
    for day in days:
        week_start = day.date - timedelta(days=day.date.weekday())
        week_buckets.setdefault(week_start, []).append(day)

    return [
        rollup_days(week_start, week_start + timedelta(days=6), week_buckets[week_start])
        for week_start in sorted(week_buckets)
    ]


def build_period_rollup(days: Sequence[DayReport]) -> StatusRollup | None:
    if not days:
        return None
    return rollup_days(days[0].date, days[-1].date, days)
