from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class RangeRead(BaseModel):
    start_iso: str
    end_iso: str
    label: str

    model_config = ConfigDict(from_attributes=True)


class ReportFilters(BaseModel):
    time_zone: str
    ranges: list[RangeRead]
    range_summary: str
    store_id: str | None = None


class EmployeeRead(BaseModel):
    id: str
    name: str
    region: str | None = None
    default_store_id: str | None = None
    regular_day_off: str | None = None

    model_config = ConfigDict(from_attributes=True)


class StoreRead(BaseModel):
    id: str
    name: str
    province: str | None = None
    region: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SessionRead(BaseModel):
    store_name: str
    store_province: str | None = None
    check_in_time: str
    check_out_time: str
    check_in_timestamp: int
    check_out_timestamp: int

    model_config = ConfigDict(from_attributes=True)


class DayReportRead(BaseModel):
    date_iso: str
    day: int
    month: int
    year: int
    day_label: str
    day_of_week: str
    status: Literal["present", "leave", "day-off", "absent"]
    status_label: str
    leave_type: str | None = None
    sessions: list[SessionRead]
    store_count: int
    store_name: str | None = None
    store_province: str | None = None
    first_check_in_time: str
    last_check_out_time: str
    total_working_minutes: int
    total_working_hours: str

    model_config = ConfigDict(from_attributes=True)


class StatusRollupRead(BaseModel):
    start: date
    end: date
    present_days: int
    leave_days: int
    day_off_days: int
    absent_days: int
    worked_minutes: int

    model_config = ConfigDict(from_attributes=True)


class MonthRead(BaseModel):
    month_key: str
    month_label: str
    year: int
    month: int
    row_count: int
    rollup: StatusRollupRead

    model_config = ConfigDict(from_attributes=True)


class PaginationRead(BaseModel):
    page: int
    page_size: int
    total_rows: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    model_config = ConfigDict(from_attributes=True)


class AttendanceReportResponse(BaseModel):
    employee: EmployeeRead
    store: StoreRead | None = None
    filters: ReportFilters
    rows: list[DayReportRead]
    current_month: MonthRead | None = None
    all_months: list[MonthRead]
    pagination: PaginationRead | None = None
    weekly: list[StatusRollupRead]
    totals: StatusRollupRead | None = None
    export: bool = False


class ExpenseItemRead(BaseModel):
    label: str
    amount: float

    model_config = ConfigDict(from_attributes=True)


class ExpenseDetailRead(BaseModel):
    baseline_expenses: float
    daily_allowance: float
    days_with_full_attendance: int
    items: list[ExpenseItemRead]
    total: float

    model_config = ConfigDict(from_attributes=True)


class ExpenseLineRead(BaseModel):
    label: str
    amount: float
    percentage: float

    model_config = ConfigDict(from_attributes=True)


class ProductSaleRead(BaseModel):
    product_name: str
    quantity: float
    revenue: float
    estimated_profit: float

    model_config = ConfigDict(from_attributes=True)


class DailySaleRead(BaseModel):
    date: date
    sales: float
    profit: float
    expenses: float

    model_config = ConfigDict(from_attributes=True)


class RoiMetricsRead(BaseModel):
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
    expense_detail: ExpenseDetailRead
    expense_breakdown: list[ExpenseLineRead]
    top_products: list[ProductSaleRead]
    daily_trend: list[DailySaleRead]

    model_config = ConfigDict(from_attributes=True)


class RoiReportResponse(BaseModel):
    employee: EmployeeRead
    filters: ReportFilters
    effective_month: str
    metrics: RoiMetricsRead


class IndividualRowRead(BaseModel):
    employee_id: str
    employee_name: str
    store_name: str | None = None
    working_days: int
    working_hours: float
    total_sales: float
    target_revenue_pc: float | None = None
    achievement_percent: float | None = None
    monthly_expenses: float
    expense_detail: ExpenseDetailRead
    net_income: float
    avg_income_per_day: float
    avg_income_per_hour: float


class IndividualTotalsRead(BaseModel):
    working_days: int
    working_hours: float
    total_sales: float
    monthly_expenses: float
    net_income: float

    model_config = ConfigDict(from_attributes=True)


class IndividualReportResponse(BaseModel):
    filters: ReportFilters
    effective_month: str
    rows: list[IndividualRowRead]
    totals: IndividualTotalsRead


class UnitBreakdownRead(BaseModel):
    quantity: float
    revenue: float
    transactions: int

    model_config = ConfigDict(from_attributes=True)


class ContributorRead(BaseModel):
    name: str
    total_revenue: float
    total_quantity: float

    model_config = ConfigDict(from_attributes=True)


class ProductSummaryRead(BaseModel):
    product_key: str
    product_code: str
    product_name: str
    unit_breakdown: dict[str, UnitBreakdownRead]
    total_revenue: float
    total_quantity: float
    transactions: int
    average_unit_price: float
    contribution_percent: float
    best_region: str | None = None
    top_employees: list[ContributorRead]
    top_stores: list[ContributorRead]
    last_sold_date: date | None = None

    model_config = ConfigDict(from_attributes=True)


class TimelineBucketRead(BaseModel):
    date: date
    label: str
    total_revenue: float
    total_quantity: float
    transactions: int

    model_config = ConfigDict(from_attributes=True)


class SalesSummaryRead(BaseModel):
    total_revenue: float
    total_quantity: float
    transactions: int
    average_unit_price: float
    unique_products: int
    unique_employees: int
    unique_stores: int
    all_stores: list[str]
    unit_breakdown: dict[str, UnitBreakdownRead]

    model_config = ConfigDict(from_attributes=True)


class TargetDataRead(BaseModel):
    aggregated_target: float | None = None
    achievement_percent: float | None = None


class ProductReportResponse(BaseModel):
    filters: ReportFilters
    employees: list[EmployeeRead]
    stores: list[StoreRead]
    summary: SalesSummaryRead
    products: list[ProductSummaryRead]
    timeline: list[TimelineBucketRead]
    target_data: TargetDataRead
    generated_at: datetime
