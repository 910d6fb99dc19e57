from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import (
    AttendanceReportResponse,
    DayReportRead,
    EmployeeRead,
    ExpenseDetailRead,
    IndividualReportResponse,
    IndividualRowRead,
    IndividualTotalsRead,
    MonthRead,
    PaginationRead,
    ProductReportResponse,
    ProductSummaryRead,
    RangeRead,
    ReportFilters,
    RoiMetricsRead,
    RoiReportResponse,
    SalesSummaryRead,
    StatusRollupRead,
    StoreRead,
    TargetDataRead,
    TimelineBucketRead,
)
from app.services.report_assembly import IndividualRow
from app.services.report_ranges import DateSelection
from app.services.reports import (
    generate_attendance_report,
    generate_individual_report,
    generate_product_report,
    generate_roi_report,
)
from app.settings import ReportConfig, get_report_config

router = APIRouter(prefix="/api/admin/reports", tags=["reports"])


def _split_ids(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _to_filters(selection: DateSelection, config: ReportConfig, *, store_id: str | None = None) -> ReportFilters:
    return ReportFilters(
        time_zone=config.timezone.key,
        ranges=[RangeRead.model_validate(item) for item in selection.ranges],
        range_summary=selection.summary,
        store_id=store_id,
    )


def _to_individual_row(row: IndividualRow) -> IndividualRowRead:
    performance = row.performance
    return IndividualRowRead(
        employee_id=row.employee_id,
        employee_name=row.employee_name,
        store_name=row.store_name,
        working_days=performance.working_days,
        working_hours=performance.working_hours,
        total_sales=performance.total_sales,
        target_revenue_pc=performance.target_revenue_pc,
        achievement_percent=performance.achievement_percent,
        monthly_expenses=performance.expense_detail.total,
        expense_detail=ExpenseDetailRead.model_validate(performance.expense_detail),
        net_income=performance.net_income,
        avg_income_per_day=performance.avg_income_per_day,
        avg_income_per_hour=performance.avg_income_per_hour,
    )


@router.get("/attendance", response_model=AttendanceReportResponse)
def attendance_report(
    employee_id: str = Query(min_length=1),
    range_values: list[str] = Query(default=[], alias="range"),
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=2000, le=3000),
    day: int | None = Query(default=None, ge=1, le=31),
    page: int = Query(default=1, ge=1, le=1000),
    store_id: str | None = Query(default=None),
    export: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> AttendanceReportResponse:
    config = get_report_config()
    report = generate_attendance_report(
        db,
        employee_id=employee_id,
        range_values=range_values,
        year=year,
        month=month,
        day=day,
        page=page,
        store_id=store_id,
        export=export,
        config=config,
    )
    return AttendanceReportResponse(
        employee=EmployeeRead.model_validate(report.employee),
        store=StoreRead.model_validate(report.store) if report.store else None,
        filters=_to_filters(report.selection, config, store_id=report.store.id if report.store else None),
        rows=[DayReportRead.model_validate(item) for item in report.rows],
        current_month=MonthRead.model_validate(report.current_month) if report.current_month else None,
        all_months=[MonthRead.model_validate(item) for item in report.months],
        pagination=PaginationRead.model_validate(report.pagination) if report.pagination else None,
        weekly=[StatusRollupRead.model_validate(item) for item in report.weekly],
        totals=StatusRollupRead.model_validate(report.totals) if report.totals else None,
        export=report.export,
    )


@router.get("/roi", response_model=RoiReportResponse)
def roi_report(
    employee_id: str = Query(min_length=1),
    range_values: list[str] = Query(default=[], alias="range"),
    db: Session = Depends(get_db),
) -> RoiReportResponse:
    config = get_report_config()
    report = generate_roi_report(db, employee_id=employee_id, range_values=range_values, config=config)
    return RoiReportResponse(
        employee=EmployeeRead.model_validate(report.employee),
        filters=_to_filters(report.selection, config),
        effective_month=report.selection.effective_month,
        metrics=RoiMetricsRead.model_validate(report.metrics),
    )


@router.get("/individual", response_model=IndividualReportResponse)
def individual_report(
    range_values: list[str] = Query(default=[], alias="range"),
    search: str | None = Query(default=None, max_length=255),
    db: Session = Depends(get_db),
) -> IndividualReportResponse:
    config = get_report_config()
    report = generate_individual_report(db, range_values=range_values, search=search, config=config)
    return IndividualReportResponse(
        filters=_to_filters(report.selection, config),
        effective_month=report.selection.effective_month,
        rows=[_to_individual_row(item) for item in report.rows],
        totals=IndividualTotalsRead.model_validate(report.totals),
    )


@router.get("/products", response_model=ProductReportResponse)
def product_report(
    range_values: list[str] = Query(default=[], alias="range"),
    start: str | None = Query(default=None),
    end: str | None = Query(default=None),
    employee_ids: str | None = Query(default=None),
    store_ids: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ProductReportResponse:
    if not range_values and start:
        range_values = [f"{start.strip()}:{(end or start).strip()}"]

    config = get_report_config()
    result = generate_product_report(
        db,
        range_values=range_values,
        employee_ids=_split_ids(employee_ids),
        store_ids=_split_ids(store_ids),
        config=config,
    )
    report = result.report
    return ProductReportResponse(
        filters=_to_filters(result.selection, config),
        employees=[EmployeeRead.model_validate(item) for item in result.employees],
        stores=[StoreRead.model_validate(item) for item in result.stores],
        summary=SalesSummaryRead.model_validate(report.summary),
        products=[ProductSummaryRead.model_validate(item) for item in report.products],
        timeline=[TimelineBucketRead.model_validate(item) for item in report.timeline],
        target_data=TargetDataRead(
            aggregated_target=result.aggregated_target,
            achievement_percent=result.achievement_percent,
        ),
        generated_at=datetime.now(timezone.utc),
    )
