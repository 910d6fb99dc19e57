from datetime import date
import unittest
from zoneinfo import ZoneInfo

from app.services.ingestion import EmployeeProfile, StoreProfile
from app.services.report_assembly import (
    build_attendance_report,
    build_individual_report,
    build_product_report,
    build_roi_report,
    paginate_months,
    resolve_store_filter,
)
from app.services.report_ranges import build_selection, normalize_ranges
from app.settings import ReportConfig

CONFIG = ReportConfig(timezone=ZoneInfo("Asia/Bangkok"))
SOMCHAI = EmployeeProfile(id="E1", name="Somchai", region="North", default_store_id="S1", regular_day_off="Sunday")
SOMSRI = EmployeeProfile(id="E2", name="Somsri", region="South")
STORE_A = StoreProfile(id="S1", name="Store A", province="Bangkok")
STORE_B = StoreProfile(id="S2", name="Store B", province="Chiang Mai")
STORES = [STORE_A, STORE_B]


def _selection(*values: str):  # type: ignore[no-untyped-def]
    return build_selection(normalize_ranges(values))


ATTENDANCE_ROWS = [
    ("2024-01-30", "08:00", "check-in", "Somchai", "Store A"),
    ("2024-01-30", "12:00", "check-out", "Somchai", "Store A"),
    ("2024-01-30", "13:00", "check-in", "Somchai", "Store B"),
    ("2024-01-30", "17:00", "check-out", "Somchai", "Store B"),
    ("2024-02-01", "09:00", "check-in", "Somchai", "Store B"),
    ("2024-02-01", "18:00", "check-out", "Somchai", "Store B"),
    ("2024-02-02", "09:00", "check-in", "Somsri", "Store A"),
    ("2024-02-02", "17:00", "check-out", "Somsri", "Store A"),
    ("2024-02-02", "09:00", "break", "Somchai", "Store A"),
]

SALES_ROWS = [
    ("2024-01-30", "10:00", "Somchai", "Store A", "P01", "Milk", "กล่อง", 2, 500, None),
    ("2024-02-01", "10:00", "Somchai", "Store B", "P02", "Tea", "ชิ้น", 10, 0, 300),
    ("2024-02-02", "10:00", "Somsri", "Store A", "P01", "Milk", "กล่อง", 1, 500, None),
    ("2024-02-03", "10:00", "Somchai", "Store A", "P01", "Milk", "กล่อง", 9, 500, None),
]


class StoreFilterTests(unittest.TestCase):
    def test_absent_parameter_uses_default_store(self) -> None:
        self.assertEqual(resolve_store_filter(STORES, SOMCHAI, None), STORE_A)

    def test_empty_parameter_disables_filter(self) -> None:
        self.assertIsNone(resolve_store_filter(STORES, SOMCHAI, ""))
        self.assertIsNone(resolve_store_filter(STORES, SOMCHAI, "  "))

    def test_unknown_store_disables_filter(self) -> None:
        self.assertIsNone(resolve_store_filter(STORES, SOMCHAI, "S404"))

    def test_explicit_store(self) -> None:
        self.assertEqual(resolve_store_filter(STORES, SOMCHAI, "S2"), STORE_B)
        self.assertIsNone(resolve_store_filter(STORES, SOMSRI, None))


class AttendanceReportTests(unittest.TestCase):
    def test_first_page_is_first_month(self) -> None:
        report = build_attendance_report(
            _selection("2024-01-30:2024-02-02"),
            ATTENDANCE_ROWS,
            [],
            SOMCHAI,
            config=CONFIG,
            stores=STORES,
        )

        self.assertEqual([month.month_key for month in report.months], ["2024-01", "2024-02"])
        self.assertIsNotNone(report.pagination)
        assert report.pagination is not None
        self.assertEqual(report.pagination.total_rows, 2)
        self.assertEqual(report.pagination.total_pages, 2)
        self.assertEqual(report.pagination.page_size, 1)
        self.assertTrue(report.pagination.has_next_page)
        self.assertFalse(report.pagination.has_prev_page)
        self.assertEqual([row.date for row in report.rows], [date(2024, 1, 30), date(2024, 1, 31)])

        first = report.rows[0]
        self.assertEqual(first.status, "present")
        self.assertEqual(len(first.sessions), 2)
        self.assertEqual(first.store_count, 2)
        self.assertEqual(first.store_province, "Bangkok")
        self.assertEqual(first.total_working_hours, "8 ชม.")
        self.assertEqual(report.rows[1].status, "absent")
        self.assertEqual(report.discarded_rows, 1)

    def test_second_page_and_out_of_range_page(self) -> None:
        selection = _selection("2024-01-30:2024-02-02")

        second = build_attendance_report(selection, ATTENDANCE_ROWS, [], SOMCHAI, config=CONFIG, page=2)
        beyond = build_attendance_report(selection, ATTENDANCE_ROWS, [], SOMCHAI, config=CONFIG, page=5)

        assert second.current_month is not None
        self.assertEqual(second.current_month.month_label, "กุมภาพันธ์ 2567")
        self.assertEqual([row.status for row in second.rows], ["present", "absent"])
        self.assertEqual(beyond.rows, ())
        self.assertIsNone(beyond.current_month)
        assert beyond.pagination is not None
        self.assertFalse(beyond.pagination.has_next_page)
        self.assertTrue(beyond.pagination.has_prev_page)

    def test_export_returns_all_rows_without_pagination(self) -> None:
        report = build_attendance_report(
            _selection("2024-01-30:2024-02-02"),
            ATTENDANCE_ROWS,
            [],
            SOMCHAI,
            config=CONFIG,
            export=True,
        )

        self.assertTrue(report.export)
        self.assertIsNone(report.pagination)
        self.assertIsNone(report.current_month)
        self.assertEqual(len(report.rows), 4)
        assert report.totals is not None
        self.assertEqual(report.totals.present_days, 2)
        self.assertEqual(report.totals.absent_days, 2)

    def test_store_filter_and_leaves(self) -> None:
        leaves = [
            {"employee_id": "E1", "start_date": "2024-01-31", "end_date": "2024-01-31", "status": "approved", "type": "ลากิจ"},
            {"employee_id": "E2", "start_date": "2024-02-02", "end_date": "2024-02-02", "status": "approved", "type": "ลาป่วย"},
        ]

        report = build_attendance_report(
            _selection("2024-01-30:2024-02-02"),
            ATTENDANCE_ROWS,
            leaves,
            SOMCHAI,
            config=CONFIG,
            stores=STORES,
            store=STORE_B,
            export=True,
        )

        statuses = {row.date: row.status for row in report.rows}
        self.assertEqual(report.rows[0].sessions[0].store_name, "Store B")
        self.assertEqual(len(report.rows[0].sessions), 1)
        self.assertEqual(statuses[date(2024, 1, 31)], "leave")
        self.assertEqual(statuses[date(2024, 2, 2)], "absent")

    def test_paginate_without_months(self) -> None:
        current, pagination = paginate_months([], 1)

        self.assertIsNone(current)
        self.assertEqual(pagination.total_pages, 1)
        self.assertEqual(pagination.total_rows, 0)
        self.assertFalse(pagination.has_next_page)


class RoiReportTests(unittest.TestCase):
    def test_roi_only_counts_selected_employee_and_dates(self) -> None:
        report = build_roi_report(
            _selection("2024-01-30:2024-02-02"),
            SALES_ROWS,
            ATTENDANCE_ROWS,
            {"employee_id": "E1", "effective_month": "2024-01", "baseline": 1000, "items": []},
            SOMCHAI,
            config=CONFIG,
            stores=STORES,
        )

        metrics = report.metrics
        self.assertEqual(metrics.total_sales, 1300)
        self.assertEqual(metrics.working_days, 2)
        self.assertEqual(metrics.total_hours, 17.0)
        self.assertEqual(metrics.total_expenses, 1300)
        self.assertEqual(metrics.net_profit, 0)
        self.assertEqual([item.product_name for item in metrics.top_products], ["Milk", "Tea"])
        self.assertEqual(report.discarded_rows, 1)


class IndividualReportTests(unittest.TestCase):
    def test_rows_sorted_by_name_with_totals(self) -> None:
        report = build_individual_report(
            _selection("2024-02-01:2024-02-29"),
            [SOMSRI, SOMCHAI],
            ATTENDANCE_ROWS,
            SALES_ROWS,
            [
                {"employee_id": "E1", "effective_month": "2024-02", "baseline": 500},
                {"employee_id": "E2", "effective_month": "2024-01", "baseline": 9999},
            ],
            [{"employee_id": "E2", "month": "2024-02", "target_revenue_pc": 1000}],
            config=CONFIG,
            stores=STORES,
        )

        self.assertEqual([row.employee_name for row in report.rows], ["Somchai", "Somsri"])
        somchai, somsri = report.rows
        self.assertEqual(somchai.store_name, "Store A")
        self.assertEqual(somchai.performance.total_sales, 4800)
        self.assertEqual(somchai.performance.expense_detail.total, 650)
        self.assertIsNone(somchai.performance.achievement_percent)
        self.assertEqual(somsri.performance.expense_detail.baseline_expenses, 0)
        self.assertEqual(somsri.performance.achievement_percent, 50.0)
        self.assertEqual(report.totals.total_sales, 5300)
        self.assertEqual(report.totals.working_days, 2)
        self.assertEqual(report.totals.working_hours, 17.0)

    def test_search_filters_by_name(self) -> None:
        report = build_individual_report(
            _selection("2024-02-01"),
            [SOMSRI, SOMCHAI],
            [],
            [],
            [],
            [],
            config=CONFIG,
            search="SRI",
        )

        self.assertEqual([row.employee_id for row in report.rows], ["E2"])


class ProductReportTests(unittest.TestCase):
    def test_achievement_for_selected_employees(self) -> None:
        report = build_product_report(
            _selection("2024-02-01:2024-02-29"),
            SALES_ROWS,
            [
                {"employee_id": "E1", "month": "2024-02", "target_revenue_pc": 2000},
                {"employee_id": "E2", "month": "2024-02", "target_revenue_pc": 3000},
                {"employee_id": "E1", "month": "2024-01", "target_revenue_pc": 9000},
            ],
            employees=[SOMCHAI, SOMSRI],
            stores=STORES,
            selected_employees=[SOMCHAI],
        )

        self.assertEqual(report.report.summary.total_revenue, 4800)
        self.assertEqual(report.aggregated_target, 2000)
        self.assertEqual(report.achievement_percent, 240.0)
        self.assertEqual(report.report.products[0].best_region, "North")

    def test_no_targets(self) -> None:
        report = build_product_report(_selection("2024-02-01"), SALES_ROWS, [], employees=[SOMCHAI])

        self.assertIsNone(report.aggregated_target)
        self.assertIsNone(report.achievement_percent)
        self.assertEqual(report.report.summary.total_revenue, 300)


if __name__ == "__main__":
    unittest.main()
