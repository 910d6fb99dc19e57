from datetime import date
import unittest

from app.services.day_status import (
    build_leave_type_map,
    classify_day,
    classify_days,
    format_working_hours,
    resolve_day_off_index,
)
from app.services.ingestion import LeaveRecord
from app.services.sessions import WorkSession

JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)


def _leave(start: date, end: date, leave_type: str = "ลาพักร้อน", status: str = "approved") -> LeaveRecord:
    return LeaveRecord(employee_id="E1", start_date=start, end_date=end, status=status, type=leave_type)


def _session(check_in: str, check_out: str, minutes: int, store: str = "Store A") -> WorkSession:
    return WorkSession(
        store_name=store,
        store_province=None,
        check_in_time=check_in,
        check_in_timestamp=1_000_000,
        check_out_time=check_out,
        check_out_timestamp=1_000_000 + minutes * 60_000 if check_out else 0,
    )


class DayStatusTests(unittest.TestCase):
    def test_monday_without_attendance_is_absent_despite_sunday_rule(self) -> None:
        days = classify_days([JAN_1, JAN_2, JAN_3], {}, regular_day_off="Sunday")

        self.assertEqual(days[0].status, "absent")
        self.assertEqual(days[0].status_label, "ขาดงาน")
        self.assertEqual(days[0].day_of_week, "จ.")

    def test_matching_day_off_rule(self) -> None:
        days = classify_days([JAN_1], {}, regular_day_off="วันจันทร์")

        self.assertEqual(days[0].status, "day-off")

    def test_attendance_takes_precedence_over_leave(self) -> None:
        sessions = {JAN_1: [_session("08:00", "17:00", 540)]}

        days = classify_days([JAN_1], sessions, leaves=[_leave(JAN_1, JAN_1)], regular_day_off="Monday")

        self.assertEqual(days[0].status, "present")
        self.assertIsNone(days[0].leave_type)
        self.assertEqual(days[0].total_working_minutes, 540)
        self.assertEqual(days[0].total_working_hours, "9 ชม.")
        self.assertEqual(days[0].first_check_in_time, "08:00")
        self.assertEqual(days[0].last_check_out_time, "17:00")

    def test_leave_takes_precedence_over_day_off(self) -> None:
        days = classify_days([JAN_1, JAN_2], {}, leaves=[_leave(JAN_1, JAN_2, "ลาป่วย")], regular_day_off="mon")

        self.assertEqual([day.status for day in days], ["leave", "leave"])
        self.assertEqual(days[0].leave_type, "ลาป่วย")

    def test_rejected_leave_is_ignored(self) -> None:
        days = classify_days([JAN_2], {}, leaves=[_leave(JAN_2, JAN_2, status="rejected")])

        self.assertEqual(days[0].status, "absent")

    def test_later_leave_record_wins_for_same_date(self) -> None:
        leave_map = build_leave_type_map(
            [_leave(JAN_1, JAN_3, "ลาพักร้อน"), _leave(JAN_2, JAN_2, "ลากิจ", status="scheduled")]
        )

        self.assertEqual(leave_map, {JAN_1: "ลาพักร้อน", JAN_2: "ลากิจ", JAN_3: "ลาพักร้อน"})

    def test_leave_map_is_clipped_to_window(self) -> None:
        leave_map = build_leave_type_map([_leave(date(2023, 12, 1), date(2024, 2, 1))], start=JAN_1, end=JAN_2)

        self.assertEqual(sorted(leave_map), [JAN_1, JAN_2])

    def test_unclosed_last_session_leaves_checkout_empty(self) -> None:
        sessions = {JAN_1: [_session("08:00", "12:00", 240), _session("13:00", "", 0, "Store B")]}

        days = classify_days([JAN_1], sessions)

        self.assertEqual(days[0].last_check_out_time, "")
        self.assertEqual(days[0].total_working_hours, "4 ชม.")
        self.assertEqual(days[0].store_count, 2)

    def test_clock_skewed_session_counts_store_but_no_minutes(self) -> None:
        skewed = WorkSession(
            store_name="Store A",
            store_province=None,
            check_in_time="17:00",
            check_in_timestamp=10_000_000,
            check_out_time="08:00",
            check_out_timestamp=5_000_000,
        )

        report = classify_day(JAN_1, [skewed], leave_type=None, day_off_index=None)

        self.assertEqual(skewed.duration_minutes, 0)
        self.assertEqual(report.status, "present")
        self.assertEqual(report.total_working_minutes, 0)
        self.assertEqual(report.total_working_hours, "0 ชม.")
        self.assertEqual(report.store_count, 1)
        self.assertEqual(report.last_check_out_time, "08:00")

    def test_day_off_names(self) -> None:
        self.assertEqual(resolve_day_off_index("Sunday"), 0)
        self.assertEqual(resolve_day_off_index(" SAT "), 6)
        self.assertEqual(resolve_day_off_index("วันพฤหัสบดี"), 4)
        self.assertIsNone(resolve_day_off_index("someday"))
        self.assertIsNone(resolve_day_off_index(None))

    def test_format_working_hours(self) -> None:
        self.assertEqual(format_working_hours(0), "0 ชม.")
        self.assertEqual(format_working_hours(125), "2:05 ชม.")

    def test_duplicate_dates_collapse(self) -> None:
        days = classify_days([JAN_2, JAN_1, JAN_2], {})

        self.assertEqual([day.date for day in days], [JAN_1, JAN_2])


if __name__ == "__main__":
    unittest.main()
