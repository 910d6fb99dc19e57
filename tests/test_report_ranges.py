from datetime import date, datetime, timezone
import unittest
from zoneinfo import ZoneInfo

from app.errors import InvalidDateRangeError
from app.services.report_ranges import (
    build_selection,
    expand_ranges_to_dates,
    format_month_label,
    format_range_label,
    normalize_ranges,
    parse_iso_date,
    resolve_date_selection,
    shift_iso_date,
    sunday_weekday_index,
    thai_weekday_short,
    trailing_days_range,
)

BANGKOK = ZoneInfo("Asia/Bangkok")


class ReportRangeTests(unittest.TestCase):
    def test_parse_iso_date_rejects_impossible_dates(self) -> None:
        self.assertEqual(parse_iso_date("2024-02-29"), date(2024, 2, 29))
        self.assertIsNone(parse_iso_date("2023-02-29"))
        self.assertIsNone(parse_iso_date("2024-13-01"))
        self.assertIsNone(parse_iso_date("2024-02-31"))
        self.assertEqual(normalize_ranges(["2024-02-31"]), [])
        self.assertEqual(normalize_ranges(["2024-02-28:2024-02-31"]), [])
        self.assertIsNone(parse_iso_date("2024-1-5"))
        self.assertIsNone(parse_iso_date(""))
        self.assertIsNone(parse_iso_date(None))

    def test_normalize_ranges_swaps_reversed_and_drops_malformed(self) -> None:
        ranges = normalize_ranges(["2024-01-10:2024-01-05", "garbage", "2024-01-01", None, "2024-01-02:nope"])

        self.assertEqual([(item.start, item.end) for item in ranges], [
            (date(2024, 1, 1), date(2024, 1, 1)),
            (date(2024, 1, 5), date(2024, 1, 10)),
        ])

    def test_overlapping_ranges_expand_to_unique_sorted_dates(self) -> None:
        ranges = normalize_ranges(["2024-01-03:2024-01-05", "2024-01-01:2024-01-04"])

        dates = expand_ranges_to_dates(ranges)

        self.assertEqual(dates, [date(2024, 1, day) for day in range(1, 6)])

    def test_range_crossing_year_boundary(self) -> None:
        ranges = normalize_ranges(["2023-12-30:2024-01-02"])

        dates = expand_ranges_to_dates(ranges)

        self.assertEqual(len(dates), 4)
        self.assertEqual(dates[0], date(2023, 12, 30))
        self.assertEqual(dates[-1], date(2024, 1, 2))
        self.assertEqual(ranges[0].label, "30 ธ.ค. 2566 – 2 ม.ค. 2567")

    def test_range_labels_use_buddhist_era(self) -> None:
        self.assertEqual(format_range_label(date(2024, 1, 10), date(2024, 1, 10)), "10 มกราคม 2567")
        self.assertEqual(format_range_label(date(2024, 1, 1), date(2024, 1, 31)), "1 – 31 มกราคม 2567")
        self.assertEqual(format_range_label(date(2024, 1, 20), date(2024, 2, 5)), "20 ม.ค. – 5 ก.พ. 2567")
        self.assertEqual(format_month_label(2024, 3), "มีนาคม 2567")

    def test_weekday_index_starts_on_sunday(self) -> None:
        self.assertEqual(sunday_weekday_index(date(2024, 1, 7)), 0)
        self.assertEqual(sunday_weekday_index(date(2024, 1, 1)), 1)
        self.assertEqual(thai_weekday_short(date(2024, 1, 1)), "จ.")

    def test_shift_iso_date(self) -> None:
        self.assertEqual(shift_iso_date("2024-02-28", 2), "2024-03-01")
        self.assertIsNone(shift_iso_date("not-a-date", 1))

    def test_default_selection_uses_current_month_in_report_timezone(self) -> None:
        # 17:30 UTC on Jan 31 is already Feb 1 in Bangkok.
        now = datetime(2024, 1, 31, 17, 30, tzinfo=timezone.utc)

        selection = resolve_date_selection([], tz=BANGKOK, now=now)

        self.assertEqual(selection.start, date(2024, 2, 1))
        self.assertEqual(selection.end, date(2024, 2, 29))
        self.assertEqual(selection.effective_month, "2024-02")

    def test_default_selection_honours_year_month_and_day(self) -> None:
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)

        month_selection = resolve_date_selection([], tz=BANGKOK, year=2023, month=2, now=now)
        day_selection = resolve_date_selection([], tz=BANGKOK, year=2023, month=2, day=14, now=now)

        self.assertEqual(len(month_selection.dates), 28)
        self.assertEqual(day_selection.iso_dates, ["2023-02-14"])

    def test_day_outside_month_is_rejected(self) -> None:
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)

        with self.assertRaises(InvalidDateRangeError) as ctx:
            resolve_date_selection([], tz=BANGKOK, year=2023, month=2, day=30, now=now)

        self.assertEqual(ctx.exception.code, "INVALID_DATE_RANGE")
        self.assertEqual(ctx.exception.status_code, 422)

    def test_explicit_ranges_take_precedence_over_month(self) -> None:
        selection = resolve_date_selection(
            ["2024-03-01:2024-03-02", "2024-01-15"],
            tz=BANGKOK,
            year=2020,
            month=5,
        )

        self.assertEqual(selection.iso_dates, ["2024-01-15", "2024-03-01", "2024-03-02"])
        self.assertEqual(selection.effective_month, "2024-01")
        self.assertEqual(selection.summary, "15 มกราคม 2567, 1 – 2 มีนาคม 2567")

    def test_normalizing_twice_is_stable(self) -> None:
        first = normalize_ranges(["2024-02-10:2024-02-01", "2024-03-05", "bad"])

        second = normalize_ranges([item.as_param() for item in first])

        self.assertEqual(first, second)

    def test_trailing_days_range_is_inclusive(self) -> None:
        item = trailing_days_range(today=date(2024, 3, 30), days=30)

        self.assertEqual(item.start, date(2024, 3, 1))
        self.assertEqual(item.end, date(2024, 3, 30))

    def test_empty_selection_is_rejected(self) -> None:
        with self.assertRaises(InvalidDateRangeError):
            build_selection([])


if __name__ == "__main__":
    unittest.main()
