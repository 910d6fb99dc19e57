from __future__ import annotations

import re
from calendar import monthrange
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from app.errors import InvalidDateRangeError

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

BUDDHIST_ERA_OFFSET = 543
THAI_MONTHS_LONG = (
    "มกราคม",
    "กุมภาพันธ์",
    "มีนาคม",
    "เมษายน",
    "พฤษภาคม",
    "มิถุนายน",
    "กรกฎาคม",
    "สิงหาคม",
    "กันยายน",
    "ตุลาคม",
    "พฤศจิกายน",
    "ธันวาคม",
)
THAI_MONTHS_SHORT = (
    "ม.ค.",
    "ก.พ.",
    "มี.ค.",
    "เม.ย.",
    "พ.ค.",
    "มิ.ย.",
    "ก.ค.",
    "ส.ค.",
    "ก.ย.",
    "ต.ค.",
    "พ.ย.",
    "ธ.ค.",
)
# Sunday first, matching sunday_weekday_index().
THAI_WEEKDAYS_SHORT = ("อา.", "จ.", "อ.", "พ.", "พฤ.", "ศ.", "ส.")

RANGE_SEPARATOR = " – "


@dataclass(frozen=True, slots=True)
class NormalizedRange:
    start: date
    end: date
    label: str

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.isoformat()

    def as_param(self) -> str:
        return f"{self.start_iso}:{self.end_iso}"


@dataclass(frozen=True, slots=True)
class DateSelection:
    ranges: tuple[NormalizedRange, ...]
    dates: tuple[date, ...]
    summary: str

    @property
    def iso_dates(self) -> list[str]:
        return [item.isoformat() for item in self.dates]

    @property
    def start(self) -> date:
        return self.dates[0]

    @property
    def end(self) -> date:
        return self.dates[-1]

    @property
    def effective_month(self) -> str:
        """Month of the first requested range, used to match expenses and targets."""
        return month_key(self.ranges[0].start)


def parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    match = _ISO_DATE_RE.match(value.strip())
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    if month < 1 or month > 12 or day < 1 or day > 31:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def sunday_weekday_index(value: date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def thai_year(year: int) -> int:
    return year + BUDDHIST_ERA_OFFSET


def format_thai_date(value: date, *, month_style: str = "long", with_year: bool = True) -> str:
    months = THAI_MONTHS_LONG if month_style == "long" else THAI_MONTHS_SHORT
    text = f"{value.day} {months[value.month - 1]}"
    if with_year:
        text = f"{text} {thai_year(value.year)}"
    return text


def format_day_label(value: date) -> str:
    return format_thai_date(value, month_style="short", with_year=False)


def format_month_label(year: int, month: int) -> str:
    return f"{THAI_MONTHS_LONG[month - 1]} {thai_year(year)}"


def thai_weekday_short(value: date) -> str:
    return THAI_WEEKDAYS_SHORT[sunday_weekday_index(value)]


def format_range_label(start: date, end: date) -> str:
    if start == end:
        return format_thai_date(start)

    if start.year == end.year and start.month == end.month:
        return f"{start.day}{RANGE_SEPARATOR}{format_thai_date(end)}"

    if start.year == end.year:
        return (
            f"{format_thai_date(start, month_style='short', with_year=False)}"
            f"{RANGE_SEPARATOR}{format_thai_date(end, month_style='short')}"
        )

    return (
        f"{format_thai_date(start, month_style='short')}"
        f"{RANGE_SEPARATOR}{format_thai_date(end, month_style='short')}"
    )


def format_range_summary(ranges: Iterable[NormalizedRange]) -> str:
    return ", ".join(item.label for item in ranges)


def make_range(start: date, end: date) -> NormalizedRange:
    if end < start:
        start, end = end, start
    return NormalizedRange(start=start, end=end, label=format_range_label(start, end))


def normalize_ranges(values: Iterable[str | None]) -> list[NormalizedRange]:
    """Parse ``YYYY-MM-DD:YYYY-MM-DD`` or single-date strings, dropping malformed ones."""
    ranges: list[NormalizedRange] = []
    for value in values:
        if not value:
            continue
        raw_start, _, raw_end = value.partition(":")
        start = parse_iso_date(raw_start)
        if start is None:
            continue
        end = parse_iso_date(raw_end or raw_start)
        if end is None:
            continue
        ranges.append(make_range(start, end))

    ranges.sort(key=lambda item: (item.start, item.end))
    return ranges


def expand_ranges_to_dates(ranges: Iterable[NormalizedRange]) -> list[date]:
    seen: set[date] = set()
    for item in ranges:
        cursor = item.start
        while cursor <= item.end:
            seen.add(cursor)
            cursor += timedelta(days=1)
    return sorted(seen)


def shift_iso_date(value: str, days: int) -> str | None:
    parsed = parse_iso_date(value)
    if parsed is None:
        return None
    return (parsed + timedelta(days=days)).isoformat()


def today_in_timezone(tz: ZoneInfo, now: datetime | None = None) -> date:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(tz).date()


def default_month_range(
    *,
    today: date,
    year: int | None = None,
    month: int | None = None,
    day: int | None = None,
) -> NormalizedRange:
    resolved_year = year if year is not None else today.year
    resolved_month = month if month is not None else today.month
    days_in_month = monthrange(resolved_year, resolved_month)[1]
    if day is not None and (day < 1 or day > days_in_month):
        raise InvalidDateRangeError("Selected day is outside the requested month.")

    if day is not None:
        selected = date(resolved_year, resolved_month, day)
        return make_range(selected, selected)
    return make_range(
        date(resolved_year, resolved_month, 1),
        date(resolved_year, resolved_month, days_in_month),
    )


def trailing_days_range(*, today: date, days: int = 30) -> NormalizedRange:
    return make_range(today - timedelta(days=max(1, days) - 1), today)


def build_selection(ranges: Iterable[NormalizedRange]) -> DateSelection:
    ordered = tuple(ranges)
    dates = tuple(expand_ranges_to_dates(ordered))
    if not dates:
        raise InvalidDateRangeError("No dates in the requested range.")
    return DateSelection(ranges=ordered, dates=dates, summary=format_range_summary(ordered))


def resolve_date_selection(
    range_values: Iterable[str | None],
    *,
    tz: ZoneInfo,
    year: int | None = None,
    month: int | None = None,
    day: int | None = None,
    now: datetime | None = None,
) -> DateSelection:
    ranges = normalize_ranges(range_values)
    if not ranges:
        ranges = [
            default_month_range(
                today=today_in_timezone(tz, now),
                year=year,
                month=month,
                day=day,
            )
        ]
    return build_selection(ranges)
