from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal

from app.services.ingestion import LeaveRecord
from app.services.report_ranges import (
    format_day_label,
    month_key,
    sunday_weekday_index,
    thai_weekday_short,
)
from app.services.sessions import WorkSession

DayStatus = Literal["present", "leave", "day-off", "absent"]

STATUS_PRESENT: DayStatus = "present"
STATUS_LEAVE: DayStatus = "leave"
STATUS_DAY_OFF: DayStatus = "day-off"
STATUS_ABSENT: DayStatus = "absent"

STATUS_LABELS: dict[str, str] = {
    STATUS_PRESENT: "มาทำงาน",
    STATUS_LEAVE: "ลา",
    STATUS_DAY_OFF: "วันหยุด",
    STATUS_ABSENT: "ขาดงาน",
}

_WEEKDAY_NAMES: tuple[tuple[str, ...], ...] = (
    ("sunday", "sun", "อาทิตย์", "อา", "อา."),
    ("monday", "mon", "จันทร์", "จ", "จ."),
    ("tuesday", "tue", "tues", "อังคาร", "อ", "อ."),
    ("wednesday", "wed", "พุธ", "พ", "พ."),
    ("thursday", "thu", "thur", "thurs", "พฤหัสบดี", "พฤหัส", "พฤ", "พฤ."),
    ("friday", "fri", "ศุกร์", "ศ", "ศ."),
    ("saturday", "sat", "เสาร์", "ส", "ส."),
)
DAY_NAME_TO_INDEX: dict[str, int] = {
    name: index for index, names in enumerate(_WEEKDAY_NAMES) for name in names
}


@dataclass(frozen=True, slots=True)
class DayReport:
    date: date
    status: DayStatus
    leave_type: str | None
    sessions: tuple[WorkSession, ...]
    store_count: int
    first_check_in_time: str
    last_check_out_time: str
    total_working_minutes: int
    total_working_hours: str

    @property
    def date_iso(self) -> str:
        return self.date.isoformat()

    @property
    def day(self) -> int:
        return self.date.day

    @property
    def month(self) -> int:
        return self.date.month

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def day_of_week(self) -> str:
        return thai_weekday_short(self.date)

    @property
    def day_label(self) -> str:
        return format_day_label(self.date)

    @property
    def month_key(self) -> str:
        return month_key(self.date)

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    @property
    def store_name(self) -> str | None:
        if not self.sessions:
            return None
        return self.sessions[0].store_name or None

    @property
    def store_province(self) -> str | None:
        return self.sessions[0].store_province if self.sessions else None


def resolve_day_off_index(value: str | None) -> int | None:
    """Map an English or Thai weekday name to 0=Sunday .. 6=Saturday."""
    if not value:
        return None
    normalized = value.strip().lower()
    if normalized.startswith("วัน"):
        normalized = normalized[len("วัน"):].strip()
    return DAY_NAME_TO_INDEX.get(normalized)


def build_leave_type_map(
    leaves: Iterable[LeaveRecord],
    *,
    start: date | None = None,
    end: date | None = None,
) -> dict[date, str]:
    """Date to leave type for approved/scheduled leaves; later records win."""
    leave_type_by_day: dict[date, str] = {}
    for leave in leaves:
        if not leave.is_counted or leave.end_date < leave.start_date:
            continue
        cursor = max(leave.start_date, start) if start else leave.start_date
        last = min(leave.end_date, end) if end else leave.end_date
        while cursor <= last:
            leave_type_by_day[cursor] = leave.type
            cursor += timedelta(days=1)
    return leave_type_by_day


def total_working_minutes(sessions: Iterable[WorkSession]) -> int:
    return sum(item.duration_minutes for item in sessions)


def format_working_hours(minutes: int) -> str:
    hours, remainder = divmod(max(0, minutes), 60)
    if remainder == 0:
        return f"{hours} ชม."
    return f"{hours}:{remainder:02d} ชม."


def classify_day(
    day: date,
    sessions: Sequence[WorkSession],
    *,
    leave_type: str | None,
    day_off_index: int | None,
) -> DayReport:
    if sessions:
        status: DayStatus = STATUS_PRESENT
    elif leave_type is not None:
        status = STATUS_LEAVE
    elif day_off_index is not None and sunday_weekday_index(day) == day_off_index:
        status = STATUS_DAY_OFF
    else:
        status = STATUS_ABSENT

    minutes = total_working_minutes(sessions)
    return DayReport(
        date=day,
        status=status,
        leave_type=leave_type if status == STATUS_LEAVE else None,
        sessions=tuple(sessions),
        store_count=len({item.store_name for item in sessions}),
        first_check_in_time=sessions[0].check_in_time if sessions else "",
        last_check_out_time=sessions[-1].check_out_time if sessions else "",
        total_working_minutes=minutes,
        total_working_hours=format_working_hours(minutes) if sessions else "",
    )


def classify_days(
    dates: Iterable[date],
    sessions_by_day: Mapping[date, Sequence[WorkSession]],
    *,
    leaves: Iterable[LeaveRecord] = (),
    regular_day_off: str | None = None,
) -> list[DayReport]:
    ordered_dates = sorted(set(dates))
    if not ordered_dates:
        return []

    leave_type_by_day = build_leave_type_map(leaves, start=ordered_dates[0], end=ordered_dates[-1])
    day_off_index = resolve_day_off_index(regular_day_off)
    return [
        classify_day(
            day,
            sessions_by_day.get(day, ()),
            leave_type=leave_type_by_day.get(day),
            day_off_index=day_off_index,
        )
        for day in ordered_dates
    ]
